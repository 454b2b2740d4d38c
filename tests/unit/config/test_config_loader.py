"""Tests for configuration loading, validation and env var resolution."""

from io import StringIO

import pytest

from djeno import create_engine
from djeno.config import (
    ConfigLoader,
    EngineConfig,
    LogFormat,
    LoggingConfig,
    resolve_env_vars,
)
from djeno.config.loader import CONFIG_ENV_VAR
from djeno.errors import TemplateError


class TestResolveEnvVars:
    """Tests for ${VAR} substitution."""

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("DJENO_TEST_DIR", "/srv/templates")
        assert resolve_env_vars("${DJENO_TEST_DIR}/pages") == "/srv/templates/pages"

    def test_default_value(self, monkeypatch):
        monkeypatch.delenv("DJENO_TEST_UNSET", raising=False)
        assert resolve_env_vars("${DJENO_TEST_UNSET:-./templates}") == "./templates"

    def test_required_missing(self, monkeypatch):
        monkeypatch.delenv("DJENO_TEST_UNSET", raising=False)
        with pytest.raises(TemplateError) as exc_info:
            resolve_env_vars("${DJENO_TEST_UNSET}")
        assert exc_info.value.code == "CONFIG_INVALID"
        assert "DJENO_TEST_UNSET" in exc_info.value.detail

    def test_required_custom_message(self, monkeypatch):
        monkeypatch.delenv("DJENO_TEST_UNSET", raising=False)
        with pytest.raises(TemplateError) as exc_info:
            resolve_env_vars("${DJENO_TEST_UNSET:?set the templates dir}")
        assert exc_info.value.detail == "set the templates dir"

    def test_plain_string_unchanged(self):
        assert resolve_env_vars("no variables") == "no variables"


class TestConfigLoaderLoad:
    """Tests for ConfigLoader.load."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "djeno.yaml"
        path.write_text(
            "templates_dir: ./site\nencoding: latin-1\nlogging:\n  level: debug\n  format: text\n"
        )
        loader = ConfigLoader()
        config = loader.load(path)
        assert config == EngineConfig(
            templates_dir="./site",
            encoding="latin-1",
            logging=LoggingConfig(level="DEBUG", format=LogFormat.TEXT),
        )
        assert loader.config_path == path
        assert loader.get() is config

    def test_env_vars_resolved(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DJENO_TEST_DIR", "/srv/t")
        path = tmp_path / "djeno.yaml"
        path.write_text("templates_dir: ${DJENO_TEST_DIR}\n")
        assert ConfigLoader().load(path).templates_dir == "/srv/t"

    def test_env_var_path_lookup(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("encoding: ascii\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert ConfigLoader().load().encoding == "ascii"

    def test_defaults_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert ConfigLoader().load() == EngineConfig()

    def test_missing_without_defaults(self, tmp_path):
        with pytest.raises(TemplateError) as exc_info:
            ConfigLoader().load(tmp_path / "nope.yaml", use_defaults=False)
        assert "not found" in exc_info.value.detail

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "djeno.yaml"
        path.write_text("")
        assert ConfigLoader().load(path) == EngineConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "djeno.yaml"
        path.write_text("templates_dir: [unclosed\n")
        with pytest.raises(TemplateError) as exc_info:
            ConfigLoader().load(path)
        assert "Invalid YAML" in exc_info.value.detail

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "djeno.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(TemplateError):
            ConfigLoader().load(path)

    def test_get_before_load(self):
        with pytest.raises(TemplateError):
            ConfigLoader().get()


class TestConfigLoaderValidate:
    """Tests for ConfigLoader.validate."""

    def test_valid(self):
        result = ConfigLoader().validate({"templates_dir": "t", "logging": {"level": "WARN"}})
        assert result.valid
        assert result.errors == []

    def test_unknown_key_is_warning(self):
        result = ConfigLoader().validate({"cache": True})
        assert result.valid
        assert result.warnings[0].path == "cache"

    @pytest.mark.parametrize(
        ("data", "path"),
        [
            ({"templates_dir": 3}, "templates_dir"),
            ({"encoding": "no-such-codec"}, "encoding"),
            ({"logging": "loud"}, "logging"),
            ({"logging": {"level": "chatty"}}, "logging.level"),
            ({"logging": {"format": "xml"}}, "logging.format"),
        ],
    )
    def test_errors(self, data, path):
        result = ConfigLoader().validate(data)
        assert not result.valid
        assert result.errors[0].path == path

    def test_load_from_dict_rejects_invalid(self):
        with pytest.raises(TemplateError) as exc_info:
            ConfigLoader().load_from_dict({"logging": {"level": "chatty"}})
        assert "Invalid log level" in exc_info.value.detail


class TestCreateEngine:
    """Tests for application bootstrap."""

    def test_create_engine_from_file(self, tmp_path, templates_dir):
        (templates_dir / "index.html").write_text("{{ x }}")
        path = tmp_path / "djeno.yaml"
        path.write_text(f"templates_dir: {templates_dir}\nlogging:\n  format: text\n")
        stream = StringIO()

        engine = create_engine(path, log_output=stream)

        assert engine.render_template("index.html", {"x": "<>"}) == "&lt;&gt;"
        assert "Template engine initialized" in stream.getvalue()

    def test_explicit_config_wins(self, templates_dir):
        (templates_dir / "a.html").write_text("A")
        config = EngineConfig(templates_dir=str(templates_dir))
        engine = create_engine("/does/not/matter.yaml", config=config, log_output=StringIO())
        assert engine.render_template("a.html") == "A"
