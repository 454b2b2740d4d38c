"""Unit tests for TemplateStore caching."""

import threading

import pytest

from djeno.errors import TemplateError
from djeno.template import TemplateStore
from djeno.template.types import TextNode
from tests.mocks import CountingLoader


@pytest.fixture
def loader() -> CountingLoader:
    return CountingLoader(
        {
            "page.html": "Hello {{ name }}",
            "broken.html": "{% for x in y %}",
        }
    )


@pytest.fixture
def store(loader: CountingLoader) -> TemplateStore:
    return TemplateStore(loader)


class TestTemplateStore:
    """Tests for load-once semantics."""

    def test_load_parses_template(self, store):
        template = store.load("page.html")
        assert template.path == "page.html"
        assert template.source == "Hello {{ name }}"
        assert template.tree[0] == TextNode("Hello ")

    def test_same_instance_and_single_read(self, store, loader):
        """Test repeated loads return one cached instance read once."""
        first = store.load("page.html")
        second = store.load("page.html")
        assert first is second
        assert loader.reads["page.html"] == 1

    def test_contains_and_len(self, store):
        assert "page.html" not in store
        store.load("page.html")
        assert "page.html" in store
        assert len(store) == 1

    def test_missing_template_raises(self, store):
        with pytest.raises(TemplateError) as exc_info:
            store.load("missing.html")
        assert exc_info.value.code == "TEMPLATE_NOT_FOUND"
        assert "missing.html" in exc_info.value.message

    def test_parse_failure_not_cached(self, store, loader):
        """Test a failing template is re-read on the next load."""
        for _ in range(2):
            with pytest.raises(TemplateError) as exc_info:
                store.load("broken.html")
            assert exc_info.value.code == "TEMPLATE_UNCLOSED_TAG"
        assert "broken.html" not in store
        assert loader.reads["broken.html"] == 2

    def test_concurrent_loads_read_once(self, store, loader):
        """Test concurrent first loads share one parse."""
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(store.load("page.html"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(result is results[0] for result in results)
        assert loader.reads["page.html"] == 1

    def test_from_directory(self, templates_dir):
        (templates_dir / "a.html").write_text("A", encoding="utf-8")
        store = TemplateStore.from_directory(templates_dir)
        assert store.load("a.html").source == "A"
