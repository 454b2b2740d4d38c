"""Property-based tests for lexing, parsing and rendering."""

import html

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from djeno.errors import TemplateError
from djeno.template import DictLoader, TemplateEngine, parse, serialize, tokenize
from djeno.template.filters import to_text

NAMES = st.from_regex(r"^[a-z][a-z0-9_]{0,9}$", fullmatch=True)

PLAIN_TEXT = st.text(max_size=300).filter(lambda s: "{" not in s)

FRAGMENTS = st.sampled_from(
    [
        "text ",
        "<p>",
        "{{ x }}",
        "{{ user.name | upper }}",
        "{% if a %}A{% endif %}",
        "{% if a > 1 %}A{% elif b %}B{% else %}C{% endif %}",
        "{% for i in items %}{{ i }}{% endfor %}",
        "{% for k, v in pairs %}{{ k }}={{ v }}{% endfor %}",
        "{% block body %}default{% endblock %}",
        '{% include "partial.html" %}',
        "{# comment #}",
    ]
)


def make_engine(templates=None) -> TemplateEngine:
    return TemplateEngine(DictLoader(templates or {}))


@pytest.mark.property
class TestLexerProperties:
    """Property tests for the lexer."""

    @given(st.text(max_size=500))
    @settings(max_examples=200)
    def test_raw_spans_cover_source(self, source):
        """Concatenated raw token spans reproduce any source."""
        assert "".join(token.raw for token in tokenize(source)) == source

    @given(st.text(max_size=300))
    @settings(max_examples=100)
    def test_positions_match_offsets(self, source):
        """Each token's line/column agree with its offset."""
        for token in tokenize(source):
            before = source[: token.position.offset]
            assert token.position.line == before.count("\n") + 1
            assert token.position.column == len(before) - before.rfind("\n")


@pytest.mark.property
class TestParserProperties:
    """Property tests for the parser."""

    @given(st.lists(FRAGMENTS, max_size=15))
    @settings(max_examples=100)
    def test_serialize_then_parse_is_identity(self, fragments):
        """Re-parsing a serialized tree gives an equal tree."""
        tree = parse("".join(fragments))
        assert parse(serialize(tree)) == tree

    @given(st.lists(FRAGMENTS, min_size=1, max_size=5))
    @settings(max_examples=50)
    def test_wrapping_keeps_structure(self, fragments):
        """Any well-formed body can be nested inside if/for/block."""
        body = "".join(fragments)
        inner = parse(body)

        (conditional,) = parse(f"{{% if c %}}{body}{{% endif %}}")
        assert conditional.branches[0].body == inner

        (loop,) = parse(f"{{% for c in cs %}}{body}{{% endfor %}}")
        assert loop.body == inner

        (block,) = parse(f"{{% block outer %}}{body}{{% endblock %}}")
        assert block.body == inner


@pytest.mark.property
class TestRenderProperties:
    """Property tests for rendering."""

    @given(PLAIN_TEXT)
    @settings(max_examples=200)
    def test_text_without_delimiters_renders_identically(self, source):
        """Text with no delimiters renders unchanged."""
        assert make_engine().render_string(source) == source

    @given(
        st.one_of(
            st.text(max_size=100),
            st.integers(),
            st.floats(allow_nan=False, allow_infinity=False),
            st.booleans(),
            st.none(),
        )
    )
    @settings(max_examples=200)
    def test_variable_output_is_escaped(self, value):
        """Interpolated values never contain raw HTML metacharacters."""
        result = make_engine().render_string("{{ v }}", {"v": value})
        assert not any(char in result for char in "<>\"'")
        assert html.unescape(result) == to_text(value)

    @given(st.lists(st.integers(), max_size=20))
    @settings(max_examples=50)
    def test_loop_visits_every_item_in_order(self, items):
        """A loop emits one body per element, in order."""
        result = make_engine().render_string(
            "{% for i in items %}{{ i }},{% endfor %}", {"items": items}
        )
        assert result == "".join(f"{i}," for i in items)

    @given(st.dictionaries(NAMES, st.integers(), max_size=10))
    @settings(max_examples=50)
    def test_mapping_loop_preserves_insertion_order(self, pairs):
        result = make_engine().render_string(
            "{% for k, v in pairs %}{{ k }}={{ v }};{% endfor %}", {"pairs": pairs}
        )
        assert result == "".join(f"{k}={v};" for k, v in pairs.items())

    @given(st.integers(), st.integers())
    @settings(max_examples=100)
    def test_numeric_comparisons(self, a, b):
        """Comparison tests agree with Python's numeric ordering."""
        engine = make_engine()
        context = {"a": a, "b": b}
        for op, expected in (("<", a < b), (">=", a >= b), ("==", a == b), ("!=", a != b)):
            source = f"{{% if a {op} b %}}yes{{% else %}}no{{% endif %}}"
            assert engine.render_string(source, context) == ("yes" if expected else "no")

    @given(st.text(max_size=200))
    @settings(max_examples=200)
    def test_arbitrary_source_only_raises_template_error(self, source):
        """Arbitrary input either renders or fails with a TemplateError."""
        try:
            make_engine().render_string(source, {"x": 1})
        except TemplateError:
            pass
        except Exception as e:
            pytest.fail(f"Unexpected exception: {type(e).__name__}: {e}")

    @given(st.text(max_size=10))
    @settings(max_examples=200)
    def test_index_lookup_with_any_key_never_raises(self, key):
        """Indexing by arbitrary text resolves or renders empty, never raises."""
        engine = make_engine()
        context = {"items": ["a", "b", "c"], "mapping": {"": "other"}, "k": key}
        output = engine.render_string("{{ items[k] }}|{{ mapping[k] }}", context)
        is_index = key.isascii() and key.isdigit() and int(key) < 3
        expected = ["a", "b", "c"][int(key)] if is_index else ""
        assert output.split("|") == [expected, "other" if key == "" else ""]
        flag = engine.render_string("{% if items[k] %}Y{% else %}N{% endif %}", context)
        assert flag == ("Y" if expected else "N")

    @given(st.text(max_size=50).filter(lambda s: "{" not in s))
    @settings(max_examples=50)
    def test_child_block_replaces_parent_default(self, content):
        """An override body renders in place of the parent's default."""
        engine = make_engine({"base.html": "[{% block b %}default{% endblock %}]"})
        child = f'{{% extends "base.html" %}}{{% block b %}}{content}{{% endblock %}}'
        assert engine.render_string(child) == f"[{content}]"
