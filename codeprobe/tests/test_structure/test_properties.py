"""Property-based checks: extractors never raise and keep their invariants."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from codeprobe.core.structure import build_registry
from codeprobe.core.structure.test_candidates import CAMEL, PASCAL, SNAKE, generate_test_candidates
from codeprobe.core.structure.text_utils import find_matching_bracket

REGISTRY = build_registry()
LANGUAGES = REGISTRY.languages()

# Fragments that look like code so generated inputs reach the declaration rules
CODE_FRAGMENTS = st.sampled_from([
    "class A", "struct B", "def f", "void g", "int", "(", ")", "{", "}", "[", "]",
    "<", ">", ";", ":", ",", "=", "\n", "    ", "\"", "'", "/*", "*/", "//", "#",
    "#include <x>", "import a.b", "using System;", "public", "static", "return",
    "if", "else", "for", "async", "@property", "\"\"\"", "x", "->", "::", "=>",
])
CODE_LIKE = st.lists(CODE_FRAGMENTS, max_size=60).map(" ".join)

BALANCED = st.recursive(
    st.just(""),
    lambda children: st.tuples(st.sampled_from(["()", "[]", "{}"]), children, children).map(
        lambda t: t[0][0] + t[1] + t[0][1] + t[2]
    ),
    max_leaves=20,
)


def _check_summary(summary, language):
    assert summary.language == language
    for func in summary.iter_callables():
        assert 1 <= func.start_line <= func.end_line
        assert func.complexity >= 1
    for cls in summary.classes:
        assert 1 <= cls.start_line <= cls.end_line
    for diagnostic in summary.syntax_errors + summary.warnings:
        assert diagnostic.line >= 1


class TestNeverRaises:
    @pytest.mark.parametrize("language", LANGUAGES)
    @settings(max_examples=50, deadline=None)
    @given(text=st.text())
    def test_arbitrary_text(self, language, text):
        _check_summary(REGISTRY.parse(text, language), language)

    @pytest.mark.parametrize("language", LANGUAGES)
    @settings(max_examples=50, deadline=None)
    @given(text=CODE_LIKE)
    def test_code_like_text(self, language, text):
        _check_summary(REGISTRY.parse(text, language), language)

    @pytest.mark.parametrize("language", LANGUAGES)
    @settings(max_examples=30, deadline=None)
    @given(data=st.binary())
    def test_arbitrary_bytes(self, language, data):
        _check_summary(REGISTRY.parse(data, language), language)

    @pytest.mark.parametrize("language", LANGUAGES)
    @settings(max_examples=25, deadline=None)
    @given(text=CODE_LIKE)
    def test_deterministic(self, language, text):
        assert REGISTRY.parse(text, language) == REGISTRY.parse(text, language)


class TestPrimitiveProperties:
    @settings(max_examples=100, deadline=None)
    @given(inner=BALANCED)
    def test_outer_bracket_matches_last_character(self, inner):
        text = "(" + inner + ")"
        assert find_matching_bracket(text, 0) == len(text) - 1

    @settings(max_examples=100, deadline=None)
    @given(
        name=st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,15}", fullmatch=True),
        count=st.integers(min_value=0, max_value=5),
        convention=st.sampled_from([CAMEL, SNAKE, PASCAL]),
    )
    def test_test_candidates(self, name, count, convention):
        candidates = generate_test_candidates(name, count, convention)

        assert candidates == generate_test_candidates(name, count, convention)
        assert len(candidates) == len(set(candidates))
        assert 1 <= len(candidates) <= 5
        assert candidates[0].lower().startswith("test")
        if count > 0:
            assert candidates[1:3] == generate_test_candidates(name, 1, convention)[1:3]
