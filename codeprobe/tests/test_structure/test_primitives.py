"""Tests for the shared extraction primitives."""

import re

import pytest

from codeprobe.core.structure.complexity import score_complexity
from codeprobe.core.structure.dependencies import collect_dependencies
from codeprobe.core.structure.diagnostics import (
    CPP_POLICY,
    INVALID_COLON,
    JAVA_POLICY,
    MISMATCHED_PARENS,
    MISSING_SEMICOLON,
    check_lines,
    check_paren_lines,
    check_python_lines,
)
from codeprobe.core.structure.docstrings import (
    HASH_MARKERS,
    associate_docstring,
    skip_leading_annotations,
    strip_comment_markers,
)
from codeprobe.core.structure.models import SEVERITY_ERROR, SEVERITY_WARNING
from codeprobe.core.structure.rules import Rule, apply_rules
from codeprobe.core.structure.test_candidates import CAMEL, PASCAL, SNAKE, generate_test_candidates


# =========================================================================
# Complexity
# =========================================================================

class TestComplexity:
    def test_empty_body_scores_one(self):
        assert score_complexity("", "java") == 1

    def test_if_with_and(self):
        assert score_complexity("if (a && b) { x(); }", "java") == 3

    def test_else_if_counts_both(self):
        assert score_complexity("if (a) {} else if (b) {}", "java") == 4

    def test_loops(self):
        assert score_complexity("while (x) { do { y(); } while (z); }", "java") == 4

    def test_ternary(self):
        assert score_complexity("return a > b ? a : b;", "java") == 2

    def test_generic_wildcard_is_not_a_ternary(self):
        assert score_complexity("List<?> xs = of(a, b);", "java") == 1

    def test_csharp_foreach_and_null_coalescing(self):
        assert score_complexity("foreach (var x in xs) { y = a ?? b; }", "csharp") == 3

    def test_python_keywords(self):
        body = "if a and b:\n    pass\nelif c or d:\n    pass"
        assert score_complexity(body, "python") == 5

    def test_identifiers_containing_keywords(self):
        assert score_complexity("iffy(); format(); endif();", "java") == 1

    def test_optional_chaining_is_not_a_ternary(self):
        assert score_complexity("const v = a?.b ?? c; if (x) {}", "javascript") == 3


# =========================================================================
# Dependencies
# =========================================================================

class TestDependencies:
    def test_java_calls_fields_and_construction(self):
        body = "int r = helper(x); this.count++; Foo f = new Foo();"
        assert collect_dependencies(body, "java") == frozenset({"helper", "count", "Foo"})

    def test_keywords_are_not_dependencies(self):
        body = "if (x) { while (y) { return (z); } }"
        assert collect_dependencies(body, "java") == frozenset()

    def test_cpp_members_and_qualified_new(self):
        body = "obj.run(); ptr->stop(); auto v = new std::vector<int>();"
        assert collect_dependencies(body, "cpp") == frozenset({"run", "stop", "obj", "ptr", "vector"})

    def test_cpp_chained_receivers(self):
        body = "a->b->c = 1; x.y.z();"
        assert collect_dependencies(body, "cpp") == frozenset({"a", "b", "x", "y", "z"})

    def test_python_dotted_chain_keeps_every_qualifier(self):
        assert collect_dependencies("os.path.join(a)", "python") == frozenset({"join", "os", "path"})

    def test_csharp_receivers_only(self):
        body = "var s = service.Load(id); var list = new List<int>(); Helper();"
        assert collect_dependencies(body, "csharp") == frozenset({"service", "List"})

    def test_python_calls_and_modules(self):
        body = "result = os.path.join(a, b)\nvalue = compute(x)"
        assert collect_dependencies(body, "python") == frozenset({"join", "compute", "os", "path"})

    def test_python_self_is_skipped(self):
        assert collect_dependencies("self.helper()", "python") == frozenset({"helper"})

    def test_script_calls_receivers_and_construction(self):
        body = "api.client.get(url); load?.(x); const s = new Set(); this.run();"
        assert collect_dependencies(body, "javascript") == frozenset({"api", "client", "load", "Set"})


# =========================================================================
# Docstrings
# =========================================================================

class TestDocstrings:
    def test_javadoc_block(self):
        lines = ["/**", " * Adds.", " */", "int add();"]
        assert associate_docstring(lines, 4) == "Adds."

    def test_consecutive_line_comments(self):
        lines = ["// one", "// two", "", "void f();"]
        assert associate_docstring(lines, 4) == "one\ntwo"

    def test_stops_at_code(self):
        lines = ["int x;", "// doc", "void f();"]
        assert associate_docstring(lines, 3) == "doc"

    def test_no_comment(self):
        assert associate_docstring(["int x;", "void f();"], 2) == ""

    def test_first_line_has_no_docstring(self):
        assert associate_docstring(["void f();"], 1) == ""

    def test_hash_comments(self):
        assert associate_docstring(["# helper", "def f():"], 2, HASH_MARKERS) == "helper"

    def test_triple_slash(self):
        lines = ["/// <summary>Adds</summary>", "int Add();"]
        assert associate_docstring(lines, 2) == "<summary>Adds</summary>"

    def test_single_line_block(self):
        assert strip_comment_markers("/** Doc */") == "Doc"

    def test_annotations_are_skipped(self):
        lines = ["/** Doc */", "@Override", "@Deprecated", "void f() {}"]
        anchor = skip_leading_annotations(lines, 4, ("@",))
        assert anchor == 2
        assert associate_docstring(lines, anchor) == "Doc"


# =========================================================================
# Test candidates
# =========================================================================

class TestTestCandidates:
    def test_camel_with_parameters(self):
        assert generate_test_candidates("add", 2, CAMEL) == (
            "testAddSuccess",
            "testAddWithInvalidParameters",
            "testAddWithNullParameters",
        )

    def test_camel_getter(self):
        assert generate_test_candidates("getValue", 0, CAMEL) == (
            "testGetValueSuccess",
            "testGetValueReturnsExpectedValue",
        )

    def test_prefix_needs_word_boundary(self):
        assert generate_test_candidates("getaway", 0, CAMEL) == ("testGetawaySuccess",)

    def test_snake_setter(self):
        assert generate_test_candidates("set_name", 1, SNAKE) == (
            "test_set_name_success",
            "test_set_name_invalid_parameters",
            "test_set_name_null_parameters",
            "test_set_name_updates_value",
        )

    def test_camel_boolean(self):
        assert generate_test_candidates("isEmpty", 0, CAMEL) == (
            "testIsEmptySuccess",
            "testIsEmptyReturnsTrueWhenConditionMet",
            "testIsEmptyReturnsFalseWhenConditionNotMet",
        )

    def test_can_is_boolean_only_in_pascal(self):
        assert generate_test_candidates("CanExecute", 0, PASCAL) == (
            "TestCanExecute_Success",
            "TestCanExecute_ReturnsTrueWhenConditionMet",
            "TestCanExecute_ReturnsFalseWhenConditionNotMet",
        )
        assert generate_test_candidates("canExecute", 0, CAMEL) == ("testCanExecuteSuccess",)

    def test_unknown_convention_falls_back_to_camel(self):
        assert generate_test_candidates("run", 0, "kebab") == ("testRunSuccess",)

    def test_deterministic(self):
        assert generate_test_candidates("hasItems", 3, SNAKE) == generate_test_candidates("hasItems", 3, SNAKE)


# =========================================================================
# Diagnostics
# =========================================================================

class TestDiagnostics:
    def test_brace_language_lines(self):
        errors, warnings = check_lines(["int x = 1", "foo(;", "if (x) {"], JAVA_POLICY)

        assert [(d.line, d.code, d.severity) for d in errors] == [(2, MISMATCHED_PARENS, SEVERITY_ERROR)]
        assert [(d.line, d.column, d.code, d.severity) for d in warnings] == [
            (1, 9, MISSING_SEMICOLON, SEVERITY_WARNING)
        ]

    def test_exempt_lines(self):
        lines = ["@Override", "public class A", "// note", "else", "}"]
        assert check_lines(lines, JAVA_POLICY) == ([], [])

    def test_cpp_directives_are_exempt(self):
        assert check_lines(["#include <x>", "namespace a"], CPP_POLICY) == ([], [])

    def test_python_lines(self):
        errors, warnings = check_python_lines(["x = {", "x + y:", "def f(:"])

        assert [(d.line, d.code) for d in errors] == [(3, MISMATCHED_PARENS)]
        assert [(d.line, d.column, d.code) for d in warnings] == [(2, 6, INVALID_COLON)]

    def test_python_valid_colons(self):
        lines = ["class A:", "    x: int", "    key:", "    else:"]
        assert check_python_lines(lines) == ([], [])

    def test_paren_lines_without_terminators(self):
        errors, warnings = check_paren_lines(["const a = (1", "  + 2)", "let b = 3"])

        assert [(d.line, d.code) for d in errors] == [(1, MISMATCHED_PARENS), (2, MISMATCHED_PARENS)]
        assert warnings == []


# =========================================================================
# Rules
# =========================================================================

class TestRules:
    def test_rules_apply_in_order_and_drop_none(self):
        rules = [
            Rule("word", re.compile(r"[a-z]+"), lambda m: m.group(0) if m.group(0) != "skip" else None),
            Rule("number", re.compile(r"\d+"), lambda m: int(m.group(0))),
        ]
        assert apply_rules(rules, "a 1 skip b 2") == ["a", "b", 1, 2]

    def test_range_limits_matches(self):
        rules = [Rule("word", re.compile(r"[a-z]+"), lambda m: m.group(0))]
        assert apply_rules(rules, "aa bb cc", 3, 5) == ["bb"]

    @pytest.mark.parametrize("text", ["", "   "])
    def test_no_matches(self, text):
        assert apply_rules([Rule("word", re.compile(r"[a-z]+"), lambda m: m)], text) == []
