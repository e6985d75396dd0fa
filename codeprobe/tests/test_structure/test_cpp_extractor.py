"""Tests for the C++ extractor."""

import time

import pytest

from codeprobe.core.structure import CppExtractor
from codeprobe.core.structure.cpp_extractor import blank_directives


# =========================================================================
# Sample C++ source fixtures
# =========================================================================

GEOMETRY = '''
#include <vector>
#include "shape.h"
#define MAX(a, b) ((a) > (b) ? (a) : (b))

namespace geo {

/// Base shape.
class Shape {
public:
    Shape(int id) : id_(id) {}
    virtual ~Shape() {}
    virtual double area() const = 0;
    int id() const { return id_; }
protected:
    int id_;
private:
    static int count_;
};

struct Point {
    double x = 0.0;
    double y{1.0};
};

class Circle : public Shape, private Drawable {
    double r_;
public:
    explicit Circle(double r);
    double area() const override;
};

double Circle::area() const {
    return 3.14 * r_ * r_;
}

static int helper(int a, int b = 2) {
    if (a > b || a == 0) {
        return a;
    }
    return b;
}

int compute(std::vector<int>& values);

}  // namespace geo

namespace {
int hidden() { return 1; }
}

enum class Mode { On, Off };

extern "C" {
int c_api(const char* name);
}

int main() {
    for (int i = 0; i < 3; ++i) {
        compute(i);
    }
    return 0;
}
'''

OUT_OF_LINE = '''
Widget::Widget(int size) : size_(size), name_{"w"} {}
auto Widget::size() const -> int { return size_; }
Widget::~Widget() {}
bool operator==(const Widget& a, const Widget& b);
'''

TEMPLATE = '''
// Larger of two.
template <typename T>
T max_of(T a, T b) { return a > b ? a : b; }
'''


def _line(source: str, needle: str) -> int:
    for number, line in enumerate(source.split("\n"), start=1):
        if needle in line:
            return number
    raise AssertionError(f"{needle!r} not in source")


@pytest.fixture
def summary():
    return CppExtractor().parse(GEOMETRY)


def _class(summary, name):
    return next(c for c in summary.classes if c.name == name)


def _function(summary, name):
    return next(f for f in summary.functions if f.name == name)


# =========================================================================
# Free functions
# =========================================================================

class TestCppFunctions:
    def test_top_level_functions(self, summary):
        assert [f.name for f in summary.functions] == ["area", "helper", "compute", "hidden", "c_api", "main"]

    def test_static_function(self, summary):
        helper = _function(summary, "helper")

        assert helper.is_static is True
        assert helper.is_exported is False
        assert helper.complexity == 3
        assert helper.start_line == _line(GEOMETRY, "static int helper")
        assert helper.end_line == _line(GEOMETRY, "    return b;") + 1
        a, b = helper.parameters
        assert (a.name, a.type, a.optional) == ("a", "int", False)
        assert (b.name, b.type, b.default_value, b.optional) == ("b", "int", "2", True)
        assert helper.test_candidates == (
            "test_helper_success",
            "test_helper_invalid_parameters",
            "test_helper_null_parameters",
        )

    def test_prototype(self, summary):
        compute = _function(summary, "compute")

        assert compute.has_body is False
        assert compute.is_exported is True
        assert [(p.name, p.type) for p in compute.parameters] == [("values", "std::vector<int>&")]

    def test_out_of_line_member_definition(self, summary):
        area = _function(summary, "area")

        assert area.parent_name == "Circle"
        assert area.return_type == "double"
        assert area.metadata["isConst"] is True

    def test_anonymous_namespace_is_not_exported(self, summary):
        assert _function(summary, "hidden").is_exported is False

    def test_extern_c_block(self, summary):
        c_api = _function(summary, "c_api")

        assert c_api.is_exported is True
        assert [(p.name, p.type) for p in c_api.parameters] == [("name", "const char*")]

    def test_statements_are_not_functions(self, summary):
        main = _function(summary, "main")

        assert main.complexity == 2
        assert main.dependencies == frozenset({"compute"})
        assert [f.name for f in summary.functions].count("compute") == 1

    def test_out_of_line_constructor_and_trailing_return(self):
        result = CppExtractor().parse(OUT_OF_LINE)

        assert [f.name for f in result.functions] == ["Widget", "size"]
        constructor, size = result.functions
        assert constructor.is_constructor is True
        assert constructor.return_type is None
        assert constructor.parent_name == "Widget"
        assert size.return_type == "int"

    def test_template_function(self):
        result = CppExtractor().parse(TEMPLATE)

        max_of = result.functions[0]
        assert max_of.name == "max_of"
        assert max_of.return_type == "T"
        assert max_of.complexity == 2
        assert max_of.docstring == "Larger of two."


# =========================================================================
# Classes
# =========================================================================

class TestCppClasses:
    def test_class_names_and_kinds(self, summary):
        assert [(c.name, c.kind) for c in summary.classes] == [
            ("Shape", "class"),
            ("Point", "struct"),
            ("Circle", "class"),
            ("Mode", "enum"),
        ]

    def test_methods_and_access(self, summary):
        shape = _class(summary, "Shape")

        assert [m.name for m in shape.methods] == ["Shape", "area", "id"]
        assert all(m.visibility == "public" for m in shape.methods)
        assert [label["type"] for label in shape.metadata["accessSpecifiers"]] == [
            "public",
            "protected",
            "private",
        ]

    def test_constructor(self, summary):
        constructor = _class(summary, "Shape").methods[0]

        assert constructor.is_constructor is True
        assert constructor.return_type is None
        assert [(p.name, p.type) for p in constructor.parameters] == [("id", "int")]

    def test_pure_virtual(self, summary):
        area = _class(summary, "Shape").methods[1]

        assert area.has_body is False
        assert area.metadata["isPureVirtual"] is True
        assert area.metadata["isVirtual"] is True
        assert area.metadata["isConst"] is True

    def test_inline_member(self, summary):
        member = _class(summary, "Shape").methods[2]
        assert member.metadata["isInline"] is True

    def test_fields_follow_access_labels(self, summary):
        shape = _class(summary, "Shape")

        assert [(p.name, p.visibility, p.is_static) for p in shape.properties] == [
            ("id_", "protected", False),
            ("count_", "private", True),
        ]

    def test_struct_fields_default_public(self, summary):
        point = _class(summary, "Point")

        assert [(p.name, p.visibility, p.default_value) for p in point.properties] == [
            ("x", "public", "0.0"),
            ("y", "public", "{1.0}"),
        ]

    def test_bases(self, summary):
        circle = _class(summary, "Circle")

        assert circle.extends == "Shape"
        assert circle.implements == ("Drawable",)
        assert [p.name for p in circle.properties] == ["r_"]
        assert circle.properties[0].visibility == "private"

    def test_override_declaration(self, summary):
        circle = _class(summary, "Circle")

        assert [m.name for m in circle.methods] == ["Circle", "area"]
        assert circle.methods[1].metadata["isOverride"] is True
        assert circle.methods[1].has_body is False

    def test_scoped_enum(self, summary):
        mode = _class(summary, "Mode")

        assert mode.metadata["isScoped"] is True
        assert mode.methods == ()

    def test_docstring(self, summary):
        assert _class(summary, "Shape").docstring == "Base shape."


# =========================================================================
# Includes, exports and diagnostics
# =========================================================================

class TestCppModule:
    def test_includes(self, summary):
        assert [(i.source, i.is_external, i.line) for i in summary.imports] == [
            ("vector", True, _line(GEOMETRY, "#include <vector>")),
            ("shape.h", False, _line(GEOMETRY, '#include "shape.h"')),
        ]

    def test_include_in_comment_is_ignored(self):
        result = CppExtractor().parse("/*\n#include <map>\n*/\n#include <set>\n")
        assert [i.source for i in result.imports] == ["set"]

    def test_exports(self, summary):
        assert [(e.name, e.type) for e in summary.exports] == [
            ("area", "function"),
            ("compute", "function"),
            ("c_api", "function"),
            ("main", "function"),
            ("Shape", "class"),
            ("Point", "struct"),
            ("Circle", "class"),
        ]

    def test_macro_is_not_parsed(self, summary):
        assert "MAX" not in {f.name for f in summary.functions}
        assert summary.syntax_errors == ()

    def test_blank_directives_keeps_lines(self):
        code = "#define X(a) \\\n  (a)\nint y;"
        blanked = blank_directives(code)

        assert len(blanked) == len(code)
        assert blanked.count("\n") == 2
        assert blanked.endswith("int y;")
        assert "define" not in blanked


# =========================================================================
# Specifier runs and pathological input
# =========================================================================

SPECIFIERS = '''
class Counter {
    static const int kMax = 4;
    unsigned long long total_;
    long double ratio_;
    const char* label_;
    int** grid_;
public:
    static unsigned long long count();
    const std::string& name() const;
};
'''


class TestCppSpecifiers:
    def test_field_types_and_modifiers(self):
        counter = _class(CppExtractor().parse(SPECIFIERS), "Counter")

        assert [(p.name, p.type, p.modifiers) for p in counter.properties] == [
            ("kMax", "int", ("static", "const")),
            ("total_", "unsigned long long", ()),
            ("ratio_", "long double", ()),
            ("label_", "char*", ("const",)),
            ("grid_", "int**", ()),
        ]
        assert counter.properties[0].default_value == "4"

    def test_return_types(self):
        counter = _class(CppExtractor().parse(SPECIFIERS), "Counter")

        assert [(m.name, m.return_type, m.is_static) for m in counter.methods] == [
            ("count", "unsigned long long", True),
            ("name", "const std::string&", False),
        ]

    @pytest.mark.parametrize("source", [
        "const " * 640,
        "class A {\n  " + "const volatile " * 200 + "int x;\n};",
        "void g() { " + "long " * 600 + "x; }",
        "int " + "* " * 400 + "(",
        "class A {\n  " + "static mutable " * 300 + "\n};",
    ])
    def test_long_specifier_runs_finish_quickly(self, source):
        started = time.perf_counter()
        CppExtractor().parse(source)
        assert time.perf_counter() - started < 2.0

    def test_long_qualifier_run_still_yields_field(self):
        result = CppExtractor().parse("class A {\n  " + "const volatile " * 200 + "int x;\n};")
        assert [p.name for p in result.classes[0].properties] == ["x"]
