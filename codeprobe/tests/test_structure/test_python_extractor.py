"""Tests for the Python extractor."""

import pytest

from codeprobe.core.structure import PythonExtractor


# =========================================================================
# Sample Python source fixtures
# =========================================================================

ORDERS = '''"""Order utilities."""

import os
import numpy as np, sys
from typing import (
    Dict,
    List as L,
)
from . import helpers
from .models import *

__all__ = ["Order", "load_orders", "VERSION"]

VERSION = "1.0"


# Loads orders from disk.
def load_orders(path: str, *paths, limit: int = 10, **options) -> List[Dict]:
    if not os.path.exists(path) and limit > 0:
        return []
    return [parse(p) for p in paths]


async def fetch(url,
                timeout=5.0):
    """Fetch a URL."""
    return await client.get(url)


class Order(Base, Mixin, metaclass=Meta):
    """A customer order.

    Holds line items.
    """

    currency = "EUR"
    total: float = 0.0
    items: List[str]

    def __init__(self, order_id: int, note=None):
        self.order_id = order_id
        self._note: str = note

    @property
    def is_paid(self) -> bool:
        return self.total > 0

    @staticmethod
    def from_dict(data: dict) -> "Order":
        def _inner():
            pass
        return Order(data["id"])

    class Line:
        def price(self):
            return 1


def _private_helper(x, /, y, *, z):
    return x
'''

NO_ALL = '''
def public():
    pass


def _hidden():
    pass


class Thing:
    pass
'''

DECOY_STRINGS = '''
text = """
def ghost():
    pass
"""

def real():
    # class Fake:
    return "def nope(): pass"
'''


def _line(source: str, needle: str) -> int:
    for number, line in enumerate(source.split("\n"), start=1):
        if needle in line:
            return number
    raise AssertionError(f"{needle!r} not in source")


@pytest.fixture
def summary():
    return PythonExtractor().parse(ORDERS)


def _function(summary, name):
    return next(f for f in summary.functions if f.name == name)


def _class(summary, name):
    return next(c for c in summary.classes if c.name == name)


# =========================================================================
# Functions
# =========================================================================

class TestPythonFunctions:
    def test_module_level_functions(self, summary):
        assert [f.name for f in summary.functions] == ["load_orders", "fetch", "_private_helper"]

    def test_parameters(self, summary):
        load = _function(summary, "load_orders")

        assert [(p.name, p.type, p.modifier) for p in load.parameters] == [
            ("path", "str", None),
            ("paths", "tuple", "*"),
            ("limit", "int", None),
            ("options", "dict", "**"),
        ]
        assert load.parameters[2].default_value == "10"
        assert load.parameters[1].is_variadic is True

    def test_return_type_and_lines(self, summary):
        load = _function(summary, "load_orders")

        assert load.return_type == "List[Dict]"
        assert load.start_line == _line(ORDERS, "def load_orders")
        assert load.end_line == _line(ORDERS, "return [parse(p) for p in paths]")

    def test_complexity_and_dependencies(self, summary):
        load = _function(summary, "load_orders")

        assert load.complexity == 4
        assert load.dependencies == frozenset({"exists", "parse", "os", "path"})

    def test_comment_docstring_fallback(self, summary):
        assert _function(summary, "load_orders").docstring == "Loads orders from disk."

    def test_async_multiline_header(self, summary):
        fetch = _function(summary, "fetch")

        assert fetch.is_async is True
        assert fetch.modifiers == ("async",)
        assert fetch.docstring == "Fetch a URL."
        assert fetch.return_type == "Any"
        assert [(p.name, p.default_value) for p in fetch.parameters] == [("url", None), ("timeout", "5.0")]
        assert fetch.start_line == _line(ORDERS, "async def fetch")
        assert fetch.end_line == _line(ORDERS, "return await client.get(url)")

    def test_parameter_markers_are_dropped(self, summary):
        helper = _function(summary, "_private_helper")

        assert [p.name for p in helper.parameters] == ["x", "y", "z"]
        assert helper.visibility == "protected"
        assert helper.is_exported is False

    def test_snake_case_candidates(self, summary):
        assert _function(summary, "load_orders").test_candidates == (
            "test_load_orders_success",
            "test_load_orders_invalid_parameters",
            "test_load_orders_null_parameters",
        )

    def test_one_line_suite(self):
        result = PythonExtractor().parse("def f(): return 1\nx = 2\n")

        f = result.functions[0]
        assert (f.start_line, f.end_line) == (1, 1)


# =========================================================================
# Classes
# =========================================================================

class TestPythonClasses:
    def test_classes(self, summary):
        assert [(c.name, c.parent_name) for c in summary.classes] == [("Order", None), ("Line", "Order")]

    def test_bases_and_keywords(self, summary):
        order = _class(summary, "Order")

        assert order.extends == "Base"
        assert order.implements == ("Mixin",)
        assert order.metadata["metaclass"] == "Meta"

    def test_docstring_is_cleaned(self, summary):
        assert _class(summary, "Order").docstring == "A customer order.\n\nHolds line items."

    def test_methods(self, summary):
        order = _class(summary, "Order")
        assert [m.name for m in order.methods] == ["__init__", "is_paid", "from_dict"]

    def test_constructor_drops_self(self, summary):
        init = _class(summary, "Order").methods[0]

        assert init.is_constructor is True
        assert init.return_type is None
        assert [(p.name, p.type, p.default_value) for p in init.parameters] == [
            ("order_id", "int", None),
            ("note", "Any", "None"),
        ]

    def test_property_decorator(self, summary):
        is_paid = _class(summary, "Order").methods[1]

        assert is_paid.modifiers == ("property",)
        assert is_paid.metadata["isProperty"] is True
        assert is_paid.return_type == "bool"
        assert is_paid.parameters == ()
        assert is_paid.test_candidates == (
            "test_is_paid_success",
            "test_is_paid_returns_true_when_condition_met",
            "test_is_paid_returns_false_when_condition_not_met",
        )

    def test_staticmethod(self, summary):
        from_dict = _class(summary, "Order").methods[2]

        assert from_dict.is_static is True
        assert [p.name for p in from_dict.parameters] == ["data"]
        assert from_dict.return_type == '"Order"'

    def test_nested_def_is_not_a_member(self, summary):
        names = {m.name for c in summary.classes for m in c.methods}
        names |= {f.name for f in summary.functions}
        assert "_inner" not in names

    def test_nested_class_methods(self, summary):
        line = _class(summary, "Line")

        assert [m.name for m in line.methods] == ["price"]
        assert line.methods[0].parameters == ()
        assert line.methods[0].parent_name == "Line"

    def test_attributes(self, summary):
        order = _class(summary, "Order")

        assert [(p.name, p.type, p.is_static) for p in order.properties] == [
            ("currency", "Any", True),
            ("total", "float", False),
            ("items", "List[str]", False),
            ("order_id", "Any", False),
            ("_note", "str", False),
        ]
        assert order.properties[0].default_value == '"EUR"'
        assert order.properties[1].default_value == "0.0"
        assert order.properties[4].visibility == "private"

    def test_class_lines_cover_members(self, summary):
        order = _class(summary, "Order")

        assert order.start_line == _line(ORDERS, "class Order")
        assert order.end_line == _line(ORDERS, "            return 1")
        for method in order.methods:
            assert order.start_line < method.start_line <= method.end_line <= order.end_line


# =========================================================================
# Imports, exports, literals
# =========================================================================

class TestPythonModule:
    def test_imports(self, summary):
        assert [(i.source, [n.name for n in i.imports], i.is_external) for i in summary.imports] == [
            ("os", ["os"], True),
            ("numpy", ["numpy"], True),
            ("sys", ["sys"], True),
            ("typing", ["Dict", "List"], True),
            (".", ["helpers"], False),
            (".models", ["*"], False),
        ]

    def test_import_aliases(self, summary):
        numpy = summary.imports[1].imports[0]
        typing_names = summary.imports[3].imports

        assert (numpy.alias, numpy.is_default) == ("np", True)
        assert typing_names[1].alias == "L"
        assert typing_names[1].is_default is False
        assert summary.imports[3].line == _line(ORDERS, "from typing import")

    def test_dunder_all_exports(self, summary):
        assert [(e.name, e.type) for e in summary.exports] == [
            ("Order", "class"),
            ("load_orders", "function"),
            ("VERSION", "variable"),
        ]

    def test_public_names_without_dunder_all(self):
        result = PythonExtractor().parse(NO_ALL)
        assert [(e.name, e.type) for e in result.exports] == [("public", "function"), ("Thing", "class")]

    def test_definitions_inside_strings_are_ignored(self):
        result = PythonExtractor().parse(DECOY_STRINGS)

        assert [f.name for f in result.functions] == ["real"]
        assert result.classes == ()
