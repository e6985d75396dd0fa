"""Suggested unit-test names for a declaration.

Candidates depend only on the declaration's name, its parameter count and
the naming convention of the target language:

- ``camel`` (Java, JavaScript, TypeScript): ``testAddSuccess``, ``testAddWithInvalidParameters``
- ``snake`` (C++, Python): ``test_add_success``, ``test_add_invalid_parameters``
- ``pascal`` (C#): ``TestAdd_Success``, ``TestAdd_WithInvalidParameters``
"""

from typing import Dict, List, Tuple

CAMEL = "camel"
SNAKE = "snake"
PASCAL = "pascal"

# Suffix key → per-convention spelling
_SUFFIXES: Dict[str, Dict[str, str]] = {
    "success": {CAMEL: "Success", SNAKE: "success", PASCAL: "Success"},
    "invalid": {CAMEL: "WithInvalidParameters", SNAKE: "invalid_parameters", PASCAL: "WithInvalidParameters"},
    "null": {CAMEL: "WithNullParameters", SNAKE: "null_parameters", PASCAL: "WithNullParameters"},
    "getter": {CAMEL: "ReturnsExpectedValue", SNAKE: "returns_expected_value", PASCAL: "ReturnsExpectedValue"},
    "setter": {CAMEL: "UpdatesValue", SNAKE: "updates_value", PASCAL: "UpdatesValue"},
    "true": {
        CAMEL: "ReturnsTrueWhenConditionMet",
        SNAKE: "returns_true_when_condition_met",
        PASCAL: "ReturnsTrueWhenConditionMet",
    },
    "false": {
        CAMEL: "ReturnsFalseWhenConditionNotMet",
        SNAKE: "returns_false_when_condition_not_met",
        PASCAL: "ReturnsFalseWhenConditionNotMet",
    },
}


# Accessor conventions, checked in order; first match wins
_GETTER = "get"
_SETTER = "set"
_BOOLEAN = ("is", "has")
_PASCAL_BOOLEAN = ("is", "has", "can")


def _has_prefix(name: str, prefix: str) -> bool:
    """Case-insensitive prefix match that requires a word boundary after it."""
    if len(name) <= len(prefix) or name[:len(prefix)].lower() != prefix:
        return False
    # getValue, get_value, GetValue, get2; not getaway
    nxt = name[len(prefix)]
    return nxt == "_" or nxt.isdigit() or nxt.isupper()


def _base(name: str, convention: str) -> str:
    if convention == SNAKE:
        return f"test_{name}"
    capitalized = name[:1].upper() + name[1:]
    if convention == PASCAL:
        return f"Test{capitalized}"
    return f"test{capitalized}"


def _join(base: str, key: str, convention: str) -> str:
    suffix = _SUFFIXES[key][convention]
    if convention == CAMEL:
        return base + suffix
    return f"{base}_{suffix}"


def generate_test_candidates(name: str, parameter_count: int, convention: str = CAMEL) -> Tuple[str, ...]:
    """Return suggested test identifiers for a declaration.

    Args:
        name: Declaration name
        parameter_count: Number of declared parameters
        convention: ``camel``, ``snake`` or ``pascal``

    Returns:
        Success case; invalid/null-parameter cases when there are
        parameters; then at most one accessor group (getter, setter or
        boolean predicate).
    """
    if convention not in (CAMEL, SNAKE, PASCAL):
        convention = CAMEL
    base = _base(name, convention)

    keys: List[str] = ["success"]
    if parameter_count > 0:
        keys.extend(("invalid", "null"))

    boolean_prefixes = _PASCAL_BOOLEAN if convention == PASCAL else _BOOLEAN
    if _has_prefix(name, _GETTER):
        keys.append("getter")
    elif _has_prefix(name, _SETTER):
        keys.append("setter")
    elif any(_has_prefix(name, p) for p in boolean_prefixes):
        keys.extend(("true", "false"))

    return tuple(_join(base, key, convention) for key in keys)
