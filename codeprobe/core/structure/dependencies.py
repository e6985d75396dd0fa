"""Identifier dependencies of a function body.

Collects names from call syntax, field access and construction syntax.
Input is masked body text; keywords that look like calls are discarded.
"""

import re
from typing import Callable, Dict, FrozenSet, Iterable, Pattern

_CALL_RE = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
_NEW_RE = re.compile(r"\bnew\s+((?:[A-Za-z_]\w*\s*(?:\.|::)\s*)*[A-Za-z_]\w*)")
_THIS_FIELD_RE = re.compile(r"\bthis\s*\.\s*([A-Za-z_]\w*)")
_MEMBER_RE = re.compile(r"\b([A-Za-z_]\w*)(?=\s*(?:\.|->)\s*[A-Za-z_])")
_RECEIVER_CALL_RE = re.compile(r"\b([A-Za-z_]\w*)\s*\.\s*[A-Za-z_]\w*\s*\(")
_ATTRIBUTE_RE = re.compile(r"\b([A-Za-z_]\w*)(?=\s*\.\s*[A-Za-z_])")
_QUALIFIER_RE = re.compile(r"\s*(?:\.|::)\s*")

_SCRIPT_IDENT = r"[A-Za-z_$][\w$]*"
_SCRIPT_CALL_RE = re.compile(r"(?<![\w$.#])(" + _SCRIPT_IDENT + r")\s*(?:\?\.\s*)?\(")
# Every object in the chain of a member call: "a.b.c()" → a, b
_SCRIPT_RECEIVER_RE = re.compile(
    r"(?<![\w$#])(" + _SCRIPT_IDENT + r")(?=(?:\s*\??\.\s*#?" + _SCRIPT_IDENT + r")+\s*(?:\?\.\s*)?\()"
)
_SCRIPT_NEW_RE = re.compile(r"\bnew\s+(" + _SCRIPT_IDENT + r"(?:\s*\.\s*" + _SCRIPT_IDENT + r")*)")

# Words followed by "(" (or used as receivers) that are not dependencies
_NON_CALL_WORDS = frozenset({
    "if", "else", "for", "foreach", "while", "do", "switch", "case", "catch",
    "try", "finally", "return", "throw", "throws", "new", "delete", "sizeof",
    "typeof", "nameof", "alignof", "decltype", "static_assert", "assert",
    "synchronized", "using", "lock", "fixed", "checked", "unchecked",
    "default", "when", "where", "await", "yield", "super", "this", "base",
    "and", "or", "not", "in", "is", "lambda", "with", "elif", "except",
    "def", "class", "from", "import", "noexcept", "operator",
    "static_cast", "dynamic_cast", "const_cast", "reinterpret_cast",
    "self", "cls", "function", "void", "instanceof", "async", "of",
})


def _names(pattern: Pattern[str], body: str) -> Iterable[str]:
    return (m.group(1) for m in pattern.finditer(body))


def _java(body: str) -> Iterable[str]:
    yield from _names(_CALL_RE, body)
    yield from _names(_THIS_FIELD_RE, body)
    yield from _names(_NEW_RE, body)


def _cpp(body: str) -> Iterable[str]:
    yield from _names(_CALL_RE, body)
    yield from _names(_NEW_RE, body)
    yield from _names(_MEMBER_RE, body)


def _csharp(body: str) -> Iterable[str]:
    yield from _names(_RECEIVER_CALL_RE, body)
    yield from _names(_NEW_RE, body)


def _python(body: str) -> Iterable[str]:
    yield from _names(_CALL_RE, body)
    yield from _names(_ATTRIBUTE_RE, body)


def _script(body: str) -> Iterable[str]:
    yield from _names(_SCRIPT_CALL_RE, body)
    yield from _names(_SCRIPT_RECEIVER_RE, body)
    yield from _names(_SCRIPT_NEW_RE, body)


_COLLECTORS: Dict[str, Callable[[str], Iterable[str]]] = {
    "java": _java,
    "cpp": _cpp,
    "csharp": _csharp,
    "python": _python,
    "javascript": _script,
    "typescript": _script,
}


def collect_dependencies(body: str, language: str = "java") -> FrozenSet[str]:
    """Return the de-duplicated identifier set referenced by ``body``.

    Java: calls, ``this.field`` and ``new Type(``. C++: calls, ``new Type``
    and every receiver in an ``a.b->c`` chain. C#: the receiver
    of ``Receiver.Member(`` and ``new Type``. Python: calls and every
    qualifier of a dotted ``package.module.attr`` chain. JavaScript and
    TypeScript: calls, every object of a member call chain
    (``a.b.c()`` gives ``a`` and ``b``) and ``new Type``.
    """
    collector = _COLLECTORS.get(language, _java)
    found = set()
    for name in collector(body):
        # "new std::vector" → "vector"
        name = _QUALIFIER_RE.split(name)[-1]
        if name and name not in _NON_CALL_WORDS:
            found.add(name)
    return frozenset(found)
