"""Heuristic branch-count complexity.

Score = 1 + one per branching construct found in a body. Runs on masked
text, so keywords inside comments and literals are never counted. The
``if`` of an ``else if`` is counted on its own as well (overcount accepted).
"""

import re
from typing import Dict, Tuple

_IF = r"\bif\b"
_ELSE_IF = r"\belse\s+if\b"
_WHILE = r"\bwhile\b"
_FOR = r"\bfor\b"
_DO = r"\bdo\s*\{"
_SWITCH = r"\bswitch\b"
_CASE = r"\bcase\b"
_CATCH = r"\bcatch\b"
# "?" followed by a ":" in the same expression; skips "?." / "??" and
# generic wildcards such as "List<?>"
_TERNARY = r"(?<![<?])\?(?![?.>])(?=[^;{}]*:)"
_AND = r"&&"
_OR = r"\|\|"

_C_FAMILY = (_IF, _ELSE_IF, _WHILE, _FOR, _DO, _SWITCH, _CASE, _CATCH, _TERNARY, _AND, _OR)

_PATTERN_SETS: Dict[str, Tuple[str, ...]] = {
    "java": _C_FAMILY,
    "cpp": _C_FAMILY,
    "csharp": _C_FAMILY + (r"\bforeach\b", r"\?\?"),
    "javascript": _C_FAMILY + (r"\?\?",),
    "typescript": _C_FAMILY + (r"\?\?",),
    "python": (
        r"\bif\b",
        r"\belif\b",
        r"\bwhile\b",
        r"\bfor\b",
        r"\bexcept\b",
        r"\band\b",
        r"\bor\b",
    ),
}

_COMPILED = {
    language: tuple(re.compile(p) for p in patterns)
    for language, patterns in _PATTERN_SETS.items()
}


def score_complexity(body: str, language: str = "java") -> int:
    """Return the complexity score of a (masked) body, always >= 1."""
    patterns = _COMPILED.get(language, _COMPILED["java"])
    return 1 + sum(len(p.findall(body)) for p in patterns)
