"""Ordered declaration-recognition rules.

A rule pairs a compiled pattern with a handler. Extractors keep an explicit
ordered list of rules per declaration kind and run it over a span of the
masked text; every handler result that is not ``None`` is collected.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Pattern, Sequence


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: Pattern[str]
    handler: Callable[["re.Match[str]"], Optional[Any]]


def apply_rules(
    rules: Sequence[Rule],
    code: str,
    start: int = 0,
    end: Optional[int] = None,
) -> List[Any]:
    """Run ``rules`` in order over ``code[start:end]``.

    Patterns are matched against the full string with ``pos``/``endpos`` so
    match offsets stay absolute. Results keep rule order, then match order.
    """
    if end is None:
        end = len(code)
    results: List[Any] = []
    for rule in rules:
        for match in rule.pattern.finditer(code, start, end):
            result = rule.handler(match)
            if result is not None:
                results.append(result)
    return results


def not_after_words(words: Iterable[str]) -> str:
    """Lookbehinds refusing a match that starts one space after any of ``words``.

    Declaration patterns open with a run of modifier words; a match that
    starts inside that run would only repeat the scan from the run's start.
    """
    return "".join(r"(?<!\b" + re.escape(word) + r"\s)" for word in words)
