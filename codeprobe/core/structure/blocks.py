"""Brace-language block helpers shared by the Java, C++ and C# extractors.

A ``TypeSpan`` is a recognized class-like declaration together with the
range of its body. Membership questions ("is this offset a member of that
class body?", "is this candidate outside every class?") are answered from
the masked text: spans by range, body level by one brace scan per span.
"""

import re
from bisect import bisect_left
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .lexer import SourceView
from .text_utils import find_matching_bracket, split_top_level, squash

_BRACE_RE = re.compile(r"[{}]")


@dataclass(frozen=True)
class TypeSpan:
    name: str
    kind: str
    start: int  # Offset of the declaration (first modifier)
    open: int  # Offset of the body "{"
    close: int  # Offset of the matching "}" (len - 1 when unterminated)
    modifiers: Tuple[str, ...] = ()
    header: str = ""  # Masked text between the name and "{"
    parent: Optional[str] = None

    def contains(self, position: int) -> bool:
        """True when ``position`` lies within the declaration or its body."""
        return self.start <= position <= self.close


@dataclass(frozen=True)
class BodyExtent:
    open: int
    close: int
    body: str  # Masked text between the braces
    end_line: int


def find_type_spans(code: str, pattern: Pattern[str]) -> List[TypeSpan]:
    """Find class-like declarations in masked code.

    ``pattern`` must end on the body's ``{`` and define the groups ``name``
    and ``kind``; optional groups ``mods`` and ``header`` are picked up
    when present. Parents are assigned from range containment.
    """
    found: List[TypeSpan] = []
    for m in pattern.finditer(code):
        groups = m.groupdict()
        open_index = m.end() - 1
        found.append(
            TypeSpan(
                name=m.group("name"),
                kind=m.group("kind"),
                start=m.start(),
                open=open_index,
                close=find_matching_bracket(code, open_index),
                modifiers=tuple((groups.get("mods") or "").split()),
                header=squash(groups.get("header") or ""),
            )
        )

    spans: List[TypeSpan] = []
    for span in found:
        parent = innermost_span(found, span.start, exclude=span)
        if parent is not None:
            span = replace(span, parent=parent.name)
        spans.append(span)
    return spans


def innermost_span(
    spans: Iterable[TypeSpan], position: int, exclude: Optional[TypeSpan] = None
) -> Optional[TypeSpan]:
    """Return the innermost span whose body contains ``position``."""
    best: Optional[TypeSpan] = None
    for span in spans:
        if span is exclude or not (span.open < position <= span.close):
            continue
        if best is None or span.open > best.open:
            best = span
    return best


class BodyLevels:
    """Answers "does this offset sit directly in that span's body?" for one text.

    Each span's body is scanned once on first use. The nested blocks found
    there are kept sorted, so every later question is a binary search.
    """

    def __init__(self, code: str):
        self.code = code
        self._nested: Dict[TypeSpan, Tuple[List[int], List[int], int]] = {}

    def __call__(self, position: int, span: TypeSpan) -> bool:
        nested = self._nested.get(span)
        if nested is None:
            nested = self._nested[span] = _nested_blocks(self.code, span)
        starts, ends, limit = nested
        if not span.open < position <= limit:
            return False
        index = bisect_left(starts, position) - 1
        return index < 0 or position > ends[index]


def _nested_blocks(code: str, span: TypeSpan) -> Tuple[List[int], List[int], int]:
    """Top-level ``{...}`` blocks of a body as (starts, ends, limit).

    An offset is inside a block when ``start < offset <= end``. Offsets past
    ``limit`` follow a stray ``}`` and are never at body level.
    """
    starts: List[int] = []
    ends: List[int] = []
    depth = 0
    for match in _BRACE_RE.finditer(code, span.open + 1, max(span.open + 1, span.close)):
        if match.group() == "{":
            if depth == 0:
                starts.append(match.start())
            depth += 1
        elif depth == 0:
            return starts, ends, match.start()
        else:
            depth -= 1
            if depth == 0:
                ends.append(match.start())
    if depth:
        ends.append(span.close)
    return starts, ends, span.close


def outside_types(spans: Iterable[TypeSpan], position: int) -> bool:
    return not any(span.contains(position) for span in spans)


def body_extent(view: SourceView, open_index: int) -> BodyExtent:
    """Resolve a body starting at ``open_index`` to its range and text."""
    close = find_matching_bracket(view.code, open_index)
    return BodyExtent(
        open=open_index,
        close=close,
        body=view.code[open_index + 1:close],
        end_line=view.line_of(close),
    )


def split_names(text: str) -> List[str]:
    """Split a comma list of type names, respecting generic arguments."""
    return [squash(text[a:b]) for a, b in split_top_level(text) if text[a:b].strip()]


def in_open_parens(code: str, position: int) -> bool:
    """True when ``position`` sits inside parentheses opened earlier in the same statement."""
    depth = 0
    i = position - 1
    while i >= 0 and code[i] not in ";{}":
        if code[i] == "(":
            depth += 1
        elif code[i] == ")":
            depth -= 1
        i -= 1
    return depth > 0
