"""Text-scanning primitives shared by every language extractor.

Line mapping, literal-aware bracket matching, backward block discovery and
nesting-aware splitting. All functions are pure and operate on plain
strings; nothing here knows about a specific language.
"""

import re
from bisect import bisect_right
from typing import Iterator, List, Optional, Tuple

_NEWLINE_RE = re.compile(r"\n")
_WHITESPACE_RE = re.compile(r"\s+")

# Opening delimiter → closing delimiter
BRACKET_PAIRS = {
    "{": "}",
    "(": ")",
    "[": "]",
    "<": ">",
}

_QUOTES = ("\"", "'")


class LineIndex:
    """Maps character offsets to 1-based line numbers.

    Built once per source text; lookups are O(log n).
    """

    def __init__(self, text: str):
        self._starts: List[int] = [0]
        self._starts.extend(m.end() for m in _NEWLINE_RE.finditer(text))
        self._length = len(text)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_of(self, offset: int) -> int:
        """Return the 1-based line containing ``offset``.

        Offsets before the start clamp to line 1, offsets past the end to
        the last line.
        """
        if offset <= 0:
            return 1
        return bisect_right(self._starts, min(offset, self._length))

    def line_start(self, line: int) -> int:
        """Return the offset of the first character of a 1-based line."""
        line = max(1, min(line, len(self._starts)))
        return self._starts[line - 1]


def find_matching_bracket(
    text: str,
    open_index: int,
    open_char: Optional[str] = None,
    close_char: Optional[str] = None,
) -> int:
    """Find the delimiter closing the one at ``open_index``.

    Depth is tracked for the single delimiter pair in play. Quoted string
    and character literals are skipped: the scanner enters a literal on an
    unescaped quote and leaves it on the matching unescaped quote (or at the
    end of the line, since none of the supported languages lets a plain
    literal span lines). Delimiters inside literals never change depth.

    Args:
        text: Source text to scan
        open_index: Index of the opening delimiter
        open_char: Opening delimiter; inferred from ``text[open_index]``
        close_char: Closing delimiter; inferred from ``open_char``

    Returns:
        Index of the matching closing delimiter. When the input ends before
        depth returns to zero, ``len(text) - 1`` (unterminated block).
        ``-1`` for empty text.
    """
    length = len(text)
    if length == 0:
        return -1
    if open_index < 0 or open_index >= length:
        return length - 1

    if open_char is None:
        open_char = text[open_index]
    if close_char is None:
        close_char = BRACKET_PAIRS.get(open_char)
    if close_char is None:
        # Not an opening delimiter; scan as if a brace opened here
        open_char, close_char = "{", "}"

    depth = 1
    quote: Optional[str] = None
    i = open_index + 1
    while i < length:
        ch = text[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote or ch == "\n":
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return i
        i += 1

    return length - 1


def enclosing_block_start(code: str, position: int, floor: int = 0) -> Optional[int]:
    """Return the index of the nearest unclosed ``{`` before ``position``.

    Scans backward counting braces. Meant for masked text, where comments
    and literals are already blank, so no literal tracking is needed.

    Args:
        code: Masked source text
        position: Offset to start scanning back from (exclusive)
        floor: Lowest index to inspect

    Returns:
        Offset of the enclosing ``{`` or None at top level.
    """
    depth = 0
    for i in range(min(position, len(code)) - 1, floor - 1, -1):
        ch = code[i]
        if ch == "}":
            depth += 1
        elif ch == "{":
            if depth == 0:
                return i
            depth -= 1
    return None


def enclosing_blocks(code: str, position: int) -> Iterator[int]:
    """Yield the open-brace offsets enclosing ``position``, innermost first."""
    current = enclosing_block_start(code, position)
    while current is not None:
        yield current
        current = enclosing_block_start(code, current)


def block_header(code: str, open_index: int) -> str:
    """Return the text between the previous statement boundary and a ``{``.

    The boundary is the nearest preceding ``;``, ``{`` or ``}``. Used to
    classify an enclosing block (``namespace x``, ``class Foo : Bar``,
    ``void f()``, ``if (x)`` ...).
    """
    i = open_index - 1
    while i >= 0 and code[i] not in ";{}":
        i -= 1
    return code[i + 1:open_index].strip()


def split_top_level(
    text: str, separator: str = ",", angle_brackets: bool = True
) -> List[Tuple[int, int]]:
    """Split ``text`` on ``separator`` outside any nested bracket pair.

    Nesting counts ``()``, ``[]``, ``{}`` and, unless ``angle_brackets`` is
    false, ``<>`` (template/generic arguments); the ``>`` of ``->`` or
    ``=>`` is not a closing angle bracket.

    Returns:
        (start, end) spans of each piece, in order. Spans cover the raw
        text, so callers can slice the original source with masked-text
        offsets.
    """
    spans: List[Tuple[int, int]] = []
    depth = 0
    start = 0
    openers = "([{<" if angle_brackets else "([{"
    for i, ch in enumerate(text):
        if ch in openers:
            depth += 1
        elif ch in ")]}":
            depth = max(0, depth - 1)
        elif ch == ">" and angle_brackets:
            if i > 0 and text[i - 1] in "-=":
                continue
            depth = max(0, depth - 1)
        elif ch == separator and depth == 0:
            spans.append((start, i))
            start = i + 1
    spans.append((start, len(text)))
    return spans


def find_statement_end(code: str, start: int) -> int:
    """Return the index of the first ``;`` at nesting depth 0 from ``start``.

    Nesting counts ``()``, ``[]`` and ``{}``; an unmatched closer also ends
    the statement. Returns ``len(code)`` when no terminator follows.
    """
    depth = 0
    for i in range(start, len(code)):
        ch = code[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            if depth == 0:
                return i
            depth -= 1
        elif ch == ";" and depth == 0:
            return i
    return len(code)


def squash(text: str) -> str:
    """Collapse runs of whitespace to single spaces and strip."""
    return _WHITESPACE_RE.sub(" ", text).strip()
