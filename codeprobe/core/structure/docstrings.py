"""Associate a preceding comment block with a declaration."""

import re
from typing import List, Sequence, Tuple

C_STYLE_MARKERS: Tuple[str, ...] = ("//", "/*", "*")
HASH_MARKERS: Tuple[str, ...] = ("#",)

_LEADING_MARKER_RE = re.compile(r"^(?:///?|/\*\*?|#+)\s?")
_TRAILING_MARKER_RE = re.compile(r"\s*\*+/$")
_STAR_RE = re.compile(r"^\*+(?!/)\s?")


def strip_comment_markers(line: str) -> str:
    """Remove ``///``, ``//``, ``/**``, ``/*``, ``*/``, ``*`` and ``#`` markers."""
    text = line.strip()
    text = _LEADING_MARKER_RE.sub("", text, count=1)
    text = _TRAILING_MARKER_RE.sub("", text)
    text = _STAR_RE.sub("", text.strip(), count=1)
    return text.strip()


def associate_docstring(
    lines: Sequence[str],
    declaration_line: int,
    markers: Sequence[str] = C_STYLE_MARKERS,
) -> str:
    """Collect the comment block directly above ``declaration_line``.

    Walks backward from the previous line. Blank lines are skipped, comment
    lines accumulated; the walk stops at the first code line or at the
    opening ``/*`` of a block comment. Lines inside a ``/* ... */`` block
    count as comment lines even without a leading ``*``.

    Args:
        lines: Source lines (original text, not masked)
        declaration_line: 1-based line of the declaration (or of its first
            annotation)
        markers: Line prefixes that mark a comment line

    Returns:
        Marker-stripped comment text joined top-to-bottom, or ``""``.
    """
    collected: List[str] = []
    in_block = False
    i = min(declaration_line, len(lines) + 1) - 2
    while i >= 0:
        stripped = lines[i].strip()
        if in_block:
            collected.append(stripped)
            if "/*" in stripped:
                break
        elif not stripped:
            pass
        elif "/*" in markers and stripped.endswith("*/"):
            collected.append(stripped)
            if stripped.startswith("/*"):
                break
            in_block = True
        elif stripped.startswith("/*") and "/*" in markers:
            collected.append(stripped)
            break
        elif stripped.startswith(tuple(markers)):
            collected.append(stripped)
        else:
            break
        i -= 1

    if not collected:
        return ""
    text_lines = [strip_comment_markers(line) for line in reversed(collected)]
    return "\n".join(text_lines).strip()


def skip_leading_annotations(
    lines: Sequence[str],
    declaration_line: int,
    prefixes: Sequence[str] = ("@",),
) -> int:
    """Move a declaration's anchor above annotation/attribute lines.

    Returns the 1-based line of the topmost contiguous annotation directly
    above ``declaration_line`` (``declaration_line`` itself if none).
    """
    line = declaration_line
    while line >= 2:
        stripped = lines[line - 2].strip()
        if stripped and stripped.startswith(tuple(prefixes)):
            line -= 1
            continue
        break
    return line
