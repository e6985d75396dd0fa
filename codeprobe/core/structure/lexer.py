"""Lexical pre-pass using tree-sitter.

Parses the source with the language's tree-sitter grammar and blanks every
comment and string/character literal. The masked text keeps the exact
length and line structure of the original, so an offset or line number
found in the masked text addresses the same character in the original.

Declarations are never read off the tree. Recognizers work on the masked
text, so grammar error recovery only affects which spans get blanked.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass
from functools import lru_cache
from itertools import accumulate
from typing import Callable, FrozenSet, List, Tuple

import tree_sitter

from .text_utils import LineIndex

logger = logging.getLogger(__name__)

# Node types blanked by the pre-pass, per language
_MASKED_NODE_TYPES = {
    "java": frozenset({
        "line_comment", "block_comment", "comment",
        "string_literal", "character_literal", "text_block",
    }),
    "cpp": frozenset({
        "comment",
        "string_literal", "char_literal", "raw_string_literal", "system_lib_string",
    }),
    "csharp": frozenset({
        "comment",
        "string_literal", "character_literal", "verbatim_string_literal",
        "raw_string_literal", "interpolated_string_expression",
    }),
    "python": frozenset({
        "comment",
        "string",
    }),
    "javascript": frozenset({
        "comment", "html_comment",
        "string", "template_string", "regex", "jsx_text",
    }),
    "typescript": frozenset({
        "comment",
        "string", "template_string", "regex", "jsx_text",
    }),
}


@lru_cache(maxsize=None)
def get_tree_sitter_language(language: str) -> tree_sitter.Language:
    """Get the tree-sitter Language object for a language identifier.

    Grammar packages are imported lazily; the compiled Language is immutable
    and cached for the life of the process.
    """
    if language == "java":
        import tree_sitter_java
        return tree_sitter.Language(tree_sitter_java.language())
    elif language == "cpp":
        import tree_sitter_cpp
        return tree_sitter.Language(tree_sitter_cpp.language())
    elif language == "csharp":
        import tree_sitter_c_sharp
        return tree_sitter.Language(tree_sitter_c_sharp.language())
    elif language == "python":
        import tree_sitter_python
        return tree_sitter.Language(tree_sitter_python.language())
    elif language == "javascript":
        import tree_sitter_javascript
        return tree_sitter.Language(tree_sitter_javascript.language())
    elif language == "typescript":
        import tree_sitter_typescript
        return tree_sitter.Language(tree_sitter_typescript.language_typescript())
    raise ValueError(f"No lexical grammar for language: {language}")


@dataclass(frozen=True)
class SourceView:
    """Original text plus its masked twin and a shared line index."""

    text: str  # Original source
    code: str  # Masked source: comments and literals blanked, same length
    lines: Tuple[str, ...]  # Original lines
    code_lines: Tuple[str, ...]  # Masked lines
    index: LineIndex

    def line_of(self, offset: int) -> int:
        return self.index.line_of(offset)

    def original(self, start: int, end: int) -> str:
        """Slice the original text with masked-text offsets."""
        return self.text[start:end]


def mask_source(text: str, language: str) -> str:
    """Blank comments and literals, preserving length and newlines.

    Args:
        text: Source text
        language: Language identifier (unknown languages are returned as-is)

    Returns:
        Masked text with ``len(result) == len(text)``
    """
    node_types = _MASKED_NODE_TYPES.get(language)
    if not text or node_types is None:
        return text

    source_bytes = text.encode("utf-8", errors="surrogatepass")
    parser = tree_sitter.Parser(get_tree_sitter_language(language))
    tree = parser.parse(source_bytes)

    spans = _collect_spans(tree.root_node, node_types)
    if not spans:
        return text

    to_char = _byte_to_char_mapper(text, source_bytes)
    chars = list(text)
    for start_byte, end_byte in spans:
        for i in range(to_char(start_byte), min(to_char(end_byte), len(chars))):
            if chars[i] != "\n":
                chars[i] = " "

    logger.debug(f"Masked {len(spans)} comment/literal spans ({language})")
    return "".join(chars)


def build_view(text: str, language: str) -> SourceView:
    """Run the lexical pre-pass and bundle the result."""
    return with_code(text, mask_source(text, language))


def with_code(text: str, code: str) -> SourceView:
    """Bundle original text with a masked twin of the same length."""
    return SourceView(
        text=text,
        code=code,
        lines=tuple(text.split("\n")),
        code_lines=tuple(code.split("\n")),
        index=LineIndex(text),
    )


# =========================================================================
# Helpers
# =========================================================================


def _collect_spans(root: tree_sitter.Node, node_types: FrozenSet[str]) -> List[Tuple[int, int]]:
    """Collect byte spans of masked node types (iterative; no recursion limit)."""
    spans: List[Tuple[int, int]] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in node_types:
            spans.append((node.start_byte, node.end_byte))
            continue
        stack.extend(node.children)
    return spans


def _byte_to_char_mapper(text: str, source_bytes: bytes) -> Callable[[int], int]:
    """Build a byte-offset → character-offset converter for ``text``."""
    if len(source_bytes) == len(text):
        return lambda offset: offset

    char_starts = list(accumulate(
        (len(ch.encode("utf-8", errors="surrogatepass")) for ch in text),
        initial=0,
    ))
    return lambda offset: bisect_left(char_starts, offset)
