"""TypeScript structure extractor.

Everything the JavaScript extractor recognizes, plus interfaces, enums,
type aliases, namespaces, access modifiers, parameter properties and type
annotations.
"""

import re
from typing import Optional

from .base import SourceInput, run_extraction
from .javascript_extractor import IDENT, NOT_HERITAGE, ScriptDialect, ScriptScan
from .lexer import build_view
from .models import ExtractionOptions, StructuralSummary
from .rules import not_after_words
from .test_candidates import CAMEL

LANGUAGE = "typescript"

_TYPE_MODS = ("export", "default", "declare", "abstract", "const")
_TYPE_DECL_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_TYPE_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_TYPE_MODS) + r")\s+)*)"
    r"\b(?P<kind>class|interface|enum)\s+" + NOT_HERITAGE + r"(?P<name>" + IDENT + r")(?P<header>[^{;]*)\{"
)

_ALIAS_MODS = ("export", "declare")
_TYPE_ALIAS_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_ALIAS_MODS)
    + r"(?P<mods>(?:(?:export|declare)\s+)*)"
    r"\btype\s+(?P<name>" + IDENT + r")\s*(?:<[^;{}()]*>\s*)?=(?![=>])"
)

# "declare module 'x' {" keeps no name: the module string is masked
_NAMESPACE_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_ALIAS_MODS)
    + r"(?P<mods>(?:(?:export|declare)\s+)*)"
    r"\b(?P<kind>namespace|module)\b(?:\s+(?P<name>[A-Za-z_$][\w$.]*))?(?P<header>\s*)\{"
)

TYPESCRIPT = ScriptDialect(
    language=LANGUAGE,
    type_decl_re=_TYPE_DECL_RE,
    type_alias_re=_TYPE_ALIAS_RE,
    namespace_re=_NAMESPACE_RE,
)


class TypeScriptExtractor:
    """Heuristic structure extractor for TypeScript sources."""

    language = LANGUAGE
    extensions = (".ts", ".tsx", ".mts", ".cts")
    naming_convention = CAMEL

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        return ScriptScan(build_view(text, LANGUAGE), options, TYPESCRIPT).run()
