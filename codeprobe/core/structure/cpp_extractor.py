"""C++ structure extractor.

Handles classes and structs (with access-specifier tracking), enums,
free functions and prototypes, out-of-line member definitions
(``R Cls::m(...)``), namespaces, ``extern "C"`` blocks and ``#include``
directives. Preprocessor directives are blanked after the lexical pre-pass
so macro bodies never look like declarations.
"""

import logging
import re
from dataclasses import dataclass
from functools import partial
from typing import Dict, List, Optional, Tuple

from .base import SourceInput, run_extraction
from .blocks import BodyLevels, TypeSpan, body_extent, find_type_spans, outside_types, split_names
from .complexity import score_complexity
from .dependencies import collect_dependencies
from .diagnostics import CPP_POLICY, check_lines
from .docstrings import associate_docstring, skip_leading_annotations
from .lexer import SourceView, build_view, with_code
from .models import (
    ClassInfo,
    ExportInfo,
    ExtractionOptions,
    FunctionInfo,
    ImportedName,
    ImportInfo,
    ParameterInfo,
    PropertyInfo,
    StructuralSummary,
)
from .rules import Rule, apply_rules, not_after_words
from .test_candidates import SNAKE, generate_test_candidates
from .text_utils import (
    block_header,
    enclosing_blocks,
    find_matching_bracket,
    find_statement_end,
    split_top_level,
    squash,
)

logger = logging.getLogger(__name__)

LANGUAGE = "cpp"

# Template argument list, up to three levels of nesting
_TARGS = r"<[^;{}()<>]*(?:<[^;{}()<>]*(?:<[^;{}()<>]*>[^;{}()<>]*)*>[^;{}()<>]*)*>"

_INTEGRAL_WORDS = ("unsigned", "signed", "short", "long")
_FUNCTION_MODS = ("static", "virtual", "inline", "explicit", "friend", "constexpr", "consteval", "extern")
_FIELD_MODS = ("static", "mutable", "const", "constexpr", "inline", "volatile", "thread_local")
_ELABORATED = ("struct", "class", "enum", "typename")
_CV = ("const", "volatile")

# Specifier words never start a type name or a declarator name
_NOT_SPECIFIER = (
    r"(?!(?:" + "|".join(sorted(set(_INTEGRAL_WORDS + _FUNCTION_MODS + _FIELD_MODS + _ELABORATED))) + r")\b)"
)
_SCOPED = (
    r"(?:::)?" + _NOT_SPECIFIER + r"[A-Za-z_]\w*(?:\s*" + _TARGS + r")?"
    r"(?:\s*::\s*[A-Za-z_]\w*(?:\s*" + _TARGS + r")?)*"
)
_INTEGRAL = (
    r"(?:" + "|".join(_INTEGRAL_WORDS) + r")\b(?:\s+(?:" + "|".join(_INTEGRAL_WORDS) + r")\b)*"
    r"(?:\s+(?:int|char|double)\b)?"
)


def _type_pattern(prefix_words: Tuple[str, ...]) -> str:
    return (
        r"(?:(?:" + "|".join(prefix_words) + r")\s+)*"
        r"(?:" + _INTEGRAL + r"|" + _SCOPED + r")"
        r"(?:\s+(?:const|volatile))*"
        r"(?:\s*[*&](?:\s*const\b)?)*"
    )


_RETURN_TYPE = _type_pattern(_CV + _ELABORATED)
_FIELD_TYPE = _type_pattern(_ELABORATED)

_TARGS_RE = re.compile(_TARGS)

_DIRECTIVE_RE = re.compile(r"^[ \t]*#(?:[^\n]*\\\n)*[^\n]*", re.MULTILINE)

_INCLUDE_RE = re.compile(
    r"^[ \t]*(?P<hash>#)[ \t]*include\s*(?P<open>[<\"])(?P<header>[^>\"\n]+)[>\"]",
    re.MULTILINE,
)

_TYPE_DECL_RE = re.compile(
    r"(?<![\w:])(?P<kind>class|struct|enum\s+class|enum\s+struct|enum)\s+"
    r"(?:(?:alignas\s*\([^)]*\)|__declspec\s*\([^)]*\)|\[\[[^\]]*\]\])\s*)*"
    r"(?P<name>[A-Za-z_]\w*)"
    r"(?P<mods>\s+final)?"
    r"(?P<header>\s*:[^{;]*)?\s*\{"
)

_FUNCTION_RE = re.compile(
    r"(?<![\w:~.>])" + not_after_words(_FUNCTION_MODS + _CV + _ELABORATED + _INTEGRAL_WORDS)
    + r"(?P<mods>(?:(?:" + "|".join(_FUNCTION_MODS) + r")\s+)*)"
    r"(?:(?P<ret>" + _RETURN_TYPE + r")(?:\s+|(?<=[*&])))?"
    r"(?P<name>" + _NOT_SPECIFIER + r"(?:[A-Za-z_]\w*(?:\s*" + _TARGS + r")?\s*::\s*)*(?:~\s*)?(?:operator\b[^(;{}]*?|[A-Za-z_]\w*))"
    r"\s*\("
)

_QUALIFIERS_RE = re.compile(
    r"\s*(?P<quals>(?:(?:const|volatile|override|final|noexcept(?:\s*\([^)]*\))?|&&|&|throw\s*\([^)]*\))\s*)*)"
    r"(?:->\s*(?P<trailing>[^{;=]+?)\s*(?=[{;=]))?"
)
_FUNCTION_END_RE = re.compile(r"\s*(?:(?P<brace>\{)|(?P<semi>;)|=\s*(?P<special>0|default|delete)\s*;)")
_INITIALIZER_RE = re.compile(r"\s*(?:::)?[A-Za-z_][\w:]*(?:\s*" + _TARGS + r")?\s*(?P<open>[({])")

_FIELD_RE = re.compile(
    r"(?<![\w:.>])" + not_after_words(_FIELD_MODS + _ELABORATED + _INTEGRAL_WORDS)
    + r"(?P<mods>(?:(?:" + "|".join(_FIELD_MODS) + r")\s+)*)"
    r"(?P<type>" + _FIELD_TYPE + r")(?:\s+|(?<=[*&]))"
    r"(?P<name>" + _NOT_SPECIFIER + r"[A-Za-z_]\w*)\s*(?P<dims>(?:\[[^\]]*\]\s*)*)(?P<rest>=(?!=)|;|,|\{)"
)

_ACCESS_LABEL_RE = re.compile(r"\b(?P<label>public|private|protected)\s*:(?!:)")
_NAMESPACE_HEADER_RE = re.compile(r"(?:^|\s)(?:inline\s+)?namespace\b\s*(?P<name>[\w:]*)\s*$")
_EXTERN_HEADER_RE = re.compile(r"(?:^|\s)extern\s*$")
_TRAILING_NAME_RE = re.compile(r"([A-Za-z_]\w*)\s*((?:\[[^\]]*\]\s*)*)$")
_POINTER_SPACE_RE = re.compile(r"\s+(?=[*&])")

_NON_TYPE_WORDS = frozenset({
    "return", "else", "new", "delete", "throw", "case", "goto", "using", "typedef",
    "namespace", "co_return", "co_yield", "co_await", "sizeof", "public", "private",
    "protected", "template", "operator", "do", "class", "struct", "enum", "union",
    "friend", "static_assert", "if", "while", "for", "switch", "default",
})
_STATEMENT_WORDS = frozenset({
    "if", "for", "while", "switch", "catch", "return", "sizeof", "alignof", "decltype",
    "static_assert", "new", "delete", "throw", "typeid", "noexcept", "defined",
    "static_cast", "dynamic_cast", "const_cast", "reinterpret_cast", "__attribute__",
    "alignas", "__declspec", "co_await",
})


def blank_directives(code: str) -> str:
    """Blank preprocessor directives (with ``\\`` continuations), keeping newlines."""
    return _DIRECTIVE_RE.sub(lambda m: re.sub(r"[^\n]", " ", m.group()), code)


def _normalize_type(text: str) -> str:
    return _POINTER_SPACE_RE.sub("", squash(text))


def parse_parameters(code: str, text: str) -> List[ParameterInfo]:
    """Parse a C++ parameter list.

    Args:
        code: Masked text between the parentheses
        text: Original text of the same span (default values are read here)
    """
    parameters: List[ParameterInfo] = []
    for start, end in split_top_level(code):
        piece = code[start:end]
        if piece.strip() in ("", "void", "..."):
            continue

        default_value = None
        equals = piece.find("=")
        if equals != -1:
            default_value = squash(text[start + equals + 1:end])
            piece = piece[:equals]

        m = _TRAILING_NAME_RE.search(piece.rstrip())
        if m is None:
            continue
        param_type = piece[:m.start()].strip()
        if not param_type or not (piece[m.start() - 1].isspace() or param_type[-1] in "*&>"):
            continue

        parameters.append(
            ParameterInfo(
                name=m.group(1),
                type=_normalize_type(param_type) + re.sub(r"\s+", "", m.group(2)),
                optional=default_value is not None,
                default_value=default_value,
            )
        )
    return parameters


def _inheritance(header: str) -> Tuple[Optional[str], List[str]]:
    """First base → extends, the rest → implements; access keywords dropped."""
    header = header.strip()
    if not header.startswith(":"):
        return None, []
    bases = [
        re.sub(r"^(?:(?:public|private|protected|virtual)\s+)+", "", base)
        for base in split_names(header[1:])
    ]
    if not bases:
        return None, []
    return bases[0], bases[1:]


@dataclass(frozen=True)
class _Tail:
    """What follows a parameter list."""

    qualifiers: Tuple[str, ...]
    trailing_return: Optional[str]
    has_body: bool
    special: Optional[str]  # "0" | "default" | "delete"
    brace: int  # Offset of the body "{" (-1 without body)


def _parse_tail(code: str, position: int) -> Optional[_Tail]:
    quals = _QUALIFIERS_RE.match(code, position)
    position = quals.end()

    # Constructor initializer list: ": a_(a), b_{b}"
    rest = code[position:position + 2]
    if rest.startswith(":") and rest != "::":
        position += 1
        while True:
            init = _INITIALIZER_RE.match(code, position)
            if init is None:
                return None
            position = find_matching_bracket(code, init.start("open")) + 1
            comma = re.match(r"\s*,", code[position:position + 64])
            if comma is None:
                break
            position += comma.end()

    end = _FUNCTION_END_RE.match(code, position)
    if end is None:
        return None
    return _Tail(
        qualifiers=tuple(re.findall(r"const|volatile|override|final|noexcept", quals.group("quals"))),
        trailing_return=squash(quals.group("trailing")) if quals.group("trailing") else None,
        has_body=end.group("brace") is not None,
        special=end.group("special"),
        brace=end.start("brace") if end.group("brace") else -1,
    )


class _CppScan:
    """State of one ``parse`` call."""

    def __init__(self, view: SourceView, options: ExtractionOptions):
        self.view = view
        self.code = view.code
        self.at_body_level = BodyLevels(view.code)
        self.options = options

    def run(self, includes: List[ImportInfo]) -> StructuralSummary:
        spans = find_type_spans(self.code, _TYPE_DECL_RE)
        classes = [self._build_class(span) for span in spans]
        functions = apply_rules(
            [Rule("function", _FUNCTION_RE, partial(self._top_level_function, spans=spans))],
            self.code,
        )
        errors, warnings = check_lines(self.view.code_lines, CPP_POLICY)

        exports: List[ExportInfo] = []
        seen = set()
        candidates = [(f.name, "function") for f in functions if f.is_exported]
        candidates += [(c.name, c.kind) for c in classes if c.kind in ("class", "struct")]
        for name, kind in candidates:
            if (name, kind) not in seen:
                seen.add((name, kind))
                exports.append(ExportInfo(name=name, type=kind))

        return StructuralSummary(
            language=LANGUAGE,
            functions=functions,
            classes=classes,
            imports=includes,
            exports=exports,
            syntax_errors=errors,
            warnings=warnings,
        )

    # -- scope -------------------------------------------------------------

    def _namespace_scope(self, position: int) -> Optional[bool]:
        """Classify the blocks enclosing a top-level candidate.

        Returns None when some enclosing block is not a namespace or
        ``extern "C"`` block (the candidate is a statement), otherwise
        whether an anonymous namespace encloses it.
        """
        anonymous = False
        for open_index in enclosing_blocks(self.code, position):
            header = block_header(self.code, open_index)
            namespace = _NAMESPACE_HEADER_RE.search(header)
            if namespace is not None:
                anonymous = anonymous or not namespace.group("name")
            elif not _EXTERN_HEADER_RE.search(header):
                return None
        return anonymous

    # -- classes -----------------------------------------------------------

    def _access_labels(self, span: TypeSpan) -> List[Tuple[int, str]]:
        return [
            (m.start(), m.group("label"))
            for m in _ACCESS_LABEL_RE.finditer(self.code, span.open + 1, span.close)
            if self.at_body_level(m.start(), span)
        ]

    def _build_class(self, span: TypeSpan) -> ClassInfo:
        kind = "enum" if span.kind.startswith("enum") else span.kind
        start_line = self.view.line_of(span.start)
        end_line = max(start_line, self.view.line_of(span.close))
        anonymous = self._namespace_scope(span.start)

        methods: List[FunctionInfo] = []
        properties: List[PropertyInfo] = []
        metadata: Dict[str, object] = {}
        extends, implements = (None, [])
        if kind != "enum":
            extends, implements = _inheritance(span.header)
            labels = self._access_labels(span)
            default_access = "public" if kind == "struct" else "private"
            access_of = partial(_access_at, labels=labels, default=default_access)

            member_rules = [
                Rule("method", _FUNCTION_RE, partial(self._method, owner=span, access_of=access_of)),
                Rule("field", _FIELD_RE, partial(self._field, owner=span, access_of=access_of)),
            ]
            members = apply_rules(member_rules, self.code, span.open + 1, span.close)
            methods = [m for m in members if isinstance(m, FunctionInfo)]
            properties = [p for p in members if isinstance(p, PropertyInfo)]
            metadata["accessSpecifiers"] = [
                {"type": label, "line": self.view.line_of(offset)} for offset, label in labels
            ]
        elif span.kind != "enum":
            metadata["isScoped"] = True

        if self.options.verbose:
            logger.debug(f"C++ {kind} {span.name} at lines {start_line}-{end_line}")

        return ClassInfo(
            name=span.name,
            kind=kind,
            methods=methods,
            properties=properties,
            extends=extends,
            implements=implements,
            start_line=start_line,
            end_line=end_line,
            is_exported=not anonymous,
            docstring=self._docstring(start_line),
            modifiers=span.modifiers,
            parent_name=span.parent,
            metadata=metadata,
        )

    def _method(self, match: "re.Match[str]", owner: TypeSpan, access_of) -> Optional[FunctionInfo]:
        if not self.at_body_level(match.start(), owner):
            return None
        access = access_of(match.start())
        return self._function(match, owner=owner, access=access, exported=access == "public")

    def _field(self, match: "re.Match[str]", owner: TypeSpan, access_of) -> Optional[PropertyInfo]:
        if not self.at_body_level(match.start(), owner) or not self._starts_statement(match.start()):
            return None
        field_type = _normalize_type(match.group("type"))
        if field_type.split()[0] in _NON_TYPE_WORDS or match.group("name") in _NON_TYPE_WORDS:
            return None

        default_value = None
        if match.group("rest") == "=":
            end = find_statement_end(self.code, match.end())
            default_value = squash(self.view.original(match.end(), end)) or None
        elif match.group("rest") == "{":
            close = find_matching_bracket(self.code, match.end() - 1)
            default_value = squash(self.view.original(match.end() - 1, close + 1))

        modifiers = tuple(match.group("mods").split())
        return PropertyInfo(
            name=match.group("name"),
            type=field_type + re.sub(r"\s+", "", match.group("dims")),
            visibility=access_of(match.start()),
            is_static="static" in modifiers,
            modifiers=modifiers,
            default_value=default_value,
        )

    def _starts_statement(self, position: int) -> bool:
        i = position - 1
        while i >= 0 and self.code[i].isspace():
            i -= 1
        return i < 0 or self.code[i] in ";{}:"

    # -- functions ---------------------------------------------------------

    def _top_level_function(self, match: "re.Match[str]", spans: List[TypeSpan]) -> Optional[FunctionInfo]:
        if not outside_types(spans, match.start()):
            return None
        anonymous = self._namespace_scope(match.start())
        if anonymous is None:
            return None
        is_static = "static" in match.group("mods").split()
        return self._function(match, owner=None, access=None, exported=not (is_static or anonymous))

    def _function(
        self,
        match: "re.Match[str]",
        owner: Optional[TypeSpan],
        access: Optional[str],
        exported: bool,
    ) -> Optional[FunctionInfo]:
        parts = _TARGS_RE.sub("", re.sub(r"\s+", "", match.group("name"))).split("::")
        name = parts[-1]
        if name.startswith("~") or re.match(r"operator\b", name):
            return None  # destructors and operator overloads
        qualifier = parts[-2] if len(parts) > 1 and parts[-2] else None
        if name in _STATEMENT_WORDS or (qualifier is not None and owner is not None):
            return None

        return_type = match.group("ret")
        if return_type is not None:
            return_type = _normalize_type(return_type)
            if return_type.split()[0] in _NON_TYPE_WORDS:
                return None
            is_constructor = False
        elif owner is not None and name == owner.name:
            is_constructor = True
        elif owner is None and qualifier is not None and name == qualifier:
            is_constructor = True
        else:
            return None

        open_paren = match.end() - 1
        close_paren = find_matching_bracket(self.code, open_paren)
        tail = _parse_tail(self.code, close_paren + 1)
        if tail is None:
            return None
        if owner is None and tail.special == "0":
            return None

        start_line = self.view.line_of(match.start())
        if tail.has_body:
            extent = body_extent(self.view, tail.brace)
            body, end_line = extent.body, max(start_line, extent.end_line)
        else:
            body, end_line = "", start_line

        if tail.trailing_return and return_type == "auto":
            return_type = tail.trailing_return

        modifiers = tuple(match.group("mods").split())
        parameters = parse_parameters(
            self.code[open_paren + 1:close_paren],
            self.view.original(open_paren + 1, close_paren),
        )

        metadata: Dict[str, object] = {
            "isVirtual": "virtual" in modifiers,
            "isPureVirtual": tail.special == "0",
            "isOverride": "override" in tail.qualifiers,
            "isInline": "inline" in modifiers or (owner is not None and tail.has_body),
            "isConst": "const" in tail.qualifiers,
        }
        if tail.special in ("default", "delete"):
            metadata["isDefaulted" if tail.special == "default" else "isDeleted"] = True

        if self.options.verbose:
            owner_name = owner.name if owner else (qualifier or "<global>")
            logger.debug(f"C++ function {owner_name}::{name} at lines {start_line}-{end_line}")

        return FunctionInfo(
            name=name,
            parameters=parameters,
            return_type=return_type,
            start_line=start_line,
            end_line=end_line,
            complexity=score_complexity(body, LANGUAGE),
            dependencies=collect_dependencies(body, LANGUAGE),
            is_exported=exported,
            is_static="static" in modifiers,
            docstring=self._docstring(start_line),
            test_candidates=generate_test_candidates(name, len(parameters), SNAKE),
            visibility=access,
            is_constructor=is_constructor,
            has_body=tail.has_body,
            modifiers=modifiers + tuple(q for q in tail.qualifiers if q not in modifiers),
            parent_name=owner.name if owner else qualifier,
            metadata=metadata,
        )

    def _docstring(self, start_line: int) -> str:
        anchor = skip_leading_annotations(self.view.lines, start_line, ("template", "[["))
        return associate_docstring(self.view.lines, anchor)


def _access_at(position: int, labels: List[Tuple[int, str]], default: str) -> str:
    access = default
    for offset, label in labels:
        if offset >= position:
            break
        access = label
    return access


def extract_includes(view: SourceView) -> List[ImportInfo]:
    """``#include <h>`` is external (system), ``#include "h"`` local."""
    includes: List[ImportInfo] = []
    for m in _INCLUDE_RE.finditer(view.text):
        position = m.start("hash")
        if view.code[position] != "#":
            continue  # inside a comment or literal
        header = m.group("header").strip()
        includes.append(
            ImportInfo(
                source=header,
                imports=(ImportedName(name=header, is_default=True),),
                is_external=m.group("open") == "<",
                line=view.line_of(position),
            )
        )
    return includes


class CppExtractor:
    """Heuristic structure extractor for C and C++ sources."""

    language = LANGUAGE
    extensions = (".cpp", ".cc", ".cxx", ".c", ".h", ".hpp", ".hxx")
    naming_convention = SNAKE

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        masked = build_view(text, LANGUAGE)
        includes = extract_includes(masked)
        view = with_code(text, blank_directives(masked.code))
        return _CppScan(view, options).run(includes)
