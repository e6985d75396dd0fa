"""Java structure extractor.

Recognizes classes, interfaces and enums, their methods, constructors and
fields, top-level methods, imports and public exports. Declarations are
matched with ordered rules over the masked source; see ``lexer``.
"""

import logging
import re
from functools import partial
from typing import List, Optional, Tuple

from .base import SourceInput, run_extraction
from .blocks import (
    BodyLevels,
    TypeSpan,
    body_extent,
    find_type_spans,
    in_open_parens,
    outside_types,
    split_names,
)
from .complexity import score_complexity
from .dependencies import collect_dependencies
from .diagnostics import JAVA_POLICY, check_lines
from .docstrings import associate_docstring, skip_leading_annotations
from .lexer import SourceView, build_view
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
from .test_candidates import CAMEL, generate_test_candidates
from .text_utils import (
    enclosing_block_start,
    find_matching_bracket,
    find_statement_end,
    split_top_level,
    squash,
)

logger = logging.getLogger(__name__)

LANGUAGE = "java"

_IDENT = r"[A-Za-z_$][\w$]*"

_TYPE_MODS = ("public", "private", "protected", "static", "final", "abstract", "sealed", "strictfp")
_METHOD_MODS = (
    "public", "private", "protected", "static", "final", "abstract", "synchronized", "native", "default", "strictfp",
)
_FIELD_MODS = ("public", "private", "protected", "static", "final", "transient", "volatile")
_NOT_MODIFIER = r"(?!(?:" + "|".join(sorted(set(_METHOD_MODS + _FIELD_MODS))) + r")(?![\w$]))"

_TYPE_DECL_RE = re.compile(
    r"(?<![\w$.@])" + not_after_words(_TYPE_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_TYPE_MODS) + r")\s+)*)"
    r"(?<!@)\b(?P<kind>class|interface|enum)\s+(?P<name>" + _IDENT + r")"
    r"(?P<header>[^{;]*)\{"
)

_METHOD_RE = re.compile(
    r"(?<![\w$.@])" + not_after_words(_METHOD_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_METHOD_MODS) + r")\s+)*)"
    r"(?P<tparams><[^;{}()]*?>\s*)?"
    r"(?:(?P<ret>" + _NOT_MODIFIER + _IDENT + r"(?:\s*\.\s*" + _IDENT + r")*(?:\s*<[^;{}()]*?>)?(?:\s*\[\s*\])*)\s+)?"
    r"(?P<name>" + _IDENT + r")\s*\("
)

# After the parameter list: array dims (legacy syntax), throws clause, then body or ";"
_METHOD_TAIL_RE = re.compile(r"\s*(?:\[\s*\]\s*)*(?:throws\s+(?P<throws>[^{;]+?)\s*)?(?P<end>[{;])")

_FIELD_RE = re.compile(
    r"(?<![\w$.@])" + not_after_words(_FIELD_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_FIELD_MODS) + r")\s+)*)"
    r"(?P<type>" + _NOT_MODIFIER + _IDENT + r"(?:\s*\.\s*" + _IDENT + r")*(?:\s*<[^;{}()=]*?>)?(?:\s*\[\s*\])*)\s+"
    r"(?P<name>" + _IDENT + r")\s*(?P<rest>=(?!=)|;|,)"
)

_IMPORT_RE = re.compile(
    r"^[ \t]*(?P<kw>import)\s+(?P<static>static\s+)?"
    r"(?P<path>[\w$]+(?:\s*\.\s*(?:[\w$]+|\*))*)\s*;",
    re.MULTILINE,
)

_ANNOTATION_RE = re.compile(r"@[\w$.]+(?:\s*\([^)]*\))?\s*")
_TRAILING_NAME_RE = re.compile(r"(" + _IDENT + r")\s*((?:\[\s*\]\s*)*)$")

_MODIFIER_WORDS = frozenset({
    "public", "private", "protected", "static", "final", "abstract", "synchronized",
    "native", "default", "strictfp", "transient", "volatile", "sealed",
})
_STATEMENT_WORDS = frozenset({
    "if", "else", "for", "while", "do", "switch", "case", "catch", "try", "finally",
    "return", "new", "throw", "super", "this", "assert", "synchronized", "package",
    "import", "yield", "break", "continue", "instanceof", "class", "interface",
    "enum", "record", "var",
})
_STANDARD_PACKAGES = ("java", "javax", "org.w3c", "org.xml")


def is_external_package(package: str) -> bool:
    """Standard-library packages and unqualified names count as external."""
    return package.startswith(_STANDARD_PACKAGES) or "." not in package


def parse_parameters(code: str) -> List[ParameterInfo]:
    """Parse a Java parameter list (text between the parentheses).

    Annotations are stripped, ``final`` becomes the parameter's modifier and
    varargs ``T... xs`` become type ``T[]`` with ``is_variadic``. Pieces
    without both a type and a name are dropped.
    """
    parameters: List[ParameterInfo] = []
    for start, end in split_top_level(code):
        raw = _ANNOTATION_RE.sub("", code[start:end]).strip()
        if not raw:
            continue

        modifier = None
        if re.match(r"final\s", raw):
            modifier = "final"
            raw = raw[len("final"):].strip()

        is_variadic = "..." in raw
        raw = raw.replace("...", " ")

        m = _TRAILING_NAME_RE.search(raw)
        if m is None:
            continue
        param_type = raw[:m.start()].strip()
        if not param_type or not (raw[m.start() - 1].isspace() or param_type[-1] in ">]"):
            continue
        param_type = squash(param_type) + re.sub(r"\s+", "", m.group(2))
        if is_variadic:
            param_type += "[]"

        parameters.append(
            ParameterInfo(
                name=m.group(1),
                type=param_type,
                modifier=modifier,
                is_variadic=is_variadic,
            )
        )
    return parameters


def _visibility(modifiers: Tuple[str, ...], owner_kind: Optional[str]) -> str:
    for word in ("public", "private", "protected"):
        if word in modifiers:
            return word
    return "public" if owner_kind == "interface" else "package"


def _inheritance(kind: str, header: str) -> Tuple[Optional[str], List[str]]:
    """Split a type header into (extends, implements)."""
    if header.startswith("<"):
        header = header[find_matching_bracket(header, 0, "<", ">") + 1:]

    extends_m = re.search(r"\bextends\s+(.+?)(?=\bimplements\b|\bpermits\b|$)", header)
    implements_m = re.search(r"\bimplements\s+(.+?)(?=\bpermits\b|$)", header)
    extended = split_names(extends_m.group(1)) if extends_m else []
    implemented = split_names(implements_m.group(1)) if implements_m else []

    if kind == "interface":
        # An interface's "extends" list names interfaces
        return None, extended + implemented
    return (extended[0] if extended else None), implemented


class _JavaScan:
    """State of one ``parse`` call."""

    def __init__(self, view: SourceView, options: ExtractionOptions):
        self.view = view
        self.code = view.code
        self.at_body_level = BodyLevels(view.code)
        self.options = options

    def run(self) -> StructuralSummary:
        spans = find_type_spans(self.code, _TYPE_DECL_RE)
        classes = [self._build_class(span) for span in spans]

        functions = apply_rules(
            [Rule("function", _METHOD_RE, partial(self._top_level_function, spans=spans))],
            self.code,
        )
        errors, warnings = check_lines(self.view.code_lines, JAVA_POLICY)

        return StructuralSummary(
            language=LANGUAGE,
            functions=functions,
            classes=classes,
            imports=self._imports(),
            exports=[
                ExportInfo(name=span.name, type=span.kind)
                for span in spans
                if span.parent is None and "public" in span.modifiers
            ],
            syntax_errors=errors,
            warnings=warnings,
        )

    # -- classes -----------------------------------------------------------

    def _build_class(self, span: TypeSpan) -> ClassInfo:
        start_line = self.view.line_of(span.start)
        end_line = max(start_line, self.view.line_of(span.close))
        extends, implements = _inheritance(span.kind, span.header)

        member_rules = [
            Rule("method", _METHOD_RE, partial(self._method, owner=span)),
            Rule("field", _FIELD_RE, partial(self._field, owner=span)),
        ]
        members = apply_rules(member_rules, self.code, span.open + 1, span.close)

        if self.options.verbose:
            logger.debug(f"Java {span.kind} {span.name} at lines {start_line}-{end_line}")

        return ClassInfo(
            name=span.name,
            kind=span.kind,
            methods=[m for m in members if isinstance(m, FunctionInfo)],
            properties=[p for p in members if isinstance(p, PropertyInfo)],
            extends=extends,
            implements=implements,
            start_line=start_line,
            end_line=end_line,
            is_exported="public" in span.modifiers,
            docstring=self._docstring(start_line),
            modifiers=span.modifiers,
            parent_name=span.parent,
        )

    def _method(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[FunctionInfo]:
        if not self.at_body_level(match.start(), owner):
            return None
        return self._function(match, owner)

    def _field(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[PropertyInfo]:
        if not self.at_body_level(match.start(), owner) or in_open_parens(self.code, match.start()):
            return None
        field_type = squash(match.group("type"))
        name = match.group("name")
        if field_type in _STATEMENT_WORDS or field_type in _MODIFIER_WORDS or name in _STATEMENT_WORDS:
            return None

        modifiers = tuple(match.group("mods").split())
        default_value = None
        if match.group("rest") == "=":
            end = find_statement_end(self.code, match.end())
            default_value = squash(self.view.original(match.end(), end)) or None

        return PropertyInfo(
            name=name,
            type=field_type,
            visibility=_visibility(modifiers, owner.kind),
            is_static="static" in modifiers,
            modifiers=modifiers,
            default_value=default_value,
        )

    # -- functions ---------------------------------------------------------

    def _top_level_function(self, match: "re.Match[str]", spans: List[TypeSpan]) -> Optional[FunctionInfo]:
        if not outside_types(spans, match.start()):
            return None
        if enclosing_block_start(self.code, match.start()) is not None:
            return None
        return self._function(match, None)

    def _function(self, match: "re.Match[str]", owner: Optional[TypeSpan]) -> Optional[FunctionInfo]:
        name = match.group("name")
        if name in _STATEMENT_WORDS or name in _MODIFIER_WORDS:
            return None

        return_type = match.group("ret")
        if return_type is not None:
            return_type = squash(return_type)
            if return_type in _STATEMENT_WORDS or return_type in _MODIFIER_WORDS:
                return None
            is_constructor = False
        elif owner is not None and name == owner.name:
            is_constructor = True
        else:
            # A bare call, not a declaration
            return None

        open_paren = match.end() - 1
        close_paren = find_matching_bracket(self.code, open_paren)
        tail = _METHOD_TAIL_RE.match(self.code, close_paren + 1)
        if tail is None:
            return None
        has_body = tail.group("end") == "{"
        if not has_body and owner is None:
            return None

        start_line = self.view.line_of(match.start())
        if has_body:
            extent = body_extent(self.view, tail.end() - 1)
            body, end_line = extent.body, max(start_line, extent.end_line)
        else:
            body, end_line = "", start_line

        modifiers = tuple(match.group("mods").split())
        parameters = parse_parameters(self.code[open_paren + 1:close_paren])

        metadata = {}
        if tail.group("throws"):
            metadata["throws"] = split_names(tail.group("throws"))
        if match.group("tparams"):
            metadata["typeParameters"] = squash(match.group("tparams"))
        if "abstract" in modifiers or not has_body:
            metadata["isAbstract"] = True

        if self.options.verbose:
            owner_name = owner.name if owner else "<top level>"
            logger.debug(f"Java method {owner_name}.{name} at lines {start_line}-{end_line}")

        return FunctionInfo(
            name=name,
            parameters=parameters,
            return_type=return_type,
            start_line=start_line,
            end_line=end_line,
            complexity=score_complexity(body, LANGUAGE),
            dependencies=collect_dependencies(body, LANGUAGE),
            is_exported="public" in modifiers,
            is_static="static" in modifiers,
            docstring=self._docstring(start_line),
            test_candidates=generate_test_candidates(name, len(parameters), CAMEL),
            visibility=_visibility(modifiers, owner.kind if owner else None),
            is_constructor=is_constructor,
            has_body=has_body,
            modifiers=modifiers,
            parent_name=owner.name if owner else None,
            metadata=metadata,
        )

    # -- imports / docs ----------------------------------------------------

    def _imports(self) -> List[ImportInfo]:
        imports: List[ImportInfo] = []
        for m in _IMPORT_RE.finditer(self.view.text):
            keyword = m.start("kw")
            if self.code[keyword] != self.view.text[keyword]:
                continue  # inside a comment or literal
            parts = re.sub(r"\s+", "", m.group("path")).split(".")
            package = ".".join(parts[:-1])
            imports.append(
                ImportInfo(
                    source=package,
                    imports=(
                        ImportedName(
                            name=parts[-1],
                            is_default=True,
                            is_static=m.group("static") is not None,
                        ),
                    ),
                    is_external=is_external_package(package),
                    line=self.view.line_of(keyword),
                )
            )
        return imports

    def _docstring(self, start_line: int) -> str:
        anchor = skip_leading_annotations(self.view.lines, start_line, ("@",))
        return associate_docstring(self.view.lines, anchor)


class JavaExtractor:
    """Heuristic structure extractor for Java sources."""

    language = LANGUAGE
    extensions = (".java",)
    naming_convention = CAMEL

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        return _JavaScan(build_view(text, LANGUAGE), options).run()
