"""C# structure extractor.

Classes, structs, interfaces, enums and records inside block or
file-scoped namespaces; methods with block, abstract (``;``) or expression
(``=>``) bodies; properties and fields; ``using`` directives.
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
from .diagnostics import CSHARP_POLICY, check_lines
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
from .test_candidates import PASCAL, generate_test_candidates
from .text_utils import (
    block_header,
    enclosing_blocks,
    find_matching_bracket,
    find_statement_end,
    split_top_level,
    squash,
)

logger = logging.getLogger(__name__)

LANGUAGE = "csharp"

_IDENT = r"@?[A-Za-z_]\w*"

_TYPE_MODS = (
    "public", "private", "protected", "internal", "abstract", "sealed", "static", "partial", "readonly", "unsafe",
    "new", "file", "ref",
)
_METHOD_MODS = (
    "public", "private", "protected", "internal", "static", "virtual", "override", "abstract", "sealed", "async",
    "extern", "unsafe", "new", "partial", "readonly", "delegate",
)
_MEMBER_DATA_MODS = (
    "public", "private", "protected", "internal", "static", "virtual", "override", "abstract", "sealed", "new",
    "readonly", "required", "const", "volatile", "event",
)
# Reserved modifier keywords; contextual ones (async, partial, file, required) stay usable as names
_NOT_KEYWORD_MODIFIER = (
    r"(?!(?:public|private|protected|internal|static|virtual|override|abstract|sealed|extern|unsafe"
    r"|new|readonly|const|volatile|event|delegate)\b)"
)
_TARGS = r"<[^;{}()<>]*(?:<[^;{}()<>]*(?:<[^;{}()<>]*>[^;{}()<>]*)*>[^;{}()<>]*)*>"
_TYPE = (
    r"(?:global::)?" + _NOT_KEYWORD_MODIFIER + _IDENT + r"(?:\s*\.\s*" + _IDENT + r")*(?:\s*" + _TARGS + r")?"
    r"(?:\s*\?)?(?:\s*\[[,\s]*\])*(?:\s*\?)?"
)

_TYPE_DECL_RE = re.compile(
    r"(?<![\w.@])" + not_after_words(_TYPE_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_TYPE_MODS) + r")\s+)*)"
    r"\b(?P<kind>record\s+(?:class|struct)|record|class|struct|interface|enum)\s+(?P<name>" + _IDENT + r")"
    r"(?P<header>[^{;]*)\{"
)

_METHOD_RE = re.compile(
    r"(?<![\w.@])" + not_after_words(_METHOD_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_METHOD_MODS) + r")\s+)*)"
    r"(?:(?P<ret>" + _TYPE + r")\s+)?"
    r"(?P<name>" + _IDENT + r"(?:\s*\.\s*" + _IDENT + r")*)(?P<tparams>\s*" + _TARGS + r")?\s*\("
)

_CONSTRUCTOR_INIT_RE = re.compile(r"\s*:\s*(?:base|this)\s*(?=\()")
_METHOD_TAIL_RE = re.compile(r"\s*(?:where\s+[^{;=]+?\s*)?(?P<end>\{|;|=>)")

_MEMBER_DATA_RE = re.compile(
    r"(?<![\w.@])" + not_after_words(_MEMBER_DATA_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_MEMBER_DATA_MODS) + r")\s+)*)"
    r"(?P<type>" + _TYPE + r")\s+"
    r"(?P<name>" + _IDENT + r")\s*(?P<rest>\{|=>|=(?![=>])|;|,)"
)

_USING_RE = re.compile(
    r"^[ \t]*(?:global\s+)?(?P<kw>using)\s+(?P<static>static\s+)?"
    r"(?:(?P<alias>" + _IDENT + r")\s*=\s*)?"
    r"(?P<target>[A-Za-z_][\w.]*(?:\s*" + _TARGS + r")?)\s*;",
    re.MULTILINE,
)

_NAMESPACE_HEADER_RE = re.compile(r"(?:^|\s)namespace\s+[\w.]+\s*$")
_ACCESSOR_RE = re.compile(r"\b(get|set|init|add|remove)\b")
_ATTRIBUTE_RE = re.compile(r"^\s*(?:\[[^\]]*\]\s*)+")
_PARAM_MODIFIER_RE = re.compile(r"^(?P<mod>ref|out|in|params|this|scoped)\s+")
_TRAILING_NAME_RE = re.compile(r"(" + _IDENT + r")\s*$")
_INTERFACE_NAME_RE = re.compile(r"^I[A-Z]")

_KEYWORDS = frozenset({
    "return", "new", "class", "struct", "interface", "enum", "record", "namespace", "using",
    "await", "throw", "else", "case", "goto", "yield", "operator", "implicit", "explicit",
    "if", "for", "foreach", "while", "do", "switch", "catch", "lock", "fixed", "typeof",
    "sizeof", "nameof", "default", "checked", "unchecked", "base", "this", "var", "is", "as",
    "in", "out", "ref", "when", "where", "get", "set", "init", "add", "remove", "value",
    "delegate", "event", "stackalloc",
})
_EXTERNAL_PREFIXES = ("System", "Microsoft", "Windows")
_KINDS = {"record": "class", "record class": "class", "record struct": "struct"}


def is_external_namespace(namespace: str) -> bool:
    return namespace.startswith(_EXTERNAL_PREFIXES)


def parse_parameters(code: str, text: str) -> List[ParameterInfo]:
    """Parse a C# parameter list.

    Args:
        code: Masked text between the parentheses
        text: Original text of the same span (default values are read here)
    """
    parameters: List[ParameterInfo] = []
    for start, end in split_top_level(code):
        piece = code[start:end]
        attrs = _ATTRIBUTE_RE.match(piece)
        if attrs:
            start += attrs.end()
            piece = code[start:end]
        offset = len(piece) - len(piece.lstrip())
        start += offset
        piece = piece.strip()
        if not piece:
            continue

        modifier = None
        mod = _PARAM_MODIFIER_RE.match(piece)
        if mod:
            modifier = mod.group("mod")
            start += mod.end()
            piece = piece[mod.end():]

        default_value = None
        equals = piece.find("=")
        if equals != -1:
            default_value = squash(text[start + equals + 1:end])
            piece = piece[:equals]

        piece = piece.rstrip()
        m = _TRAILING_NAME_RE.search(piece)
        if m is None:
            continue
        param_type = piece[:m.start()].strip()
        if not param_type or not (piece[m.start() - 1].isspace() or param_type[-1] in ">]?"):
            continue

        parameters.append(
            ParameterInfo(
                name=m.group(1),
                type=squash(param_type),
                optional=default_value is not None,
                default_value=default_value,
                modifier=modifier,
                is_variadic=modifier == "params",
            )
        )
    return parameters


def _inheritance(header: str) -> Tuple[Optional[str], List[str]]:
    """Interface-looking first base (``IName``) → everything is implemented."""
    header = header.strip()
    if header.startswith("<"):
        header = header[find_matching_bracket(header, 0, "<", ">") + 1:].strip()
    if header.startswith("("):
        header = header[find_matching_bracket(header, 0, "(", ")") + 1:].strip()
    if not header.startswith(":"):
        return None, []

    bases = split_names(re.split(r"\bwhere\b", header[1:], maxsplit=1)[0])
    # Record base with arguments: "Base(X)" → "Base"
    bases = [re.sub(r"\s*\(.*$", "", base) for base in bases]
    if not bases:
        return None, []
    if _INTERFACE_NAME_RE.match(bases[0]):
        return None, bases
    return bases[0], bases[1:]


def _visibility(modifiers: Tuple[str, ...], owner_kind: Optional[str]) -> str:
    for word in ("public", "private", "protected", "internal"):
        if word in modifiers:
            return word
    return "public" if owner_kind == "interface" else "private"


class _CSharpScan:
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
        errors, warnings = check_lines(self.view.code_lines, CSHARP_POLICY)

        return StructuralSummary(
            language=LANGUAGE,
            functions=functions,
            classes=classes,
            imports=self._usings(),
            exports=[
                ExportInfo(name=c.name, type=c.kind)
                for c in classes
                if c.parent_name is None and c.is_exported
            ],
            syntax_errors=errors,
            warnings=warnings,
        )

    # -- classes -----------------------------------------------------------

    def _build_class(self, span: TypeSpan) -> ClassInfo:
        kind = _KINDS.get(squash(span.kind), span.kind)
        start_line = self.view.line_of(span.start)
        end_line = max(start_line, self.view.line_of(span.close))

        methods: List[FunctionInfo] = []
        properties: List[PropertyInfo] = []
        extends, implements = None, []
        metadata = {}
        if kind == "enum":
            base = re.match(r"\s*:\s*([\w.]+)", span.header)
            if base:
                metadata["underlyingType"] = base.group(1)
        else:
            extends, implements = _inheritance(span.header)
            member_rules = [
                Rule("method", _METHOD_RE, partial(self._method, owner=span)),
                Rule("property", _MEMBER_DATA_RE, partial(self._property, owner=span)),
            ]
            members = apply_rules(member_rules, self.code, span.open + 1, span.close)
            methods = [m for m in members if isinstance(m, FunctionInfo)]
            properties = [p for p in members if isinstance(p, PropertyInfo)]
        if squash(span.kind).startswith("record"):
            metadata["isRecord"] = True

        if self.options.verbose:
            logger.debug(f"C# {kind} {span.name} at lines {start_line}-{end_line}")

        return ClassInfo(
            name=span.name,
            kind=kind,
            methods=methods,
            properties=properties,
            extends=extends,
            implements=implements,
            start_line=start_line,
            end_line=end_line,
            is_exported="public" in span.modifiers,
            docstring=self._docstring(start_line),
            modifiers=span.modifiers,
            parent_name=span.parent,
            metadata=metadata,
        )

    def _method(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[FunctionInfo]:
        if not self.at_body_level(match.start(), owner):
            return None
        return self._function(match, owner)

    def _property(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[PropertyInfo]:
        if not self.at_body_level(match.start(), owner) or in_open_parens(self.code, match.start()):
            return None
        prop_type = squash(match.group("type"))
        name = match.group("name")
        if prop_type in _KEYWORDS or name in _KEYWORDS:
            return None

        modifiers = tuple(match.group("mods").split())
        rest = match.group("rest")
        default_value = None
        if rest == "{":
            close = find_matching_bracket(self.code, match.end() - 1)
            accessors = self.code[match.end():close]
            if not _ACCESSOR_RE.search(accessors):
                return None
            initializer = re.match(r"\s*=(?![=>])", self.code[close + 1:close + 64])
            if initializer:
                value_start = close + 1 + initializer.end()
                end = find_statement_end(self.code, value_start)
                default_value = squash(self.view.original(value_start, end)) or None
        elif rest == "=":
            end = find_statement_end(self.code, match.end())
            default_value = squash(self.view.original(match.end(), end)) or None

        return PropertyInfo(
            name=name,
            type=prop_type,
            visibility=_visibility(modifiers, owner.kind),
            is_static="static" in modifiers or "const" in modifiers,
            modifiers=modifiers,
            default_value=default_value,
        )

    # -- functions ---------------------------------------------------------

    def _top_level_function(self, match: "re.Match[str]", spans: List[TypeSpan]) -> Optional[FunctionInfo]:
        if not outside_types(spans, match.start()):
            return None
        for open_index in enclosing_blocks(self.code, match.start()):
            if not _NAMESPACE_HEADER_RE.search(block_header(self.code, open_index)):
                return None
        return self._function(match, None)

    def _function(self, match: "re.Match[str]", owner: Optional[TypeSpan]) -> Optional[FunctionInfo]:
        modifiers = tuple(match.group("mods").split())
        if "delegate" in modifiers:
            return None
        qualified = re.sub(r"\s+", "", match.group("name"))
        name = qualified.split(".")[-1]
        if name in _KEYWORDS:
            return None

        return_type = match.group("ret")
        if return_type is not None:
            return_type = squash(return_type)
            if return_type in _KEYWORDS:
                return None
            is_constructor = False
        elif owner is not None and name == owner.name and "new" not in modifiers:
            is_constructor = True
        else:
            return None

        open_paren = match.end() - 1
        close_paren = find_matching_bracket(self.code, open_paren)
        position = close_paren + 1
        init = _CONSTRUCTOR_INIT_RE.match(self.code, position)
        if init is not None:
            position = find_matching_bracket(self.code, init.end()) + 1
        tail = _METHOD_TAIL_RE.match(self.code, position)
        if tail is None:
            return None

        end = tail.group("end")
        if end == ";" and owner is None:
            return None

        start_line = self.view.line_of(match.start())
        if end == "{":
            extent = body_extent(self.view, tail.end() - 1)
            body, end_line = extent.body, max(start_line, extent.end_line)
        elif end == "=>":
            stop = find_statement_end(self.code, tail.end())
            body, end_line = self.code[tail.end():stop], max(start_line, self.view.line_of(stop))
        else:
            body, end_line = "", start_line

        parameters = parse_parameters(
            self.code[open_paren + 1:close_paren],
            self.view.original(open_paren + 1, close_paren),
        )
        metadata = {
            "isVirtual": "virtual" in modifiers,
            "isOverride": "override" in modifiers,
            "isAbstract": "abstract" in modifiers,
        }
        if end == "=>":
            metadata["isExpressionBodied"] = True
        if qualified != name:
            metadata["explicitInterface"] = qualified.rsplit(".", 1)[0]
        if match.group("tparams"):
            metadata["typeParameters"] = squash(match.group("tparams"))

        if self.options.verbose:
            owner_name = owner.name if owner else "<top level>"
            logger.debug(f"C# method {owner_name}.{name} at lines {start_line}-{end_line}")

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
            test_candidates=generate_test_candidates(name, len(parameters), PASCAL),
            is_async="async" in modifiers,
            visibility=_visibility(modifiers, owner.kind if owner else None),
            is_constructor=is_constructor,
            has_body=end != ";",
            modifiers=modifiers,
            parent_name=owner.name if owner else None,
            metadata=metadata,
        )

    # -- usings / docs -----------------------------------------------------

    def _usings(self) -> List[ImportInfo]:
        usings: List[ImportInfo] = []
        for m in _USING_RE.finditer(self.view.text):
            keyword = m.start("kw")
            if self.code[keyword] != self.view.text[keyword]:
                continue  # inside a comment or literal
            target = re.sub(r"\s+", "", m.group("target"))
            is_static = m.group("static") is not None
            alias = m.group("alias")
            if alias:
                source, name = target, target
            else:
                parts = target.split(".")
                source, name = ".".join(parts[:-1]) or target, parts[-1]
            usings.append(
                ImportInfo(
                    source=source,
                    imports=(ImportedName(name=name, alias=alias, is_default=True, is_static=is_static),),
                    is_external=is_external_namespace(target),
                    line=self.view.line_of(keyword),
                )
            )
        return usings

    def _docstring(self, start_line: int) -> str:
        anchor = skip_leading_annotations(self.view.lines, start_line, ("[",))
        return associate_docstring(self.view.lines, anchor)


class CSharpExtractor:
    """Heuristic structure extractor for C# sources."""

    language = LANGUAGE
    extensions = (".cs",)
    naming_convention = PASCAL

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        return _CSharpScan(build_view(text, LANGUAGE), options).run()
