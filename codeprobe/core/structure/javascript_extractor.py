"""JavaScript structure extractor.

Module-level function declarations and functions bound with ``const``,
``let`` or ``var`` (function expressions and arrow functions); classes with
their methods, fields and arrow-function fields; ES module imports and
exports and CommonJS ``require`` calls.

The scan is shared with the TypeScript extractor. A :class:`ScriptDialect`
supplies the class-like declaration pattern and the forms only TypeScript
has (type aliases, namespaces).
"""

import logging
import re
from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, List, Optional, Pattern, Set, Tuple

from .base import SourceInput, run_extraction
from .blocks import (
    BodyLevels,
    TypeSpan,
    body_extent,
    find_type_spans,
    in_open_parens,
    innermost_span,
    outside_types,
    split_names,
)
from .complexity import score_complexity
from .dependencies import collect_dependencies
from .diagnostics import check_paren_lines
from .docstrings import associate_docstring
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
from .text_utils import find_matching_bracket, split_top_level, squash

logger = logging.getLogger(__name__)

LANGUAGE = "javascript"

IDENT = r"[A-Za-z_$][\w$]*"
TYPE_PARAMS = r"<[^;{}()]*>"
# "class extends Base {}" has no name
NOT_HERITAGE = r"(?!(?:extends|implements)\b)"

_CLASS_MODS = ("export", "default")
_CLASS_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_CLASS_MODS)
    + r"(?P<mods>(?:(?:export|default)\s+)*)"
    r"\b(?P<kind>class)\s+" + NOT_HERITAGE + r"(?P<name>" + IDENT + r")(?P<header>[^{;]*)\{"
)

_FUNCTION_MODS = ("export", "default", "declare", "async")
_FUNCTION_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_FUNCTION_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_FUNCTION_MODS) + r")\s+)*)"
    r"\bfunction\b\s*(?P<star>\*)?\s*(?P<name>" + IDENT + r")?\s*(?P<tparams>" + TYPE_PARAMS + r")?\s*\("
)

_BINDING_MODS = ("export", "declare")
_BINDING_RE = re.compile(
    r"(?<![\w$.])" + not_after_words(_BINDING_MODS)
    + r"(?P<mods>(?:(?:export|declare)\s+)*)"
    r"\b(?:const|let|var)\s+(?P<name>" + IDENT + r")\s*(?::[^=;{}]*)?=(?![=>])\s*"
)

# A function expression or an arrow function at the start of a value
_FUNCTION_VALUE_RE = re.compile(
    r"\s*(?P<async>async\b\s*)?"
    r"(?:function\b\s*(?P<star>\*)?\s*(?:" + IDENT + r"\s*)?(?P<tparams>" + TYPE_PARAMS + r")?\s*(?P<open>\()"
    r"|(?P<arrow_tparams>" + TYPE_PARAMS + r")?\s*(?P<arrow_open>\()"
    r"|(?P<param>" + IDENT + r")\s*=>\s*)"
)
_ARROW_TAIL_RE = re.compile(r"\s*(?::\s*(?P<ret>[^=;{}]*?)\s*)?=>\s*")
_SIGNATURE_TAIL_RE = re.compile(r"[ \t]*(?::\s*(?P<ret>[^{;=]*?))?\s*(?P<end>\{|;|,|$)", re.MULTILINE)

_MEMBER_MODS = (
    "public", "private", "protected", "static", "async", "readonly", "abstract", "override", "declare",
    "accessor", "get", "set",
)
_MEMBER_PREFIX = (
    r"(?<![\w$.#@])" + not_after_words(_MEMBER_MODS)
    + r"(?P<mods>(?:(?:" + "|".join(_MEMBER_MODS) + r")\s+)*)"
)
_METHOD_RE = re.compile(
    _MEMBER_PREFIX
    + r"(?P<star>\*\s*)?(?P<name>#?" + IDENT + r")(?P<optional>\?)?\s*(?P<tparams>" + TYPE_PARAMS + r")?\s*\("
)
_FIELD_RE = re.compile(
    _MEMBER_PREFIX
    + r"(?P<name>#?" + IDENT + r")(?P<mark>[?!])?[ \t]*"
    r"(?::(?P<type>(?:=>|[^=;{}\n])+))?"
    r"(?P<rest>=(?![=>])|[;,]|(?=[\n}])|\Z)"
)

_ENUM_MEMBER_RE = re.compile(r"\s*(?P<name>" + IDENT + r")\s*(?P<assign>=)?")

# Imports are matched on the original text; the keyword must be code
_STATEMENT_START = r"(?:^|(?<=;))[ \t]*"
_QUOTED_SOURCE = r"(?P<q>['\"])(?P<source>[^'\"\n]*)(?P=q)"
_IMPORT_RE = re.compile(
    _STATEMENT_START + r"(?P<kw>import)\s+(?:type\s+)?(?P<clause>[^'\";]*?)\s*\bfrom\s*" + _QUOTED_SOURCE,
    re.MULTILINE,
)
_BARE_IMPORT_RE = re.compile(_STATEMENT_START + r"(?P<kw>import)\s*" + _QUOTED_SOURCE, re.MULTILINE)
_REQUIRE_RE = re.compile(
    r"(?:\b(?:const|let|var)\s+(?P<binding>" + IDENT + r"|\{[^{}]*\})\s*=\s*)?"
    r"\b(?P<kw>require)\s*\(\s*" + _QUOTED_SOURCE + r"\s*\)"
)
_EXPORT_FROM_RE = re.compile(
    _STATEMENT_START + r"(?P<kw>export)\s+(?:type\s+)?"
    r"(?P<clause>\*(?:\s*as\s+(?P<namespace>" + IDENT + r"))?|\{[^{}]*\})\s*from\s*" + _QUOTED_SOURCE,
    re.MULTILINE,
)

# Exports are matched on the masked text
_EXPORT_LIST_RE = re.compile(r"(?<![\w$.])export\s+(?:type\s+)?\{(?P<names>[^{}]*)\}(?!\s*from\b)")
_EXPORT_BINDING_RE = re.compile(
    r"(?<![\w$.])export\s+(?:declare\s+)?(?:const|let|var)\s+(?!enum\b)(?P<name>" + IDENT + r")"
)
_EXPORT_DEFAULT_RE = re.compile(
    r"(?<![\w$.])export\s+default\s+"
    r"(?:(?P<name>" + IDENT + r")\s*(?:;|$)"
    r"|(?!(?:async\s+)?function\b|(?:abstract\s+)?class\b|interface\b))",
    re.MULTILINE,
)
_SPECIFIER_RE = re.compile(
    r"^(?:type\s+)?(?P<name>" + IDENT + r")(?:\s+as\s+(?P<alias>" + IDENT + r"))?$"
)
_NAMESPACE_IMPORT_RE = re.compile(r"^\*\s*as\s+(?P<alias>" + IDENT + r")$")
_DESTRUCTURED_RE = re.compile(r"^(?P<name>" + IDENT + r")(?:\s*:\s*(?P<alias>" + IDENT + r"))?$")

_PARAM_DECORATORS_RE = re.compile(r"(?:@[\w$.]+(?:\([^()]*\))?\s*)+")
_PARAM_MODIFIERS_RE = re.compile(r"(?:(?:public|private|protected|readonly|override)\s+)+")

_NEXT_CHAR_RE = re.compile(r"\s*(\S)")
# A line ending in one of these continues on the next line
_OPEN_ENDINGS = "=([{,+-*/%&|^!~?:<>."
# A line starting with one of these continues the previous one
_CONTINUED_STARTS = ".?:+-*/%&|^=<>"
# A line ending in one of these leaves an expression hanging
_HANGING = "=([&|+-*/%.!~^?"

_KEYWORDS = frozenset({
    "if", "else", "for", "while", "do", "switch", "case", "break", "continue", "return", "throw",
    "try", "catch", "finally", "new", "delete", "typeof", "void", "instanceof", "in", "of",
    "await", "yield", "import", "export", "const", "let", "var", "function", "class", "extends",
    "super", "this", "default", "debugger", "with",
})


def is_external_module(source: str) -> bool:
    return not source.startswith(".") and not source.startswith("/")


def _top_level_index(text: str, target: str) -> int:
    """Index of the first ``target`` outside brackets, or -1.

    For ``target == "="`` the ``=`` of ``=>``, ``==``, ``!=``, ``<=`` and
    ``>=`` does not count.
    """
    depth = 0
    for i, ch in enumerate(text):
        if ch in "([{<":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == ">":
            if text[i - 1:i] != "=":
                depth -= 1
        elif ch == target and depth == 0:
            if target == "=" and (text[i + 1:i + 2] in ("=", ">") or text[i - 1:i] in ("=", "!")):
                continue
            return i
    return -1


def parse_parameters(code: str, text: str) -> List[ParameterInfo]:
    """Parse a JavaScript or TypeScript parameter list.

    Destructured parameters keep their pattern as the name. A rest
    parameter is variadic with type ``array`` unless annotated; other
    parameters without an annotation get ``any``.

    Args:
        code: Masked text between the parentheses
        text: Original text of the same span (annotations and defaults are
            read here)
    """
    parameters: List[ParameterInfo] = []
    for start, end in split_top_level(code):
        piece = code[start:end]
        start += len(piece) - len(piece.lstrip())
        decorators = _PARAM_DECORATORS_RE.match(code, start, end)
        if decorators:
            start = decorators.end()
        modifier = None
        modifiers = _PARAM_MODIFIERS_RE.match(code, start, end)
        if modifiers:
            modifier = squash(modifiers.group())
            start = modifiers.end()
        piece = code[start:end]
        if not piece.strip():
            continue

        is_variadic = piece.startswith("...")
        if is_variadic:
            start += 3
            piece = piece[3:]

        default_value = None
        equals = _top_level_index(piece, "=")
        if equals != -1:
            default_value = squash(text[start + equals + 1:end]) or None
            piece = piece[:equals]

        annotation = None
        colon = _top_level_index(piece, ":")
        if colon != -1:
            annotation = squash(text[start + colon + 1:start + len(piece)]) or None
            piece = piece[:colon]

        name = squash(piece)
        marked_optional = name.endswith("?")
        if marked_optional:
            name = name[:-1].rstrip()
        if not name or name == "this":
            continue

        parameters.append(
            ParameterInfo(
                name=name,
                type=annotation or ("array" if is_variadic else "any"),
                optional=marked_optional or default_value is not None,
                default_value=default_value,
                modifier=modifier,
                is_variadic=is_variadic,
            )
        )
    return parameters


def _expression_end(code: str, start: int) -> int:
    """End of an arrow function's expression body.

    The body stops at a ``;``, a ``,`` or an unmatched closer outside
    brackets, or at a line break when neither side of the break continues
    the expression.
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
        elif depth == 0:
            if ch in ";,":
                return i
            if ch == "\n" and not _continues(code, start, i):
                return i
    return len(code)


def _continues(code: str, start: int, newline: int) -> bool:
    i = newline - 1
    while i >= start and code[i].isspace():
        i -= 1
    if i < start or code[i] in _OPEN_ENDINGS:
        return True
    following = _NEXT_CHAR_RE.match(code, newline + 1)
    return following is not None and following.group(1) in _CONTINUED_STARTS


def _opening_paren(code: str, close: int) -> int:
    depth = 0
    for i in range(close, -1, -1):
        if code[i] == ")":
            depth += 1
        elif code[i] == "(":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _heritage(header: str, kind: str) -> Tuple[Optional[str], List[str]]:
    """Read ``extends`` and ``implements``; an interface's ``extends`` list counts as implemented."""
    header = header.strip()
    if header.startswith("<"):
        header = header[find_matching_bracket(header, 0, "<", ">") + 1:].strip()
    clauses = re.split(r"\bimplements\b", header, maxsplit=1)
    implements = split_names(clauses[1]) if len(clauses) > 1 else []
    base = re.match(r"extends\b(.*)$", clauses[0].strip(), re.DOTALL)
    bases = split_names(base.group(1)) if base else []
    if kind == "interface":
        return None, bases + implements
    return (bases[0] if bases else None), implements


def _visibility(modifiers: Tuple[str, ...], name: str) -> str:
    if name.startswith("#"):
        return "private"
    for word in ("private", "protected", "public"):
        if word in modifiers:
            return word
    return "public"


def _specifiers(text: str) -> List[Tuple[str, Optional[str]]]:
    """``a, b as c, type D`` → [("a", None), ("b", "c"), ("D", None)]."""
    found = []
    for item in text.split(","):
        m = _SPECIFIER_RE.match(squash(item))
        if m:
            found.append((m.group("name"), m.group("alias")))
    return found


def _imported_names(clause: str) -> List[ImportedName]:
    clause = squash(clause)
    brace = clause.find("{")
    head = clause if brace == -1 else clause[:brace]
    names: List[ImportedName] = []
    for item in head.split(","):
        item = item.strip()
        namespace = _NAMESPACE_IMPORT_RE.match(item)
        if namespace:
            names.append(ImportedName(name="*", alias=namespace.group("alias")))
        elif re.fullmatch(IDENT, item):
            names.append(ImportedName(name=item, is_default=True))
    if brace != -1:
        inner = clause[brace + 1:clause.rfind("}")] if "}" in clause else clause[brace + 1:]
        names.extend(ImportedName(name=name, alias=alias) for name, alias in _specifiers(inner))
    return names


def _required_names(binding: Optional[str]) -> List[ImportedName]:
    if not binding:
        return []
    if not binding.startswith("{"):
        return [ImportedName(name=binding, is_default=True)]
    names = []
    for item in binding.strip("{}").split(","):
        m = _DESTRUCTURED_RE.match(squash(item))
        if m:
            names.append(ImportedName(name=m.group("name"), alias=m.group("alias")))
    return names


@dataclass(frozen=True)
class ScriptDialect:
    """Declaration forms that differ between JavaScript and TypeScript."""

    language: str
    type_decl_re: Pattern[str]  # Must define name, kind, mods, header; ends on "{"
    type_alias_re: Optional[Pattern[str]] = None  # Defines mods and name
    namespace_re: Optional[Pattern[str]] = None  # Same groups as type_decl_re


JAVASCRIPT = ScriptDialect(language=LANGUAGE, type_decl_re=_CLASS_RE)


class ScriptScan:
    """State of one ``parse`` call for JavaScript or TypeScript."""

    def __init__(self, view: SourceView, options: ExtractionOptions, dialect: ScriptDialect):
        self.view = view
        self.code = view.code
        self.options = options
        self.dialect = dialect
        self.language = dialect.language
        self.at_body_level = BodyLevels(view.code)
        # The whole text as one body: module level is its body level
        self.root = TypeSpan(name="", kind="module", start=0, open=-1, close=len(view.code))
        self.namespaces: List[TypeSpan] = []
        self.exported_names: Set[str] = set()

    def run(self) -> StructuralSummary:
        spans = find_type_spans(self.code, self.dialect.type_decl_re)
        if self.dialect.namespace_re is not None:
            self.namespaces = find_type_spans(self.code, self.dialect.namespace_re)
        exports = self._exports(spans)
        classes = [self._build_class(span) for span in spans]
        functions = apply_rules(
            [
                Rule("function", _FUNCTION_RE, partial(self._declared_function, spans=spans)),
                Rule("binding", _BINDING_RE, partial(self._binding, spans=spans)),
            ],
            self.code,
        )
        functions.sort(key=lambda f: f.start_line)
        errors, warnings = check_paren_lines(self.view.code_lines)

        return StructuralSummary(
            language=self.language,
            functions=functions,
            classes=classes,
            imports=self._imports(),
            exports=exports,
            syntax_errors=errors,
            warnings=warnings,
        )

    # -- positions ---------------------------------------------------------

    def _at_root(self, position: int) -> bool:
        return self.at_body_level(position, self.root)

    def _at_module_level(self, position: int, spans: List[TypeSpan]) -> bool:
        """Outside every class, directly in the module or in a namespace body."""
        if not outside_types(spans, position):
            return False
        container = innermost_span(self.namespaces, position) or self.root
        return self.at_body_level(position, container)

    def _expects_value(self, position: int) -> bool:
        """True when the text before ``position`` leaves an expression open."""
        i = position - 1
        while i >= 0 and self.code[i].isspace():
            i -= 1
        return i >= 0 and self.code[i] in "=(,:?[!&|+-*/%<>"

    def _leading_decorators(self, position: int) -> Tuple[int, List[str]]:
        """Walk back over ``@name`` and ``@name(...)`` decorators ending at ``position``.

        Returns the offset of the first decorator (``position`` when there
        is none) and the decorator names in source order.
        """
        code = self.code
        names: List[str] = []
        top = position
        i = position - 1
        while True:
            while i >= 0 and code[i].isspace():
                i -= 1
            end = i
            if end >= 0 and code[end] == ")":
                end = _opening_paren(code, end) - 1
            k = end
            while k >= 0 and (code[k].isalnum() or code[k] in "_$."):
                k -= 1
            if k == end or k < 0 or code[k] != "@":
                return top, names[::-1]
            names.append(code[k + 1:end + 1])
            top = k
            i = k - 1

    def _starts_member(self, position: int) -> bool:
        """A class member starts after ``;``, ``{``, ``}``, ``,``, its decorators or a line break.

        A line break counts only when the previous line does not leave an
        expression hanging (``=``, ``=>``, an open bracket, an operator).
        """
        code = self.code
        top, _ = self._leading_decorators(position)
        i = top - 1
        while i >= 0 and code[i] in " \t\r":
            i -= 1
        if i < 0 or code[i] in ";{},":
            return True
        if code[i] != "\n":
            return False
        while i >= 0 and code[i].isspace():
            i -= 1
        return i < 0 or not (code[i] in _HANGING or (i > 0 and code[i - 1:i + 1] == "=>"))

    def _is_member(self, position: int, owner: TypeSpan) -> bool:
        return (
            self.at_body_level(position, owner)
            and self._starts_member(position)
            and not in_open_parens(self.code, position)
        )

    # -- classes -----------------------------------------------------------

    def _build_class(self, span: TypeSpan) -> ClassInfo:
        start_line = self.view.line_of(span.start)
        end_line = max(start_line, self.view.line_of(span.close))

        methods: List[FunctionInfo] = []
        properties: List[PropertyInfo] = []
        extends, implements = None, []
        metadata: Dict[str, Any] = {}
        if span.kind == "enum":
            metadata["members"] = self._enum_members(span)
            if "const" in span.modifiers:
                metadata["isConst"] = True
        else:
            extends, implements = _heritage(span.header, span.kind)
            member_rules = [
                Rule("method", _METHOD_RE, partial(self._method, owner=span)),
                Rule("field", _FIELD_RE, partial(self._field, owner=span)),
            ]
            members = apply_rules(member_rules, self.code, span.open + 1, span.close)
            methods = sorted((m for m in members if isinstance(m, FunctionInfo)), key=lambda m: m.start_line)
            properties = [p for p in members if isinstance(p, PropertyInfo)]
            for constructor in (m for m in methods if m.is_constructor):
                properties.extend(self._parameter_properties(constructor))
        if "abstract" in span.modifiers:
            metadata["isAbstract"] = True
        top, decorators = self._leading_decorators(span.start)
        if decorators:
            metadata["decorators"] = decorators

        if self.options.verbose:
            logger.debug(f"{self.language} {span.kind} {span.name} at lines {start_line}-{end_line}")

        return ClassInfo(
            name=span.name,
            kind=span.kind,
            methods=methods,
            properties=properties,
            extends=extends,
            implements=implements,
            start_line=start_line,
            end_line=end_line,
            is_exported="export" in span.modifiers or span.name in self.exported_names,
            docstring=associate_docstring(self.view.lines, self.view.line_of(top)),
            modifiers=span.modifiers,
            parent_name=span.parent,
            metadata=metadata,
        )

    def _enum_members(self, span: TypeSpan) -> List[Dict[str, Optional[str]]]:
        members = []
        offset = span.open + 1
        for start, end in split_top_level(self.code[offset:span.close]):
            end += offset
            m = _ENUM_MEMBER_RE.match(self.code, offset + start, end)
            if m is None:
                continue
            value = None
            if m.group("assign"):
                # String values are blank in the masked text
                value = squash(self.view.original(m.end(), end)) or None
            elif self.code[m.end():end].strip():
                continue
            members.append({"name": m.group("name"), "value": value})
        return members

    def _parameter_properties(self, constructor: FunctionInfo) -> List[PropertyInfo]:
        """Constructor parameters with an access modifier declare fields."""
        found = []
        for param in constructor.parameters:
            if not param.modifier:
                continue
            modifiers = tuple(param.modifier.split())
            found.append(
                PropertyInfo(
                    name=param.name,
                    type=param.type,
                    visibility=_visibility(modifiers, param.name),
                    modifiers=modifiers,
                    default_value=param.default_value,
                )
            )
        return found

    def _method(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[FunctionInfo]:
        name = match.group("name")
        if name in _KEYWORDS or not self._is_member(match.start(), owner):
            return None
        modifiers = tuple(match.group("mods").split())
        metadata: Dict[str, Any] = {}
        if match.group("star"):
            metadata["isGenerator"] = True
        if "get" in modifiers:
            metadata["isGetter"] = True
        if "set" in modifiers:
            metadata["isSetter"] = True
        if "abstract" in modifiers:
            metadata["isAbstract"] = True
        if "override" in modifiers:
            metadata["isOverride"] = True
        if match.group("optional"):
            metadata["isOptional"] = True
        if match.group("tparams"):
            metadata["typeParameters"] = squash(match.group("tparams"))
        return self._function(name, match.start(), match.end() - 1, modifiers, owner, metadata)

    def _field(self, match: "re.Match[str]", owner: TypeSpan) -> Optional[Any]:
        """A field, or a method when the field holds a function."""
        name = match.group("name")
        if name in _KEYWORDS or not self._is_member(match.start(), owner):
            return None
        modifiers = tuple(match.group("mods").split())

        default_value = None
        if match.group("rest") == "=":
            value = _FUNCTION_VALUE_RE.match(self.code, match.end())
            if value is not None and owner.kind != "interface":
                method = self._function_value(match.start(), value, name, modifiers, owner)
                if method is not None:
                    return method
            end = _expression_end(self.code, match.end())
            default_value = squash(self.view.original(match.end(), end)) or None

        prop_type = "any"
        if match.group("type"):
            prop_type = squash(self.view.original(match.start("type"), match.end("type"))) or "any"
        if match.group("mark") == "?":
            modifiers += ("optional",)

        return PropertyInfo(
            name=name,
            type=prop_type,
            visibility=_visibility(modifiers, name),
            is_static="static" in modifiers,
            modifiers=modifiers,
            default_value=default_value,
        )

    # -- functions ---------------------------------------------------------

    def _declared_function(self, match: "re.Match[str]", spans: List[TypeSpan]) -> Optional[FunctionInfo]:
        modifiers = tuple(match.group("mods").split())
        name = match.group("name")
        if name is None:
            if "default" not in modifiers:
                return None
            name = "default"
        if self._expects_value(match.start()) or not self._at_module_level(match.start(), spans):
            return None
        metadata: Dict[str, Any] = {}
        if match.group("star"):
            metadata["isGenerator"] = True
        if match.group("tparams"):
            metadata["typeParameters"] = squash(match.group("tparams"))
        return self._function(name, match.start(), match.end() - 1, modifiers, None, metadata)

    def _binding(self, match: "re.Match[str]", spans: List[TypeSpan]) -> Optional[FunctionInfo]:
        value = _FUNCTION_VALUE_RE.match(self.code, match.end())
        if value is None or not self._at_module_level(match.start(), spans):
            return None
        modifiers = tuple(match.group("mods").split())
        return self._function_value(match.start(), value, match.group("name"), modifiers, None)

    def _function_value(
        self,
        start: int,
        value: "re.Match[str]",
        name: str,
        modifiers: Tuple[str, ...],
        owner: Optional[TypeSpan],
    ) -> Optional[FunctionInfo]:
        if value.group("async"):
            modifiers += ("async",)
        metadata: Dict[str, Any] = {}
        tparams = value.group("tparams") or value.group("arrow_tparams")
        if tparams:
            metadata["typeParameters"] = squash(tparams)

        if value.group("param") is not None:
            metadata["isArrow"] = True
            parameters = [ParameterInfo(name=value.group("param"), type="any")]
            return self._assemble(name, start, parameters, None, value.end(), modifiers, owner, metadata)
        if value.group("open") is not None:
            metadata["isFunctionExpression"] = True
            if value.group("star"):
                metadata["isGenerator"] = True
            return self._function(name, start, value.start("open"), modifiers, owner, metadata)
        metadata["isArrow"] = True
        return self._function(name, start, value.start("arrow_open"), modifiers, owner, metadata, arrow=True)

    def _function(
        self,
        name: str,
        start: int,
        open_paren: int,
        modifiers: Tuple[str, ...],
        owner: Optional[TypeSpan],
        metadata: Dict[str, Any],
        arrow: bool = False,
    ) -> Optional[FunctionInfo]:
        """Build a function from the parameter list opening at ``open_paren``."""
        close_paren = find_matching_bracket(self.code, open_paren)
        parameters = parse_parameters(
            self.code[open_paren + 1:close_paren],
            self.view.original(open_paren + 1, close_paren),
        )
        if arrow:
            tail = _ARROW_TAIL_RE.match(self.code, close_paren + 1)
            if tail is None:
                return None
            body_at: Optional[int] = tail.end()
        else:
            tail = _SIGNATURE_TAIL_RE.match(self.code, close_paren + 1)
            if tail is None:
                return None
            body_at = tail.end() - 1 if tail.group("end") == "{" else None
            if owner is not None and owner.kind == "interface":
                body_at = None
        return self._assemble(name, start, parameters, tail.group("ret"), body_at, modifiers, owner, metadata)

    def _assemble(
        self,
        name: str,
        start: int,
        parameters: List[ParameterInfo],
        ret: Optional[str],
        body_at: Optional[int],
        modifiers: Tuple[str, ...],
        owner: Optional[TypeSpan],
        metadata: Dict[str, Any],
    ) -> FunctionInfo:
        start_line = self.view.line_of(start)
        if body_at is None:
            body, end_line = "", start_line
        elif self.code.startswith("{", body_at):
            extent = body_extent(self.view, body_at)
            body, end_line = extent.body, max(start_line, extent.end_line)
        else:
            stop = _expression_end(self.code, body_at)
            body, end_line = self.code[body_at:stop], max(start_line, self.view.line_of(stop))

        is_constructor = owner is not None and name == "constructor"
        return_type = None if is_constructor else (squash(ret or "") or "any")
        if owner is None:
            visibility = None
            is_exported = "export" in modifiers or name in self.exported_names
        else:
            visibility = _visibility(modifiers, name)
            is_exported = visibility == "public"

        if self.options.verbose:
            owner_name = owner.name if owner else "<module>"
            logger.debug(f"{self.language} function {owner_name}.{name} at lines {start_line}-{end_line}")

        return FunctionInfo(
            name=name,
            parameters=parameters,
            return_type=return_type,
            start_line=start_line,
            end_line=end_line,
            complexity=score_complexity(body, self.language),
            dependencies=collect_dependencies(body, self.language),
            is_exported=is_exported,
            is_static="static" in modifiers,
            docstring=self._docstring(start),
            test_candidates=generate_test_candidates(name.lstrip("#"), len(parameters), CAMEL),
            is_async="async" in modifiers,
            visibility=visibility,
            is_constructor=is_constructor,
            has_body=body_at is not None,
            modifiers=modifiers,
            parent_name=owner.name if owner else None,
            metadata=metadata,
        )

    # -- imports / exports / docs ------------------------------------------

    def _is_code(self, offset: int) -> bool:
        return self.code[offset] == self.view.text[offset]

    def _imports(self) -> List[ImportInfo]:
        found: List[Tuple[int, ImportInfo]] = []
        text = self.view.text
        for m in _IMPORT_RE.finditer(text):
            found.append((m.start("kw"), self._import(m, _imported_names(m.group("clause")))))
        for m in _BARE_IMPORT_RE.finditer(text):
            found.append((m.start("kw"), self._import(m, [])))
        for m in _REQUIRE_RE.finditer(text):
            found.append((m.start("kw"), self._import(m, _required_names(m.group("binding")))))
        found.sort(key=lambda item: item[0])
        return [info for offset, info in found if self._is_code(offset)]

    def _import(self, match: "re.Match[str]", names: List[ImportedName]) -> ImportInfo:
        source = match.group("source")
        return ImportInfo(
            source=source,
            imports=names,
            is_external=is_external_module(source),
            line=self.view.line_of(match.start("kw")),
        )

    def _exports(self, spans: List[TypeSpan]) -> List[ExportInfo]:
        """Collect exports in source order and remember which local names they expose."""
        found: List[Tuple[int, ExportInfo]] = []
        kinds: Dict[str, str] = {}

        for span in spans:
            if span.parent is not None or not self._at_root(span.start):
                continue
            kinds.setdefault(span.name, span.kind)
            if "export" in span.modifiers:
                found.append((span.start, ExportInfo(span.name, span.kind, "default" in span.modifiers)))
        for span in self.namespaces:
            if "export" in span.modifiers and span.name and self._at_root(span.start):
                found.append((span.start, ExportInfo(span.name, "namespace")))
        for m in _FUNCTION_RE.finditer(self.code):
            if not self._at_root(m.start()) or self._expects_value(m.start()):
                continue
            mods = m.group("mods").split()
            name = m.group("name")
            if name:
                kinds.setdefault(name, "function")
            if "export" in mods and (name or "default" in mods):
                found.append((m.start(), ExportInfo(name or "default", "function", "default" in mods)))
        for m in _EXPORT_BINDING_RE.finditer(self.code):
            if self._at_root(m.start()):
                found.append((m.start(), ExportInfo(m.group("name"), "variable")))
        if self.dialect.type_alias_re is not None:
            for m in self.dialect.type_alias_re.finditer(self.code):
                if "export" in m.group("mods").split() and self._at_root(m.start()):
                    found.append((m.start(), ExportInfo(m.group("name"), "type")))

        for m in _EXPORT_LIST_RE.finditer(self.code):
            if not self._at_root(m.start()):
                continue
            for local, alias in _specifiers(m.group("names")):
                self.exported_names.add(local)
                found.append((m.start(), ExportInfo(alias or local, kinds.get(local, "variable"))))
        for m in _EXPORT_DEFAULT_RE.finditer(self.code):
            if not self._at_root(m.start()):
                continue
            name = m.group("name")
            if name:
                self.exported_names.add(name)
            found.append((m.start(), ExportInfo(name or "default", kinds.get(name or "", "variable"), True)))
        for m in _EXPORT_FROM_RE.finditer(self.view.text):
            if not self._is_code(m.start("kw")):
                continue
            clause = m.group("clause")
            if clause.startswith("*"):
                found.append((m.start("kw"), ExportInfo(m.group("namespace") or "*", "namespace")))
            else:
                for name, alias in _specifiers(clause.strip("{}")):
                    found.append((m.start("kw"), ExportInfo(alias or name, "variable")))

        found.sort(key=lambda item: item[0])
        return [info for _, info in found]

    def _docstring(self, position: int) -> str:
        top, _ = self._leading_decorators(position)
        return associate_docstring(self.view.lines, self.view.line_of(top))


class JavaScriptExtractor:
    """Heuristic structure extractor for JavaScript sources (including JSX)."""

    language = LANGUAGE
    extensions = (".js", ".jsx", ".mjs", ".cjs")
    naming_convention = CAMEL

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        return ScriptScan(build_view(text, LANGUAGE), options, JAVASCRIPT).run()
