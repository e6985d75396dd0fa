"""Python structure extractor.

Blocks are found from indentation on the masked text. A block ends before
the first code line indented at or below its header; lines continuing an
open bracket or a backslash never end a block.
"""

import inspect
import keyword
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .base import SourceInput, run_extraction
from .blocks import split_names
from .complexity import score_complexity
from .dependencies import collect_dependencies
from .diagnostics import check_python_lines
from .docstrings import HASH_MARKERS, associate_docstring, skip_leading_annotations
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
from .test_candidates import SNAKE, generate_test_candidates
from .text_utils import find_matching_bracket, split_top_level, squash

logger = logging.getLogger(__name__)

LANGUAGE = "python"

_HEADER_RE = re.compile(
    r"^(?P<indent>[ \t]*)(?:(?P<async>async)\s+)?(?P<kw>def|class)\s+(?P<name>[A-Za-z_]\w*)",
    re.MULTILINE,
)
_TYPE_PARAMS_RE = re.compile(r"\s*\[")
_OPEN_PAREN_RE = re.compile(r"\s*\(")
_DEF_TAIL_RE = re.compile(r"\s*(?:->(?P<ret>[^:]+))?:")
_CLASS_TAIL_RE = re.compile(r"\s*:")

_IMPORT_RE = re.compile(r"^[ \t]*(?P<kw>import)[ \t]+(?P<names>[^\n;]+(?:\\\n[^\n;]*)*)", re.MULTILINE)
_FROM_IMPORT_RE = re.compile(
    r"^[ \t]*(?P<kw>from)[ \t]+(?P<module>\.*[\w.]*)[ \t]+import[ \t]*"
    r"(?:\((?P<group>[^)]*)\)|(?P<names>[^\n;]+(?:\\\n[^\n;]*)*))",
    re.MULTILINE,
)
_AS_RE = re.compile(r"^(?P<name>\S+)\s+as\s+(?P<alias>\w+)$")
_ALL_RE = re.compile(r"^__all__\s*(?::[^=\n]*)?=\s*(?P<open>[\[(])", re.MULTILINE)
_STRING_ITEM_RE = re.compile(r"""(['"])(\w+)\1""")

_CLASS_ATTR_RE = re.compile(r"^[ \t]*(?P<name>[A-Za-z_]\w*)[ \t]*(?::(?P<annot>[^=\n]*))?(?P<eq>=(?!=))?")
_SELF_ATTR_RE = re.compile(r"\bself\.(?P<name>\w+)[ \t]*(?::(?P<annot>[^=\n]*))?=(?!=)")
_IDENT_RE = re.compile(r"^[A-Za-z_]\w*$")
_DECORATOR_RE = re.compile(r"^@\s*(?P<name>[\w.]+)")

_LEADING_RE = re.compile(r"(?:\s+|#[^\n]*)*")
_DOCSTRING_RE = re.compile(
    r"(?:[rRuU]|[bB][rR]?|[rR][bB])?(?P<q>\"\"\"|'''|\"|')(?P<doc>.*?)(?P=q)",
    re.DOTALL,
)
_COMMENT_TAIL_RE = re.compile(r"""^((?:[^#'"\n]|'(?:\\.|[^'\\\n])*'|"(?:\\.|[^"\\\n])*")*)#[^\n]*$""", re.MULTILINE)

_MODIFIER_DECORATORS = frozenset({"staticmethod", "classmethod", "property", "abstractmethod"})
_SELF_NAMES = ("self", "cls")


def is_external_module(module: str) -> bool:
    return not module.startswith(".") and "/" not in module and "\\" not in module


def _strip_comments(text: str) -> str:
    return _COMMENT_TAIL_RE.sub(r"\1", text)


def parse_parameters(code: str, text: str) -> List[ParameterInfo]:
    """Parse a Python parameter list.

    ``*args`` becomes type ``tuple`` and ``**kwargs`` type ``dict``; the
    bare ``*`` and ``/`` markers are dropped. Unannotated parameters are
    typed ``Any``.
    """
    parameters: List[ParameterInfo] = []
    for start, end in split_top_level(code, angle_brackets=False):
        piece = code[start:end]
        start += len(piece) - len(piece.lstrip())
        piece = piece.strip()
        if not piece or piece in ("*", "/"):
            continue

        modifier = None
        if piece.startswith("**"):
            modifier, start = "**", start + 2
        elif piece.startswith("*"):
            modifier, start = "*", start + 1

        segment = code[start:end]
        head_end = split_top_level(segment, "=", angle_brackets=False)[0][1]
        default_value = None
        if head_end < len(segment):
            default_value = squash(_strip_comments(text[start + head_end + 1:end])) or None

        head = segment[:head_end]
        colon = head.find(":")
        name = (head[:colon] if colon != -1 else head).strip()
        if not _IDENT_RE.match(name):
            continue
        annotation = squash(_strip_comments(text[start + colon + 1:start + head_end])) if colon != -1 else ""

        if modifier == "*":
            param_type = "tuple"
        elif modifier == "**":
            param_type = "dict"
        else:
            param_type = annotation or "Any"

        parameters.append(
            ParameterInfo(
                name=name,
                type=param_type,
                optional=default_value is not None or modifier is not None,
                default_value=default_value,
                modifier=modifier,
                is_variadic=modifier is not None,
            )
        )
    return parameters


def _visibility(name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return "private"
    if name.startswith("_") and not name.endswith("__"):
        return "protected"
    return "public"


@dataclass(frozen=True)
class _Block:
    """A ``def`` or ``class`` header with the range of its suite."""

    kind: str  # "def" | "class"
    name: str
    start: int  # Offset of the header (after indentation)
    indent: int
    start_line: int
    colon: int  # Offset of the header's ":"
    end_line: int
    end: int  # Offset just past the suite's last line
    is_async: bool = False
    paren: Optional[Tuple[int, int]] = None  # Parameter or base list
    returns: Optional[Tuple[int, int]] = None  # Return annotation span

    def contains(self, other: "_Block") -> bool:
        return self.colon < other.start < self.end and self.indent < other.indent


class _PythonScan:
    """State of one ``parse`` call."""

    def __init__(self, view: SourceView, options: ExtractionOptions):
        self.view = view
        self.code = view.code
        self.options = options
        self.continued = self._continuation_flags()

    def run(self) -> StructuralSummary:
        blocks = self._blocks()
        parents: Dict[_Block, Optional[_Block]] = {}
        for block in blocks:
            enclosing = [b for b in blocks if b is not block and b.contains(block)]
            parents[block] = max(enclosing, key=lambda b: b.start) if enclosing else None

        functions = [
            self._function(block, None)
            for block in blocks
            if block.kind == "def" and parents[block] is None
        ]
        classes = []
        for block in blocks:
            if block.kind != "class":
                continue
            parent = parents[block]
            members = [b for b in blocks if b.kind == "def" and parents[b] is block]
            classes.append(self._build_class(block, parent if parent and parent.kind == "class" else None, members))

        errors, warnings = check_python_lines(self.view.code_lines)
        return StructuralSummary(
            language=LANGUAGE,
            functions=functions,
            classes=classes,
            imports=self._imports(),
            exports=self._exports(functions, classes, blocks),
            syntax_errors=errors,
            warnings=warnings,
        )

    # -- blocks ------------------------------------------------------------

    def _continuation_flags(self) -> List[bool]:
        """Per line: True when it continues an open bracket or a backslash."""
        flags: List[bool] = []
        depth = 0
        backslash = False
        for line in self.view.code_lines:
            flags.append(depth > 0 or backslash)
            for ch in line:
                if ch in "([{":
                    depth += 1
                elif ch in ")]}":
                    depth = max(0, depth - 1)
            backslash = line.rstrip().endswith("\\")
        return flags

    def _blocks(self) -> List[_Block]:
        blocks = []
        for m in _HEADER_RE.finditer(self.code):
            if self.continued[self.view.line_of(m.start("kw")) - 1]:
                continue
            block = self._block(m)
            if block is not None:
                blocks.append(block)
        return blocks

    def _block(self, m: "re.Match[str]") -> Optional[_Block]:
        position = m.end()
        type_params = _TYPE_PARAMS_RE.match(self.code, position)
        if type_params:
            position = find_matching_bracket(self.code, type_params.end() - 1) + 1

        paren = None
        opened = _OPEN_PAREN_RE.match(self.code, position)
        if opened:
            close = find_matching_bracket(self.code, opened.end() - 1)
            paren = (opened.end(), close)
            position = close + 1
        elif m.group("kw") == "def":
            return None

        returns = None
        if m.group("kw") == "def":
            tail = _DEF_TAIL_RE.match(self.code, position)
            if tail is not None and tail.group("ret") is not None:
                returns = tail.span("ret")
        else:
            tail = _CLASS_TAIL_RE.match(self.code, position)
        if tail is None:
            return None

        colon = tail.end() - 1
        indent = len(m.group("indent"))
        last = self._suite_last_line(colon, indent)
        lines = self.view.code_lines
        end = self.view.index.line_start(last + 2) if last + 1 < len(lines) else len(self.code)
        start_line = self.view.line_of(m.start("kw") if not m.group("async") else m.start("async"))

        return _Block(
            kind=m.group("kw"),
            name=m.group("name"),
            start=m.start() + indent,
            indent=indent,
            start_line=start_line,
            colon=colon,
            end_line=max(start_line, last + 1),
            end=end,
            is_async=m.group("async") is not None,
            paren=paren,
            returns=returns,
        )

    def _suite_last_line(self, colon: int, indent: int) -> int:
        """0-based index of the last non-blank line of the suite after ``colon``."""
        code_lines = self.view.code_lines
        last = self.view.line_of(colon) - 1
        if code_lines[last][colon - self.view.index.line_start(last + 1) + 1:].strip():
            # Suite on the header line
            while last + 1 < len(code_lines) and self.continued[last + 1]:
                last += 1
            return last

        for i in range(last + 1, len(code_lines)):
            line = code_lines[i]
            if line.strip() and not self.continued[i]:
                if len(line) - len(line.lstrip()) <= indent:
                    break
            if self._has_content(i):
                last = i
        return last

    def _has_content(self, i: int) -> bool:
        if self.view.code_lines[i].strip():
            return True
        original = self.view.lines[i].strip()
        return bool(original) and not original.startswith("#")

    # -- functions ---------------------------------------------------------

    def _function(self, block: _Block, owner: Optional[_Block]) -> FunctionInfo:
        open_paren, close_paren = block.paren
        parameters = parse_parameters(
            self.code[open_paren:close_paren],
            self.view.original(open_paren, close_paren),
        )
        if owner is not None and parameters and parameters[0].name in _SELF_NAMES:
            parameters = parameters[1:]

        decorators = self._decorators(block.start_line)
        short = [d.split(".")[-1] for d in decorators]
        modifiers = (("async",) if block.is_async else ()) + tuple(d for d in short if d in _MODIFIER_DECORATORS)

        is_constructor = owner is not None and block.name == "__init__"
        if is_constructor:
            return_type = None
        elif block.returns is not None:
            return_type = squash(self.view.original(*block.returns)) or "Any"
        else:
            return_type = "Any"

        body = self.code[block.colon + 1:block.end]
        metadata = {}
        if decorators:
            metadata["decorators"] = decorators
        if "classmethod" in short:
            metadata["isClassMethod"] = True
        if "property" in short:
            metadata["isProperty"] = True

        if self.options.verbose:
            owner_name = owner.name if owner else "<module>"
            logger.debug(f"Python def {owner_name}.{block.name} at lines {block.start_line}-{block.end_line}")

        return FunctionInfo(
            name=block.name,
            parameters=parameters,
            return_type=return_type,
            start_line=block.start_line,
            end_line=block.end_line,
            complexity=score_complexity(body, LANGUAGE),
            dependencies=collect_dependencies(body, LANGUAGE),
            is_exported=not block.name.startswith("_"),
            is_static="staticmethod" in short,
            docstring=self._docstring(block),
            test_candidates=generate_test_candidates(block.name, len(parameters), SNAKE),
            is_async=block.is_async,
            visibility=_visibility(block.name),
            is_constructor=is_constructor,
            has_body=True,
            modifiers=modifiers,
            parent_name=owner.name if owner else None,
            metadata=metadata,
        )

    def _decorators(self, start_line: int) -> List[str]:
        top = skip_leading_annotations(self.view.code_lines, start_line, ("@",))
        names = []
        for line in self.view.code_lines[top - 1:start_line - 1]:
            m = _DECORATOR_RE.match(line.strip())
            if m:
                names.append(m.group("name"))
        return names

    # -- classes -----------------------------------------------------------

    def _build_class(self, block: _Block, parent: Optional[_Block], members: List[_Block]) -> ClassInfo:
        extends, implements = None, []
        metadata = {}
        if block.paren is not None:
            bases = []
            for base in split_names(self.code[block.paren[0]:block.paren[1]]):
                if "=" in base:
                    key, value = (part.strip() for part in base.split("=", 1))
                    metadata[key] = value
                elif base:
                    bases.append(base)
            if bases:
                extends, implements = bases[0], bases[1:]

        decorators = self._decorators(block.start_line)
        if decorators:
            metadata["decorators"] = decorators

        methods = [self._function(member, block) for member in members]
        properties = self._class_attributes(block)
        init = next((m for m in members if m.name == "__init__"), None)
        if init is not None:
            known = {p.name for p in properties}
            for prop in self._instance_attributes(init):
                if prop.name not in known:
                    known.add(prop.name)
                    properties.append(prop)

        if self.options.verbose:
            logger.debug(f"Python class {block.name} at lines {block.start_line}-{block.end_line}")

        return ClassInfo(
            name=block.name,
            kind="class",
            methods=methods,
            properties=properties,
            extends=extends,
            implements=implements,
            start_line=block.start_line,
            end_line=block.end_line,
            is_exported=not block.name.startswith("_"),
            docstring=self._docstring(block),
            parent_name=parent.name if parent else None,
            metadata=metadata,
        )

    def _class_attributes(self, block: _Block) -> List[PropertyInfo]:
        """Assignments and annotations directly in the class body."""
        code_lines = self.view.code_lines
        first = self.view.line_of(block.colon)  # 0-based index of the line after the header
        body_indent = None
        properties: List[PropertyInfo] = []
        for i in range(first, block.end_line):
            line = code_lines[i]
            if not line.strip() or self.continued[i]:
                continue
            indent = len(line) - len(line.lstrip())
            if body_indent is None:
                body_indent = indent
            if indent != body_indent:
                continue

            m = _CLASS_ATTR_RE.match(line)
            if m is None or keyword.iskeyword(m.group("name")):
                continue
            annotation = m.group("annot")
            if not m.group("eq") and not (annotation and annotation.strip()):
                continue

            line_start = self.view.index.line_start(i + 1)
            prop_type = "Any"
            if annotation is not None and annotation.strip():
                prop_type = squash(_strip_comments(self.view.original(line_start + m.start("annot"), line_start + m.end("annot"))))
            default_value = None
            if m.group("eq"):
                last = i
                while last + 1 < len(code_lines) and self.continued[last + 1]:
                    last += 1
                value_end = self.view.index.line_start(last + 2) - 1 if last + 1 < len(code_lines) else len(self.code)
                default_value = squash(_strip_comments(self.view.original(line_start + m.end("eq"), value_end))) or None

            name = m.group("name")
            properties.append(
                PropertyInfo(
                    name=name,
                    type=prop_type or "Any",
                    visibility="private" if name.startswith("_") else "public",
                    is_static=prop_type == "Any" or "ClassVar" in prop_type,
                    default_value=default_value,
                )
            )
        return properties

    def _instance_attributes(self, init: _Block) -> List[PropertyInfo]:
        """``self.x = ...`` assignments in ``__init__``."""
        properties: List[PropertyInfo] = []
        for m in _SELF_ATTR_RE.finditer(self.code, init.colon + 1, init.end):
            annotation = m.group("annot")
            prop_type = "Any"
            if annotation is not None and annotation.strip():
                prop_type = squash(self.view.original(*m.span("annot"))) or "Any"
            name = m.group("name")
            properties.append(
                PropertyInfo(
                    name=name,
                    type=prop_type,
                    visibility="private" if name.startswith("_") else "public",
                    is_static=False,
                )
            )
        return properties

    # -- docstrings --------------------------------------------------------

    def _docstring(self, block: _Block) -> str:
        text = self.view.text
        position = _LEADING_RE.match(text, block.colon + 1).end()
        if position < block.end and self.code[position].isspace():
            m = _DOCSTRING_RE.match(text, position)
            if m is not None and m.end() <= block.end:
                return inspect.cleandoc(m.group("doc"))
        anchor = skip_leading_annotations(self.view.lines, block.start_line, ("@",))
        return associate_docstring(self.view.lines, anchor, HASH_MARKERS)

    # -- imports / exports -------------------------------------------------

    def _imports(self) -> List[ImportInfo]:
        found: List[Tuple[int, ImportInfo]] = []
        for m in _IMPORT_RE.finditer(self.code):
            line = self.view.line_of(m.start("kw"))
            for item in self._name_list(m.group("names")):
                aliased = _AS_RE.match(item)
                module, alias = (aliased.group("name"), aliased.group("alias")) if aliased else (item, None)
                found.append((
                    m.start(),
                    ImportInfo(
                        source=module,
                        imports=(ImportedName(name=module, alias=alias, is_default=True),),
                        is_external=is_external_module(module),
                        line=line,
                    ),
                ))

        for m in _FROM_IMPORT_RE.finditer(self.code):
            module = m.group("module")
            if not module:
                continue
            names = []
            for item in self._name_list(m.group("group") or m.group("names")):
                aliased = _AS_RE.match(item)
                if aliased:
                    names.append(ImportedName(name=aliased.group("name"), alias=aliased.group("alias")))
                else:
                    names.append(ImportedName(name=item))
            found.append((
                m.start(),
                ImportInfo(
                    source=module,
                    imports=names,
                    is_external=is_external_module(module),
                    line=self.view.line_of(m.start("kw")),
                ),
            ))

        found.sort(key=lambda pair: pair[0])
        return [info for _, info in found]

    @staticmethod
    def _name_list(names: str) -> List[str]:
        names = names.replace("\\\n", " ")
        return [squash(item) for item in names.split(",") if item.strip()]

    def _exports(self, functions: List[FunctionInfo], classes: List[ClassInfo], blocks: List[_Block]) -> List[ExportInfo]:
        module_level = {b.name: b for b in blocks if b.indent == 0}
        m = _ALL_RE.search(self.code)
        if m is not None:
            close = find_matching_bracket(self.code, m.start("open"))
            kinds = {b.name: ("function" if b.kind == "def" else "class") for b in module_level.values()}
            return [
                ExportInfo(name=item.group(2), type=kinds.get(item.group(2), "variable"))
                for item in _STRING_ITEM_RE.finditer(self.view.original(m.end(), close))
            ]

        exports = [
            ExportInfo(name=f.name, type="function")
            for f in functions
            if f.is_exported and f.name in module_level
        ]
        exports.extend(
            ExportInfo(name=c.name, type="class")
            for c in classes
            if c.is_exported and c.parent_name is None and c.name in module_level
        )
        return exports


class PythonExtractor:
    """Heuristic structure extractor for Python sources."""

    language = LANGUAGE
    extensions = (".py", ".pyw")
    naming_convention = SNAKE

    def parse(self, source_text: SourceInput, options: Optional[ExtractionOptions] = None) -> StructuralSummary:
        return run_extraction(self.language, source_text, options, self._extract)

    def _extract(self, text: str, options: ExtractionOptions) -> StructuralSummary:
        return _PythonScan(build_view(text, LANGUAGE), options).run()
