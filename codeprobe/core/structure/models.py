"""Structure extractor data models.

Defines the value objects returned by every language extractor.
These are pure data containers with no parsing logic. All of them are frozen;
collection fields are tuples (dependencies are a frozenset) so a summary
cannot change after ``parse`` returns it.

``to_dict()`` renders the camelCase shape consumed by the downstream
test-generation and coverage-gap components.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

PARSE_ERROR_CODE = "PARSE_ERROR"


def _freeze(obj: Any, **coerce: Any) -> None:
    """Coerce collection fields of a frozen dataclass after construction."""
    for name, factory in coerce.items():
        object.__setattr__(obj, name, factory(getattr(obj, name)))


def _readonly(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Diagnostic:
    """A heuristic syntax hint or an extraction failure."""

    message: str
    line: int
    column: int
    severity: str = SEVERITY_WARNING  # "error" | "warning"
    code: Optional[str] = None  # "PARSE_ERROR" | "MISMATCHED_PARENS" | ...

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
        }
        if self.code:
            data["code"] = self.code
        return data


@dataclass(frozen=True)
class ParameterInfo:
    """One declared parameter of a function or method."""

    name: str
    type: str
    optional: bool = False
    default_value: Optional[str] = None
    modifier: Optional[str] = None  # "final", "ref", "out", "params", "*", "**"
    is_variadic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "optional": self.optional,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        if self.modifier:
            data["modifier"] = self.modifier
        if self.is_variadic:
            data["isVariadic"] = True
        return data


@dataclass(frozen=True)
class PropertyInfo:
    """A field or property declared directly in a class body."""

    name: str
    type: str
    visibility: str = "public"
    is_static: bool = False
    modifiers: Tuple[str, ...] = ()
    default_value: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, modifiers=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "visibility": self.visibility,
            "isStatic": self.is_static,
            "modifiers": list(self.modifiers),
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        return data


@dataclass(frozen=True)
class FunctionInfo:
    """A function, method or constructor declaration."""

    name: str
    parameters: Tuple[ParameterInfo, ...]
    return_type: Optional[str]
    start_line: int
    end_line: int
    complexity: int = 1
    dependencies: FrozenSet[str] = frozenset()
    is_exported: bool = False
    is_static: bool = False
    docstring: str = ""
    test_candidates: Tuple[str, ...] = ()
    is_async: bool = False
    visibility: Optional[str] = None
    is_constructor: bool = False
    has_body: bool = True
    modifiers: Tuple[str, ...] = ()
    parent_name: Optional[str] = None  # Owning class, or C++ qualifier of an out-of-line definition
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(
            self,
            parameters=tuple,
            dependencies=frozenset,
            test_candidates=tuple,
            modifiers=tuple,
            metadata=_readonly,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "parameters": [p.to_dict() for p in self.parameters],
            "returnType": self.return_type,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "complexity": self.complexity,
            "dependencies": sorted(self.dependencies),
            "isExported": self.is_exported,
            "isStatic": self.is_static,
            "isAsync": self.is_async,
            "docstring": self.docstring,
            "testCandidates": list(self.test_candidates),
            "visibility": self.visibility,
            "isConstructor": self.is_constructor,
            "hasBody": self.has_body,
            "modifiers": list(self.modifiers),
            "parentName": self.parent_name,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ClassInfo:
    """A class-like declaration (class, struct, interface, enum)."""

    name: str
    kind: str  # "class" | "struct" | "interface" | "enum"
    methods: Tuple[FunctionInfo, ...]
    properties: Tuple[PropertyInfo, ...]
    extends: Optional[str]
    implements: Tuple[str, ...]
    start_line: int
    end_line: int
    is_exported: bool = False
    docstring: str = ""
    modifiers: Tuple[str, ...] = ()
    parent_name: Optional[str] = None  # Enclosing class for nested types
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze(
            self,
            methods=tuple,
            properties=tuple,
            implements=tuple,
            modifiers=tuple,
            metadata=_readonly,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "methods": [m.to_dict() for m in self.methods],
            "properties": [p.to_dict() for p in self.properties],
            "extends": self.extends,
            "implements": list(self.implements),
            "startLine": self.start_line,
            "endLine": self.end_line,
            "isExported": self.is_exported,
            "docstring": self.docstring,
            "modifiers": list(self.modifiers),
            "parentName": self.parent_name,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ImportedName:
    """A single name brought in by an import/using/include directive."""

    name: str
    alias: Optional[str] = None
    is_default: bool = False
    is_static: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "alias": self.alias,
            "isDefault": self.is_default,
        }
        if self.is_static:
            data["isStatic"] = True
        return data


@dataclass(frozen=True)
class ImportInfo:
    """An import/using/include directive."""

    source: str
    imports: Tuple[ImportedName, ...]
    is_external: bool
    line: int = 0

    def __post_init__(self) -> None:
        _freeze(self, imports=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "imports": [i.to_dict() for i in self.imports],
            "isExternal": self.is_external,
            "line": self.line,
        }


@dataclass(frozen=True)
class ExportInfo:
    """A publicly visible top-level name."""

    name: str
    type: str  # "function" | "class" | "interface" | "enum" | "struct" | "variable"
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "isDefault": self.is_default}


@dataclass(frozen=True)
class StructuralSummary:
    """Complete extraction output for one source text."""

    language: str
    functions: Tuple[FunctionInfo, ...] = ()
    classes: Tuple[ClassInfo, ...] = ()
    imports: Tuple[ImportInfo, ...] = ()
    exports: Tuple[ExportInfo, ...] = ()
    syntax_errors: Tuple[Diagnostic, ...] = ()
    warnings: Tuple[Diagnostic, ...] = ()

    def __post_init__(self) -> None:
        _freeze(
            self,
            functions=tuple,
            classes=tuple,
            imports=tuple,
            exports=tuple,
            syntax_errors=tuple,
            warnings=tuple,
        )

    @classmethod
    def failed(cls, language: str, message: str) -> "StructuralSummary":
        """Summary returned when extraction itself broke down."""
        return cls(
            language=language,
            syntax_errors=(
                Diagnostic(
                    message=message,
                    line=1,
                    column=1,
                    severity=SEVERITY_ERROR,
                    code=PARSE_ERROR_CODE,
                ),
            ),
        )

    def iter_callables(self) -> Iterator[FunctionInfo]:
        """Yield top-level functions followed by every class method."""
        yield from self.functions
        for cls_info in self.classes:
            yield from cls_info.methods

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "functions": [f.to_dict() for f in self.functions],
            "classes": [c.to_dict() for c in self.classes],
            "imports": [i.to_dict() for i in self.imports],
            "exports": [e.to_dict() for e in self.exports],
            "syntaxErrors": [d.to_dict() for d in self.syntax_errors],
            "warnings": [d.to_dict() for d in self.warnings],
        }


@dataclass(frozen=True)
class ExtractionOptions:
    """Caller options for ``parse``. ``None`` behaves like ``ExtractionOptions()``."""

    verbose: bool = False  # Debug-log each recognized declaration; output unchanged
