"""Heuristic structure extraction for Java, C++, C#, Python, JavaScript and
TypeScript.

Public API:
    parse_source(source_text, language) → StructuralSummary
    parse_file(path) → StructuralSummary
    detect_language(file_path) → str | None
    build_registry() → ExtractorRegistry

The analysis service lives in ``codeprobe.core.structure.service``.
"""

from pathlib import Path
from typing import Optional, Union

from .base import LanguageExtractor, SourceInput
from .cpp_extractor import CppExtractor
from .csharp_extractor import CSharpExtractor
from .errors import CodeProbeError, ConfigError, InputValidationError, UnsupportedLanguageError
from .java_extractor import JavaExtractor
from .javascript_extractor import JavaScriptExtractor
from .models import (
    ClassInfo,
    Diagnostic,
    ExportInfo,
    ExtractionOptions,
    FunctionInfo,
    ImportedName,
    ImportInfo,
    ParameterInfo,
    PropertyInfo,
    StructuralSummary,
)
from .python_extractor import PythonExtractor
from .registry import ExtractorRegistry, build_registry, detect_language
from .typescript_extractor import TypeScriptExtractor

__all__ = [
    "parse_source",
    "parse_file",
    "detect_language",
    "build_registry",
    "ExtractorRegistry",
    "LanguageExtractor",
    "JavaExtractor",
    "CppExtractor",
    "CSharpExtractor",
    "PythonExtractor",
    "JavaScriptExtractor",
    "TypeScriptExtractor",
    "ExtractionOptions",
    "StructuralSummary",
    "FunctionInfo",
    "ClassInfo",
    "ParameterInfo",
    "PropertyInfo",
    "ImportInfo",
    "ImportedName",
    "ExportInfo",
    "Diagnostic",
    "CodeProbeError",
    "ConfigError",
    "InputValidationError",
    "UnsupportedLanguageError",
]


def parse_source(
    source_text: SourceInput,
    language: str,
    options: Optional[ExtractionOptions] = None,
    registry: Optional[ExtractorRegistry] = None,
) -> StructuralSummary:
    """Extract the structure of source text.

    Args:
        source_text: Source code (str or bytes)
        language: Language identifier, e.g. "java"
        options: Extraction options
        registry: Registry to dispatch through; a default one is built if omitted

    Returns:
        StructuralSummary

    Raises:
        UnsupportedLanguageError: If no extractor handles ``language``
    """
    registry = registry or build_registry()
    return registry.parse(source_text, language, options)


def parse_file(
    file_path: Union[str, Path],
    options: Optional[ExtractionOptions] = None,
    registry: Optional[ExtractorRegistry] = None,
) -> StructuralSummary:
    """Extract the structure of a source file, detecting its language.

    Raises:
        UnsupportedLanguageError: If the extension is not recognized
        OSError: If the file cannot be read
    """
    registry = registry or build_registry()
    extractor = registry.for_file(str(file_path))
    with open(file_path, "r", encoding="utf-8", errors="replace") as f:
        source_text = f.read()
    return extractor.parse(source_text, options)
