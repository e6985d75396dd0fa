"""Extractor registry.

Language detection and dispatch. The registry is a plain value built by
``build_registry()`` and passed to whoever needs it.
"""

import logging
import os
from typing import Dict, Iterable, List, Optional

from .base import LanguageExtractor, SourceInput
from .cpp_extractor import CppExtractor
from .csharp_extractor import CSharpExtractor
from .errors import UnsupportedLanguageError
from .java_extractor import JavaExtractor
from .javascript_extractor import JavaScriptExtractor
from .models import ExtractionOptions, StructuralSummary
from .python_extractor import PythonExtractor
from .typescript_extractor import TypeScriptExtractor

logger = logging.getLogger(__name__)

# Language aliases accepted by ``get``
LANGUAGE_ALIASES: Dict[str, str] = {
    "c++": "cpp",
    "c": "cpp",
    "cs": "csharp",
    "c#": "csharp",
    "py": "python",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
}


class ExtractorRegistry:
    """Maps language identifiers and file extensions to extractors."""

    def __init__(self, extractors: Iterable[LanguageExtractor] = ()):
        self._by_language: Dict[str, LanguageExtractor] = {}
        self._by_extension: Dict[str, str] = {}
        for extractor in extractors:
            self.register(extractor)

    def register(self, extractor: LanguageExtractor) -> None:
        """Add an extractor; a later registration for a language replaces the earlier one."""
        self._by_language[extractor.language] = extractor
        for ext in extractor.extensions:
            self._by_extension[ext.lower()] = extractor.language
        logger.debug(f"Registered {extractor.language} extractor for {', '.join(extractor.extensions)}")

    def languages(self) -> List[str]:
        return sorted(self._by_language)

    def extensions(self) -> List[str]:
        return sorted(self._by_extension)

    def get(self, language: str) -> LanguageExtractor:
        """Get the extractor for a language identifier.

        Raises:
            UnsupportedLanguageError: If no extractor handles the language
        """
        key = (language or "").strip().lower()
        key = LANGUAGE_ALIASES.get(key, key)
        extractor = self._by_language.get(key)
        if extractor is None:
            raise UnsupportedLanguageError(language, self.languages())
        return extractor

    def detect_language(self, file_path: str) -> Optional[str]:
        """Detect a language from the file extension (case-insensitive)."""
        _, ext = os.path.splitext(file_path)
        return self._by_extension.get(ext.lower())

    def for_file(self, file_path: str) -> LanguageExtractor:
        """Get the extractor for a file path.

        Raises:
            UnsupportedLanguageError: If the extension is not recognized
        """
        language = self.detect_language(file_path)
        if language is None:
            _, ext = os.path.splitext(file_path)
            raise UnsupportedLanguageError(ext or file_path, self.languages())
        return self._by_language[language]

    def parse(
        self,
        source_text: SourceInput,
        language: str,
        options: Optional[ExtractionOptions] = None,
    ) -> StructuralSummary:
        """Dispatch to the language's extractor.

        Raises:
            UnsupportedLanguageError: If no extractor handles the language
        """
        return self.get(language).parse(source_text, options)


def build_registry() -> ExtractorRegistry:
    """Build the registry of every bundled extractor."""
    return ExtractorRegistry([
        JavaExtractor(),
        CppExtractor(),
        CSharpExtractor(),
        PythonExtractor(),
        JavaScriptExtractor(),
        TypeScriptExtractor(),
    ])


def detect_language(file_path: str) -> Optional[str]:
    """Detect the language of a file from its extension.

    Args:
        file_path: Path to the source file

    Returns:
        Language identifier or None if unsupported
    """
    return build_registry().detect_language(file_path)
