"""Extractor contract and the shared ``parse`` boundary.

Every language extractor satisfies ``LanguageExtractor``. Extractors do not
inherit shared behavior; they compose the primitives in this package and
route their ``parse`` through ``run_extraction``, which normalizes the
input and turns any internal failure into a ``PARSE_ERROR`` summary.
"""

import logging
from typing import Callable, Optional, Protocol, Tuple, Union, runtime_checkable

from .models import ExtractionOptions, StructuralSummary

logger = logging.getLogger(__name__)

SourceInput = Union[str, bytes, None]


@runtime_checkable
class LanguageExtractor(Protocol):
    """Capability contract implemented once per language."""

    language: str
    extensions: Tuple[str, ...]
    naming_convention: str

    def parse(
        self, source_text: SourceInput, options: Optional[ExtractionOptions] = None
    ) -> StructuralSummary:
        """Extract a structural summary. Never raises."""
        ...


def normalize_source(source_text: SourceInput) -> str:
    """Coerce caller input to text (``None`` → ``""``, bytes decoded leniently)."""
    if source_text is None:
        return ""
    if isinstance(source_text, (bytes, bytearray)):
        return bytes(source_text).decode("utf-8", errors="replace")
    if not isinstance(source_text, str):
        return str(source_text)
    return source_text


def run_extraction(
    language: str,
    source_text: SourceInput,
    options: Optional[ExtractionOptions],
    extract: Callable[[str, ExtractionOptions], StructuralSummary],
) -> StructuralSummary:
    """Run ``extract`` behind the never-raises boundary.

    Args:
        language: Language identifier reported in the summary
        source_text: Raw caller input
        options: Extraction options (``None`` means defaults)
        extract: Language-specific extraction over normalized text

    Returns:
        The extracted summary, or a failed summary carrying exactly one
        ``PARSE_ERROR`` diagnostic when extraction broke down.
    """
    if options is None:
        options = ExtractionOptions()
    try:
        text = normalize_source(source_text)
        if not text.strip():
            return StructuralSummary(language=language)
        return extract(text, options)
    except Exception as e:
        logger.error(f"{language} extraction failed: {e}", exc_info=options.verbose)
        return StructuralSummary.failed(language, f"Failed to parse {language} code: {e}")
