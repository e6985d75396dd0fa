"""Exceptions raised by the dispatcher, service and configuration layers.

Extractors never raise these: ``parse`` converts its own failures into a
``StructuralSummary`` carrying a ``PARSE_ERROR`` diagnostic.
"""


class CodeProbeError(Exception):
    """Base class for caller-facing errors."""


class UnsupportedLanguageError(CodeProbeError):
    """No extractor is registered for the requested language or file."""

    def __init__(self, language: str, supported=()):
        self.language = language
        self.supported = tuple(supported)
        message = f"Unsupported language: {language}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class InputValidationError(CodeProbeError):
    """Caller input rejected before extraction (empty, oversize, not text)."""


class ConfigError(CodeProbeError):
    """Configuration file could not be read or parsed."""
