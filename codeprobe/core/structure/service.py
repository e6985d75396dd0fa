"""Analysis service.

Validates caller input, dispatches to the registry and wraps the summary
with file metrics and a dependency overview.
"""

import hashlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..config.config_loader import AnalysisConfig
from .errors import InputValidationError, UnsupportedLanguageError
from .metrics import FileMetrics, compute_metrics
from .models import ExtractionOptions, StructuralSummary
from .registry import ExtractorRegistry, build_registry

logger = logging.getLogger(__name__)

EXTRACTOR_VERSION = "1.0.0"


def code_hash(code: str, language: str) -> str:
    """SHA-256 of the code followed by the language identifier."""
    return hashlib.sha256((code + language).encode("utf-8", errors="surrogatepass")).hexdigest()


@dataclass(frozen=True)
class AnalysisReport:
    """Result of analyzing one source text."""

    summary: StructuralSummary
    metrics: Optional[FileMetrics]
    code_hash: str
    file_name: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def language(self) -> str:
        return self.summary.language

    @property
    def failed(self) -> bool:
        """True when extraction itself broke down (``PARSE_ERROR``)."""
        return any(d.code == "PARSE_ERROR" for d in self.summary.syntax_errors)

    def dependencies(self) -> Dict[str, Any]:
        return {
            "imports": [i.to_dict() for i in self.summary.imports],
            "exports": [e.to_dict() for e in self.summary.exports],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "summary": self.summary.to_dict(),
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "dependencies": self.dependencies(),
            "codeHash": self.code_hash,
            "metadata": dict(self.metadata),
        }


class AnalysisService:
    """Analyze source text held in memory.

    The service holds no per-call state; one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        registry: Optional[ExtractorRegistry] = None,
        config: Optional[AnalysisConfig] = None,
        options: Optional[ExtractionOptions] = None,
    ):
        self._registry = registry or build_registry()
        self._config = config or AnalysisConfig()
        self._options = options or ExtractionOptions()

    @property
    def registry(self) -> ExtractorRegistry:
        return self._registry

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def validate_input(self, code: Any, language: str) -> str:
        """Check caller input and return the canonical language identifier.

        Raises:
            InputValidationError: Empty, non-text, oversize or
                unsupported-language input
        """
        if not isinstance(code, str):
            raise InputValidationError("Code is required and must be a string")
        if not code.strip():
            raise InputValidationError("Code is required and must not be empty")
        if len(code) > self._config.max_source_chars:
            raise InputValidationError(
                f"Code size exceeds maximum limit of {self._config.max_source_chars} characters"
            )
        try:
            return self._registry.get(language).language
        except UnsupportedLanguageError as e:
            raise InputValidationError(str(e)) from e

    def analyze(
        self,
        code: Any,
        language: str,
        file_name: Optional[str] = None,
        include_metrics: Optional[bool] = None,
    ) -> AnalysisReport:
        """Analyze one source text.

        Args:
            code: Source text
            language: Language identifier (aliases such as ``c#`` accepted)
            file_name: Name reported in the report, if any
            include_metrics: Overrides the configured ``include_metrics``

        Returns:
            AnalysisReport

        Raises:
            InputValidationError: If the input is rejected
        """
        language = self.validate_input(code, language)
        if include_metrics is None:
            include_metrics = self._config.include_metrics

        start_time = time.perf_counter()
        summary = self._registry.parse(code, language, self._options)
        metrics = None
        if include_metrics:
            metrics = compute_metrics(code, language, summary, self._config.complexity_threshold)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        name = file_name or "<input>"
        logger.info(
            f"Analyzed {name} ({language}): {len(summary.functions)} functions, "
            f"{len(summary.classes)} classes in {elapsed_ms:.1f}ms"
        )
        if summary.syntax_errors:
            logger.debug(f"{name}: {len(summary.syntax_errors)} syntax errors")

        return AnalysisReport(
            summary=summary,
            metrics=metrics,
            code_hash=code_hash(code, language),
            file_name=file_name,
            metadata={
                "extractorVersion": EXTRACTOR_VERSION,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "processingTimeMs": round(elapsed_ms, 3),
                "options": {
                    "verbose": self._options.verbose,
                    "includeMetrics": include_metrics,
                    "complexityThreshold": self._config.complexity_threshold,
                },
            },
        )
