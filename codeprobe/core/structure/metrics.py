"""File-level metrics computed alongside a structural summary."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .complexity import score_complexity
from .lexer import mask_source
from .models import StructuralSummary

logger = logging.getLogger(__name__)

DEFAULT_COMPLEXITY_THRESHOLD = 10

# (upper bound of the maintainability index, rating, hours per complexity point)
_DEBT_BANDS = (
    (10, "E", 2.0),
    (20, "D", 1.5),
    (50, "C", 1.0),
    (85, "B", 0.5),
)


@dataclass(frozen=True)
class TechnicalDebt:
    hours: int
    rating: str  # "A" (best) .. "E"

    def to_dict(self) -> Dict[str, Any]:
        return {"hours": self.hours, "rating": self.rating}


@dataclass(frozen=True)
class FileMetrics:
    """Size and complexity figures for one source text."""

    lines_of_code: int
    logical_lines: int
    comment_lines: int
    blank_lines: int
    cyclomatic_complexity: int
    cognitive_complexity: int
    maintainability_index: int
    technical_debt: TechnicalDebt
    complex_functions: Tuple[str, ...] = ()  # Callables above the complexity threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linesOfCode": self.lines_of_code,
            "logicalLines": self.logical_lines,
            "commentLines": self.comment_lines,
            "blankLines": self.blank_lines,
            "cyclomaticComplexity": self.cyclomatic_complexity,
            "cognitiveComplexity": self.cognitive_complexity,
            "maintainabilityIndex": self.maintainability_index,
            "technicalDebt": self.technical_debt.to_dict(),
            "complexFunctions": list(self.complex_functions),
        }


def maintainability_index(lines_of_code: int, complexity: int, volume: int) -> int:
    """Simplified maintainability index, clamped at 0.

    ``171 - 5.2 * ln(volume + 1) - 0.23 * complexity - 16.2 * ln(loc + 1)``,
    with the character count standing in for Halstead volume.
    """
    value = 171 - 5.2 * math.log(volume + 1) - 0.23 * complexity - 16.2 * math.log(lines_of_code + 1)
    return round(max(0.0, value))


def technical_debt(maintainability: int, complexity: int) -> TechnicalDebt:
    for bound, rating, factor in _DEBT_BANDS:
        if maintainability < bound:
            return TechnicalDebt(hours=round(complexity * factor), rating=rating)
    return TechnicalDebt(hours=0, rating="A")


def compute_metrics(
    text: str,
    language: str,
    summary: StructuralSummary,
    complexity_threshold: int = DEFAULT_COMPLEXITY_THRESHOLD,
) -> FileMetrics:
    """Compute file metrics.

    Comment lines are lines that hold only comment or literal text: they are
    non-blank in the original and blank once comments and literals are
    masked out.

    Args:
        text: Original source text
        language: Language identifier (selects the masking grammar and the
            complexity pattern set)
        summary: Summary previously extracted from ``text``
        complexity_threshold: Callables scoring above this are listed in
            ``complex_functions``

    Returns:
        FileMetrics for the text
    """
    code = mask_source(text, language)
    lines = text.split("\n")
    code_lines = code.split("\n")

    blank = comment = logical = 0
    for line, code_line in zip(lines, code_lines):
        if not line.strip():
            blank += 1
        elif not code_line.strip():
            comment += 1
        else:
            logical += 1

    cyclomatic = score_complexity(code, language)
    callables = list(summary.iter_callables())
    cognitive = max(1, sum(f.complexity for f in callables))
    maintainability = maintainability_index(len(lines), cyclomatic, len(text))

    complex_functions = tuple(
        f"{f.parent_name}.{f.name}" if f.parent_name else f.name
        for f in callables
        if f.complexity > complexity_threshold
    )
    if complex_functions:
        logger.debug(f"{len(complex_functions)} callables above complexity {complexity_threshold}")

    return FileMetrics(
        lines_of_code=len(lines),
        logical_lines=logical,
        comment_lines=comment,
        blank_lines=blank,
        cyclomatic_complexity=cyclomatic,
        cognitive_complexity=cognitive,
        maintainability_index=maintainability,
        technical_debt=technical_debt(maintainability, cyclomatic),
        complex_functions=complex_functions,
    )
