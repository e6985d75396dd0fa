"""Per-line syntax hints.

Best-effort checks run over masked lines (comments and literals already
blank): a line whose parenthesis counts differ is reported as an error, a
statement line without a terminator as a warning. Neither check aborts
extraction.
"""

import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence, Tuple

from .models import SEVERITY_ERROR, SEVERITY_WARNING, Diagnostic

MISMATCHED_PARENS = "MISMATCHED_PARENS"
MISSING_SEMICOLON = "MISSING_SEMICOLON"
INVALID_COLON = "INVALID_COLON"


@dataclass(frozen=True)
class TerminatorPolicy:
    """Which lines are exempt from the missing-terminator check."""

    skip_prefixes: Tuple[str, ...]
    skip_keywords: Pattern[str]


JAVA_POLICY = TerminatorPolicy(
    skip_prefixes=("//", "/*", "*", "@"),
    skip_keywords=re.compile(
        r"^(?:(?:if|else|for|while|do|try|catch|finally|switch)"
        r"|(?:public|private|protected|static|final|abstract|class|interface|enum))\b"
    ),
)

CPP_POLICY = TerminatorPolicy(
    skip_prefixes=("//", "/*", "*", "#"),
    skip_keywords=re.compile(
        r"^(?:if|else|for|while|do|try|catch|finally|switch|namespace|class|struct|enum)\b"
    ),
)

CSHARP_POLICY = TerminatorPolicy(
    skip_prefixes=("//", "/*", "*", "///", "using", "namespace"),
    skip_keywords=re.compile(
        r"^(?:if|else|for|while|do|try|catch|finally|switch|class|interface|enum|struct)\b"
    ),
)

_VALID_COLON_RES = (
    re.compile(r"^\s*(?:async|def|class|if|elif|else|for|while|try|except|finally|with)\b"),
    re.compile(r"^\s*\w+\s*:\s*\w+"),  # annotation
    re.compile(r"^\s*\w+\s*:\s*$"),  # dict key
)


def _paren_error(number: int) -> Diagnostic:
    return Diagnostic(
        message="Mismatched parentheses",
        line=number,
        column=1,
        severity=SEVERITY_ERROR,
        code=MISMATCHED_PARENS,
    )


def check_lines(
    code_lines: Sequence[str],
    policy: TerminatorPolicy,
) -> Tuple[List[Diagnostic], List[Diagnostic]]:
    """Check brace-language lines.

    Returns:
        (errors, warnings)
    """
    errors: List[Diagnostic] = []
    warnings: List[Diagnostic] = []
    for number, line in enumerate(code_lines, start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if line.count("(") != line.count(")"):
            errors.append(_paren_error(number))

        if (
            not trimmed.endswith((";", "{", "}"))
            and not trimmed.startswith(policy.skip_prefixes)
            and not policy.skip_keywords.match(trimmed)
        ):
            warnings.append(
                Diagnostic(
                    message="Missing semicolon",
                    line=number,
                    column=len(line),
                    severity=SEVERITY_WARNING,
                    code=MISSING_SEMICOLON,
                )
            )
    return errors, warnings


def check_paren_lines(code_lines: Sequence[str]) -> Tuple[List[Diagnostic], List[Diagnostic]]:
    """Check parenthesis balance only, for languages with optional terminators.

    Returns:
        (errors, warnings); warnings is always empty
    """
    errors = [
        _paren_error(number)
        for number, line in enumerate(code_lines, start=1)
        if line.count("(") != line.count(")")
    ]
    return errors, []


def check_python_lines(code_lines: Sequence[str]) -> Tuple[List[Diagnostic], List[Diagnostic]]:
    """Check Python lines: colon usage and parenthesis balance.

    Returns:
        (errors, warnings)
    """
    errors: List[Diagnostic] = []
    warnings: List[Diagnostic] = []
    for number, line in enumerate(code_lines, start=1):
        trimmed = line.strip()
        if not trimmed:
            continue

        if trimmed.endswith(":") and not any(p.match(trimmed) for p in _VALID_COLON_RES):
            warnings.append(
                Diagnostic(
                    message="Invalid colon usage",
                    line=number,
                    column=line.index(":") + 1,
                    severity=SEVERITY_WARNING,
                    code=INVALID_COLON,
                )
            )

        if line.count("(") != line.count(")"):
            errors.append(_paren_error(number))
    return errors, warnings
