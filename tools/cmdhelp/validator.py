# SPDX-License-Identifier: MIT
"""
Command Descriptor Validator

Scores a finished CommandDescriptor on three independent 0-100 metrics
(quality, completeness, reliability) and collects advisory issues and
suggestions. Validation never blocks or modifies the descriptor.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .parser import CommandDescriptor


class QualityLevel(Enum):
    """
    Quality level taxonomy.

    Levels are ordered from best to worst.
    """

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationReport:
    """Result of scoring a descriptor."""

    quality_score: int
    completeness_score: int
    reliability_score: int
    level: QualityLevel
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def add_issue(self, issue: str, suggestion: Optional[str] = None) -> None:
        """Record an issue and, optionally, how to address it."""
        self.issues.append(issue)
        if suggestion and suggestion not in self.suggestions:
            self.suggestions.append(suggestion)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for JSON serialization."""
        return {
            "quality_score": self.quality_score,
            "completeness_score": self.completeness_score,
            "reliability_score": self.reliability_score,
            "level": str(self.level),
            "issues": list(self.issues),
            "suggestions": list(self.suggestions),
        }

    def to_json(self) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


# =============================================================================
# Scoring Weights
# =============================================================================

QUALITY_DEDUCTIONS = {
    "missing_description": 20,
    "missing_synopsis": 15,
    "no_parameters": 10,
    "parameter_without_description": 5,
    "fallback_parsing": 30,
}

COMPLETENESS_WEIGHTS = {
    "description": 25,
    "parameters": 30,
    "synopsis": 20,
    "examples": 15,
    "output_schema": 10,
}

# Parsing methods that indicate a recovery path
FALLBACK_MARKERS: Tuple[str, ...] = (
    "fallback",
    "minimal",
    "line_by_line",
    "sectional",
    "cleaned",
    "recovery",
)

# Substring of parsing_method -> reliability, first match wins
RELIABILITY_TABLE: Tuple[Tuple[str, int], ...] = (
    ("fallback", 30),
    ("advanced", 95),
    ("standard", 95),
    ("legacy", 85),
    ("cleaned", 80),
    ("sectional", 70),
    ("line_by_line", 55),
    ("minimal", 40),
)
RELIABILITY_ABSENT = 50
RELIABILITY_UNRECOGNIZED = 60

# Score ranges for quality levels
SCORE_RANGES = {
    QualityLevel.EXCELLENT: (90, 100),
    QualityLevel.GOOD: (70, 89),
    QualityLevel.FAIR: (50, 69),
    QualityLevel.POOR: (0, 49),
}


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def _parsing_method(descriptor: CommandDescriptor) -> Optional[str]:
    method = descriptor.metadata.get("parsing_method") if descriptor.metadata else None
    return str(method) if method else None


def is_fallback_method(method: Optional[str]) -> bool:
    return bool(method) and any(marker in method for marker in FALLBACK_MARKERS)


# =============================================================================
# Metrics
# =============================================================================


def score_quality(descriptor: CommandDescriptor) -> int:
    """
    Deduction-based quality score.

    Deductions are summed in full and the total clamped once at the end.

    Args:
        descriptor: The descriptor to score

    Returns:
        Score in [0, 100]
    """
    score = 100
    if not descriptor.description:
        score -= QUALITY_DEDUCTIONS["missing_description"]
    if not descriptor.synopsis:
        score -= QUALITY_DEDUCTIONS["missing_synopsis"]
    if not descriptor.parameters:
        score -= QUALITY_DEDUCTIONS["no_parameters"]
    for param in descriptor.parameters:
        if not param.description:
            score -= QUALITY_DEDUCTIONS["parameter_without_description"]
    if is_fallback_method(_parsing_method(descriptor)):
        score -= QUALITY_DEDUCTIONS["fallback_parsing"]
    return _clamp(score)


def score_completeness(descriptor: CommandDescriptor) -> int:
    """Additive completeness score over the 100-point budget."""
    present = {
        "description": bool(descriptor.description),
        "parameters": bool(descriptor.parameters),
        "synopsis": bool(descriptor.synopsis),
        "examples": bool(descriptor.examples),
        "output_schema": bool(descriptor.output_schema),
    }
    return _clamp(sum(COMPLETENESS_WEIGHTS[key] for key, ok in present.items() if ok))


def score_reliability(descriptor: CommandDescriptor) -> int:
    """Reliability keyed off the parsing method that produced the result."""
    method = _parsing_method(descriptor)
    if method is None:
        return RELIABILITY_ABSENT
    for marker, score in RELIABILITY_TABLE:
        if marker in method:
            return score
    return RELIABILITY_UNRECOGNIZED


def determine_level(score: int) -> QualityLevel:
    """
    Determine quality level from score.

    Args:
        score: Quality score

    Returns:
        QualityLevel enum value
    """
    for level, (min_score, max_score) in SCORE_RANGES.items():
        if min_score <= score <= max_score:
            return level
    return QualityLevel.POOR


# =============================================================================
# Validation
# =============================================================================


def validate_result(descriptor: CommandDescriptor) -> ValidationReport:
    """
    Score a descriptor and collect advisory issues.

    Args:
        descriptor: A finished CommandDescriptor

    Returns:
        ValidationReport with scores, level, issues and suggestions
    """
    quality = score_quality(descriptor)
    report = ValidationReport(
        quality_score=quality,
        completeness_score=score_completeness(descriptor),
        reliability_score=score_reliability(descriptor),
        level=determine_level(quality),
    )

    if not descriptor.description:
        report.add_issue(
            "Missing description",
            "Check that the DESCRIPTION section header is present and uppercase",
        )
    if not descriptor.synopsis:
        report.add_issue(
            "Missing synopsis",
            "Check that the SYNOPSIS section header is present",
        )
    if not descriptor.parameters:
        report.add_issue(
            "No parameters found",
            "Check that options are listed under an OPTIONS header with leading dashes",
        )
    for param in descriptor.parameters:
        if not param.description:
            report.add_issue(
                f"Parameter '{param.name}' has no description",
                "Indent option descriptions below the option line",
            )
    if not descriptor.examples:
        report.add_issue("No examples found")

    method = _parsing_method(descriptor)
    if method is None:
        report.add_issue("Parsing method not recorded")
    elif is_fallback_method(method):
        report.add_issue(
            f"Parsed via recovery strategy '{method}'",
            "Normalize the help text or fix its section layout for a standard parse",
        )

    return report


def apply_report(descriptor: CommandDescriptor, report: ValidationReport) -> None:
    """Record a report's scores and findings in the descriptor metadata."""
    descriptor.metadata.update(
        {
            "quality_score": report.quality_score,
            "completeness_score": report.completeness_score,
            "reliability_score": report.reliability_score,
            "quality_level": str(report.level),
            "issues": list(report.issues),
            "suggestions": list(report.suggestions),
        }
    )
