# SPDX-License-Identifier: MIT
"""
Help Text Format Detection and Normalization

Classifies raw help text (tool version, output shape, encoding and
structural problems) and recommends a parsing strategy. Also provides the
normalization pipeline used by the "cleaned" strategy.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from . import patterns as p

logger = logging.getLogger(__name__)


# =============================================================================
# Format Analysis
# =============================================================================

VERSION_UNKNOWN = "unknown"

# Output shapes in priority order
OUTPUT_JSON = "json"
OUTPUT_XML = "xml"
OUTPUT_TABLE = "table"
OUTPUT_TEXT = "text"

# Strategy recommendations
RECOMMEND_STANDARD = "standard"
RECOMMEND_LEGACY = "legacy"
RECOMMEND_ROBUST = "robust"
RECOMMEND_MINIMAL = "minimal"

# Complexity weights; encoding issues weigh the most
COMPLEXITY_WEIGHTS = {
    "lines": 1 / 100,
    "chars": 1 / 5000,
    "available_headers": 0.5,
    "structure_issues": 1.0,
    "encoding_issues": 1.5,
}
MAX_COMPLEXITY = 10.0


@dataclass
class FormatAnalysis:
    """Classification of a whole help text."""

    version: str = VERSION_UNKNOWN
    tool: Optional[str] = None
    major_version: Optional[int] = None
    output_format: str = OUTPUT_TEXT
    encoding_issues: Set[str] = field(default_factory=set)
    structure_issues: Set[str] = field(default_factory=set)
    complexity_score: float = 0.0
    recommended_strategy: str = RECOMMEND_STANDARD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "tool": self.tool,
            "major_version": self.major_version,
            "output_format": self.output_format,
            "encoding_issues": sorted(self.encoding_issues),
            "structure_issues": sorted(self.structure_issues),
            "complexity_score": self.complexity_score,
            "recommended_strategy": self.recommended_strategy,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def detect_version(text: str) -> Tuple[str, Optional[str], Optional[int]]:
    """Return (version, tool, major) from a tool/X.Y.Z token."""
    match = p.VERSION_RE.search(text)
    if not match:
        return VERSION_UNKNOWN, None, None
    tool, major, minor, patch = match.groups()
    return f"{major}.{minor}.{patch}", tool, int(major)


def detect_output_format(text: str) -> str:
    if p.JSON_MARKER_RE.search(text):
        return OUTPUT_JSON
    if p.XML_MARKER_RE.search(text):
        return OUTPUT_XML
    if p.TABLE_BORDER_RE.search(text):
        return OUTPUT_TABLE
    return OUTPUT_TEXT


def detect_encoding_issues(text: str) -> Set[str]:
    """Independent encoding checks; all that apply are reported."""
    issues: Set[str] = set()
    if p.NON_ASCII_RE.search(text):
        issues.add("non_ascii")
    if p.CRLF_RE.search(text):
        issues.add("crlf_line_endings")
    if p.LEADING_TAB_RE.search(text) and p.LEADING_SPACE_RE.search(text):
        issues.add("mixed_tabs_spaces")
    if p.CONTROL_CHAR_RE.search(text):
        issues.add("control_characters")
    return issues


def detect_structure_issues(text: str) -> Set[str]:
    """Independent structural checks; all that apply are reported."""
    issues: Set[str] = set()
    lines = [line for line in re.split(r"\r\n|\r|\n", text) if line.strip()]

    indents = {len(line) - len(line.lstrip(" ")) for line in lines}
    if len(indents) > p.MAX_INDENT_LEVELS:
        issues.add("inconsistent_indentation")

    if p.TRUNCATION_RE.search(text):
        issues.add("truncated_output")

    if any(p.MALFORMED_OPTION_RE.match(line) for line in lines):
        issues.add("malformed_options")

    headers = [match.group(1) for match in p.ANY_HEADER_RE.finditer(text)]
    if any(header != header.upper() for header in headers):
        issues.add("inconsistent_header_casing")
    if lines and not headers:
        issues.add("missing_section_headers")

    return issues


def complexity_score(
    text: str, structure_issues: Set[str], encoding_issues: Set[str]
) -> float:
    """Weighted, monotonic complexity estimate clamped to [0, 10]."""
    raw = (
        text.count("\n") * COMPLEXITY_WEIGHTS["lines"]
        + len(text) * COMPLEXITY_WEIGHTS["chars"]
        + len(p.AVAILABLE_HEADER_RE.findall(text)) * COMPLEXITY_WEIGHTS["available_headers"]
        + len(structure_issues) * COMPLEXITY_WEIGHTS["structure_issues"]
        + len(encoding_issues) * COMPLEXITY_WEIGHTS["encoding_issues"]
    )
    return round(max(0.0, min(MAX_COMPLEXITY, raw)), 2)


def recommend_strategy(structure_issues: Set[str], major_version: Optional[int]) -> str:
    """Decision table, evaluated top to bottom."""
    if len(structure_issues) > 3:
        return RECOMMEND_MINIMAL
    if major_version == 1:
        return RECOMMEND_LEGACY
    if structure_issues:
        return RECOMMEND_ROBUST
    return RECOMMEND_STANDARD


def detect_format(text: str) -> FormatAnalysis:
    """
    Classify a help text without parsing it.

    Args:
        text: Raw help text

    Returns:
        FormatAnalysis with issues, complexity and a recommended strategy
    """
    version, tool, major = detect_version(text)
    encoding_issues = detect_encoding_issues(text)
    structure_issues = detect_structure_issues(text)

    analysis = FormatAnalysis(
        version=version,
        tool=tool,
        major_version=major,
        output_format=detect_output_format(text),
        encoding_issues=encoding_issues,
        structure_issues=structure_issues,
        complexity_score=complexity_score(text, structure_issues, encoding_issues),
        recommended_strategy=recommend_strategy(structure_issues, major),
    )
    logger.debug(
        "Format analysis: version=%s output=%s encoding=%s structure=%s -> %s",
        analysis.version,
        analysis.output_format,
        sorted(encoding_issues),
        sorted(structure_issues),
        analysis.recommended_strategy,
    )
    return analysis


# =============================================================================
# Normalization
# =============================================================================

_UNPRINTABLE_RE = re.compile(r"[^\t\n\x20-\x7e]")
_INNER_SPACES_RE = re.compile(r"(?<=\S) {2,}")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_HEADER_LINE_RE = re.compile(
    r"^( *)(" + "|".join(re.escape(h) for h in p.KNOWN_HEADERS) + r") *$",
    re.IGNORECASE | re.MULTILINE,
)


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_non_ascii(text: str) -> str:
    """Replace non-ASCII and control characters with spaces (lossy)."""
    return _UNPRINTABLE_RE.sub(" ", text)


def normalize_whitespace(text: str) -> str:
    text = text.replace("\t", "    ")
    lines = [_INNER_SPACES_RE.sub(" ", line.rstrip()) for line in text.split("\n")]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))


def remove_malformed_options(text: str) -> str:
    lines = [line for line in text.split("\n") if not p.MALFORMED_OPTION_RE.match(line)]
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))


def canonicalize_headers(text: str) -> str:
    return _HEADER_LINE_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text)


NORMALIZATION_STEPS: Tuple[Callable[[str], str], ...] = (
    normalize_line_endings,
    strip_non_ascii,
    normalize_whitespace,
    remove_malformed_options,
    canonicalize_headers,
)


def normalize_content(text: str) -> str:
    """
    Run the normalization pipeline.

    The pipeline is idempotent: normalizing its own output changes nothing.
    """
    for step in NORMALIZATION_STEPS:
        text = step(text)
    return text


def summarize_issues(analysis: FormatAnalysis) -> List[str]:
    """Flatten an analysis into human-readable issue strings."""
    return [f"encoding: {issue}" for issue in sorted(analysis.encoding_issues)] + [
        f"structure: {issue}" for issue in sorted(analysis.structure_issues)
    ]
