# SPDX-License-Identifier: MIT
"""
Help Text Pattern Library

Compiled regular expressions and ordered lookup tables shared by the
parser, the format detector and the normalizer. Everything here is a
module-level constant; nothing is mutated at runtime.
"""

from __future__ import annotations

import re
from typing import Dict, Tuple


# =============================================================================
# Section Headers
# =============================================================================

# Canonical section labels, as used by the parser's Section enum
SECTION_DESCRIPTION = "description"
SECTION_SYNOPSIS = "synopsis"
SECTION_PARAMETERS = "parameters"
SECTION_EXAMPLES = "examples"
SECTION_OUTPUT = "output"
SECTION_ERRORS = "errors"
SECTION_GENERIC = "generic"

# Ordered header matchers, evaluated top to bottom; first match wins.
# GLOBAL OPTIONS must be tried before OPTIONS.
SECTION_HEADER_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"^DESCRIPTION$"), SECTION_DESCRIPTION),
    (re.compile(r"^SYNOPSIS$"), SECTION_SYNOPSIS),
    (re.compile(r"^GLOBAL OPTIONS$"), SECTION_GENERIC),
    (re.compile(r"^(?:OPTIONS|PARAMETERS)$"), SECTION_PARAMETERS),
    (re.compile(r"^EXAMPLES?$"), SECTION_EXAMPLES),
    (re.compile(r"^OUTPUT$"), SECTION_OUTPUT),
    (re.compile(r"^(?:ERRORS|EXCEPTIONS)$"), SECTION_ERRORS),
    (re.compile(r"^(?:NAME|SEE ALSO|AVAILABLE (?:COMMANDS|SUBCOMMANDS|SERVICES))$"), SECTION_GENERIC),
)

# A run of '=' characters closes the current section
SECTION_END_RE = re.compile(r"^={3,}$")

# Header names the normalizer rewrites to uppercase, longest first so that
# "global options" is not rewritten as "options"
KNOWN_HEADERS: Tuple[str, ...] = (
    "AVAILABLE SUBCOMMANDS",
    "AVAILABLE COMMANDS",
    "AVAILABLE SERVICES",
    "GLOBAL OPTIONS",
    "DESCRIPTION",
    "PARAMETERS",
    "EXCEPTIONS",
    "SYNOPSIS",
    "EXAMPLES",
    "EXAMPLE",
    "OPTIONS",
    "SEE ALSO",
    "OUTPUT",
    "ERRORS",
    "NAME",
)

# Any known header, in any casing, alone on a line
ANY_HEADER_RE = re.compile(
    r"^\s*(" + "|".join(re.escape(h) for h in KNOWN_HEADERS) + r")\s*$",
    re.IGNORECASE | re.MULTILINE,
)

# "AVAILABLE COMMANDS" style listing headers
AVAILABLE_HEADER_RE = re.compile(r"^\s*AVAILABLE\s+[A-Z][A-Z ]*$", re.MULTILINE)


# =============================================================================
# Parameter Syntax
# =============================================================================

# Leading -x / --long-name token
PARAMETER_START_RE = re.compile(r"^\s*(-{1,2})([A-Za-z][\w.:-]*)(.*)$")

# Bare --long-name token used by the minimal strategy
LONG_OPTION_RE = re.compile(r"^\s*--([A-Za-z][\w.-]*)")

# Alias tokens after the option name: "--a | --b", "-a, --b"
OPTION_ALIAS_RE = re.compile(r"^(?:\s*[|,]\s*-{1,2}[A-Za-z][\w.:-]*)+")

# Minimum indentation of a continuation line
CONTINUATION_INDENT = 6

# Option tokens that cannot be parsed: ---foo, --=x, a lone --
MALFORMED_OPTION_RE = re.compile(r"^\s*(?:-{3,}\w|--[^\w\s-]|--\s*$)")

# Parenthesized hints such as (string) or (required)
PAREN_HINT_RE = re.compile(r"\([^)]*\)")

# Single-word parenthesized hint, candidate for an explicit type
TYPE_HINT_RE = re.compile(r"\(\s*([A-Za-z]+)\s*\)")

REQUIRED_RE = re.compile(r"[(\[]\s*required\s*[)\]]", re.IGNORECASE)
LIST_MARKER_RE = re.compile(r"\(\s*list\s*\)", re.IGNORECASE)
MULTIPLE_RE = re.compile(r"\b(?:multiple|repeated)\b", re.IGNORECASE)
FILE_URI_RE = re.compile(r"\bfileb?://")

DEFAULT_RE = re.compile(
    r"\bdefault(?:\s+value)?\s*(?:is\s*)?[:=]\s*([^\s,;]+)", re.IGNORECASE
)

SHORTHAND_RE = re.compile(
    r"Shorthand\s+Syntax\s*:\s*(.+?)(?=\s*JSON\s+Syntax\s*:|$)", re.IGNORECASE
)


# =============================================================================
# Choices
# =============================================================================

VALID_VALUES_RE = re.compile(
    r"\b(?:Valid|Possible|Allowed)\s+values\s*:\s*(.+?)(?=\.(?:\s|$)|;|$)",
    re.IGNORECASE,
)
ENUM_RE = re.compile(r"\benum\s*:\s*\[([^\]]*)\]", re.IGNORECASE)
PIPE_CHOICES_RE = re.compile(r"\(\s*([\w.-]+(?:\s*\|\s*[\w.-]+)+)\s*\)")

# Separators inside a "Valid values:" clause
CHOICE_SPLIT_RE = re.compile(r"\s*(?:,|\||\bor\b)\s*")


# =============================================================================
# Constraints
# =============================================================================

_NUMBER = r"(-?\d+(?:\.\d+)?)"

RANGE_RE = re.compile(
    r"\brange\s*[:=]?\s*" + _NUMBER + r"\s*(?:-|to|\.\.)\s*" + _NUMBER, re.IGNORECASE
)
MIN_VALUE_RE = re.compile(r"\bmin(?:imum)?(?:\s+value)?\s*[:=]\s*" + _NUMBER, re.IGNORECASE)
MAX_VALUE_RE = re.compile(r"\bmax(?:imum)?(?:\s+value)?\s*[:=]\s*" + _NUMBER, re.IGNORECASE)
MIN_LENGTH_RE = re.compile(r"\bmin(?:imum)?\s+length\s*(?:[:=]|of)?\s*(\d+)", re.IGNORECASE)
MAX_LENGTH_RE = re.compile(r"\bmax(?:imum)?\s+length\s*(?:[:=]|of)?\s*(\d+)", re.IGNORECASE)
PATTERN_RE = re.compile(r"\bpattern\s*[:=]\s*(\S+)", re.IGNORECASE)


# =============================================================================
# Types
# =============================================================================

# Explicit (TYPE) keywords -> canonical parameter type
TYPE_KEYWORDS: Dict[str, str] = {
    "string": "string",
    "integer": "int",
    "long": "int",
    "double": "float",
    "float": "float",
    "boolean": "bool",
    "timestamp": "datetime",
    "list": "list",
    "map": "record",
    "structure": "record",
    "blob": "binary",
}

# Contextual inference, in priority order: first predicate that matches wins
TYPE_INFERENCE_RULES: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bfileb://"), "binary"),
    (re.compile(r"\bfile://"), "path"),
    # Bracket runs stop at the next "["; the first also stops at ","
    # Neither bracket run may cross a "[" or share the comma, keeping unclosed lists linear
    (re.compile(r"\[[^\],\[]*,[^\]\[]*\]|\"string\"\s+\"string\"|\.\.\."), "list"),
    (re.compile(r"\barn:aws[\w-]*:"), "arn"),
    (re.compile(r"\b\d{4}-\d{2}-\d{2}T\d{2}:\d{2}|\btimestamp\b", re.IGNORECASE), "datetime"),
    (re.compile(r"\b(?:duration|in\s+(?:seconds|minutes|hours))\b", re.IGNORECASE), "duration"),
)


# =============================================================================
# Examples and Errors
# =============================================================================

# Lines that invoke the CLI, optionally behind a shell prompt
EXAMPLE_COMMAND_RE = re.compile(r"^(?:\$\s*)?(aws\s+\S.*)$")

# Leading PascalCase error code, optionally suffixed
ERROR_CODE_RE = re.compile(
    r"^([A-Z][A-Za-z0-9]*(?:Exception|Error|Fault)|[A-Z][a-z0-9]+(?:[A-Z][a-z0-9]+)+)\b[\s:-]*(.*)$"
)


# =============================================================================
# Format Markers
# =============================================================================

VERSION_RE = re.compile(r"\b([A-Za-z][\w-]*)/(\d+)\.(\d+)\.(\d+)\b")

JSON_MARKER_RE = re.compile(r"^\s*[{\[]\s*$|^\s*\"[\w-]+\"\s*:", re.MULTILINE)
XML_MARKER_RE = re.compile(r"<\?xml|<([A-Za-z][\w-]*)>[^<]*</\1>")
TABLE_BORDER_RE = re.compile(r"^\s*[+|]-{3,}|^\s*-{3,}\+", re.MULTILINE)

NON_ASCII_RE = re.compile(r"[^\x00-\x7f]")
CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
CRLF_RE = re.compile(r"\r")
LEADING_TAB_RE = re.compile(r"^ *\t", re.MULTILINE)
LEADING_SPACE_RE = re.compile(r"^\t* +\S", re.MULTILINE)

TRUNCATION_RE = re.compile(
    r"\[(?:output\s+)?truncated\]|\(truncated\)|--More--|\.\.\.\s*\Z", re.IGNORECASE
)

# Number of distinct indentation widths above which layout is inconsistent
MAX_INDENT_LEVELS = 6
