# SPDX-License-Identifier: MIT
"""
Command Help Parser

Parses command-line help text into CommandDescriptor records. Sections are
detected line by line and routed through per-section processors; option
blocks are reduced by the parameter parser into ParameterDescriptor
records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import patterns as p


class ParseError(Exception):
    """Raised when parsing fails due to unusable input."""

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        self.line = line
        self.column = column
        super().__init__(f"{message} (line {line}, col {column})" if line else message)


# =============================================================================
# Enumerations
# =============================================================================


class Section(Enum):
    """Logical region of help text."""

    DESCRIPTION = p.SECTION_DESCRIPTION
    SYNOPSIS = p.SECTION_SYNOPSIS
    PARAMETERS = p.SECTION_PARAMETERS
    EXAMPLES = p.SECTION_EXAMPLES
    OUTPUT = p.SECTION_OUTPUT
    ERRORS = p.SECTION_ERRORS
    GENERIC = p.SECTION_GENERIC

    def __str__(self) -> str:
        return self.value


class ParameterType(str, Enum):
    """Closed set of parameter types handed to downstream type mappers."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    LIST = "list"
    RECORD = "record"
    DATETIME = "datetime"
    DURATION = "duration"
    PATH = "path"
    ARN = "arn"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: Any) -> "ParameterType":
        """Map any value onto the enum; unknown values become STRING."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.STRING


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ParameterConstraints:
    """Value constraints; each field is independently present or absent."""

    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("min_value", self.min_value),
                ("max_value", self.max_value),
                ("min_length", self.min_length),
                ("max_length", self.max_length),
                ("pattern", self.pattern),
            )
            if value is not None
        }


@dataclass
class ParameterDescriptor:
    """A single option of a command."""

    name: str
    type: ParameterType = ParameterType.STRING
    required: bool = False
    description: str = ""
    default_value: Optional[str] = None
    choices: List[str] = field(default_factory=list)
    multiple: bool = False
    constraints: ParameterConstraints = field(default_factory=ParameterConstraints)
    shorthand: str = ""
    file_input: bool = False

    def __post_init__(self) -> None:
        self.type = ParameterType.coerce(self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
            "description": self.description,
            "default_value": self.default_value,
            "choices": list(self.choices),
            "multiple": self.multiple,
            "constraints": self.constraints.to_dict(),
            "shorthand": self.shorthand,
            "file_input": self.file_input,
        }


@dataclass
class ErrorDescriptor:
    """An error a command is documented to return."""

    code: str
    description: str = ""
    http_status: Optional[int] = None
    retryable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "http_status": self.http_status,
            "retryable": self.retryable,
        }


@dataclass
class ExampleDescriptor:
    """A documented invocation; only the command is filled by the parser."""

    title: str = ""
    description: str = ""
    command: str = ""
    expected_output: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "command": self.command,
            "expected_output": self.expected_output,
        }


@dataclass
class CommandDescriptor:
    """Structured result of parsing one command's help text."""

    service: str = ""
    command: str = ""
    description: str = ""
    synopsis: str = ""
    parameters: List[ParameterDescriptor] = field(default_factory=list)
    examples: List[ExampleDescriptor] = field(default_factory=list)
    output_schema: Dict[str, Any] = field(default_factory=dict)
    errors: List[ErrorDescriptor] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def has_content(self) -> bool:
        """True if anything at all was extracted from the text."""
        return bool(
            self.description
            or self.synopsis
            or self.parameters
            or self.examples
            or self.errors
            or self.output_schema
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert descriptor to dictionary for JSON serialization."""
        return {
            "service": self.service,
            "command": self.command,
            "description": self.description,
            "synopsis": self.synopsis,
            "parameters": [param.to_dict() for param in self.parameters],
            "examples": [example.to_dict() for example in self.examples],
            "output_schema": dict(self.output_schema),
            "errors": [error.to_dict() for error in self.errors],
            "metadata": dict(self.metadata),
        }

    def to_json(self) -> str:
        """Convert descriptor to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)


@dataclass
class ParseState:
    """Mutable state of a single parse call; never shared between calls."""

    current_section: Optional[Section] = None
    # Parsed from the start line only until the block is closed
    current_parameter: Optional[ParameterDescriptor] = None
    parameter_lines: List[str] = field(default_factory=list)
    parameter_indent: int = 0
    line_number: int = 0

    @property
    def in_parameter(self) -> bool:
        return self.current_parameter is not None


def new_descriptor(context: Optional[Dict[str, str]] = None) -> CommandDescriptor:
    """Create an empty descriptor seeded from the caller's context."""
    context = context or {}
    return CommandDescriptor(
        service=str(context.get("service", "") or ""),
        command=str(context.get("command", "") or ""),
    )


# =============================================================================
# Section Detection
# =============================================================================


def match_header(line: str) -> Tuple[bool, Optional[Section]]:
    """
    Match a trimmed line against the ordered header table.

    Args:
        line: The trimmed line

    Returns:
        (matched, section); section is None for a section-end marker
    """
    if p.SECTION_END_RE.match(line):
        return True, None
    for pattern, label in p.SECTION_HEADER_PATTERNS:
        if pattern.match(line):
            return True, Section(label)
    return False, None


def detect_section(line: str, current: Optional[Section]) -> Optional[Section]:
    """Return the section a trimmed line switches to, or the current one."""
    matched, section = match_header(line)
    return section if matched else current


# =============================================================================
# Parameter Parsing
# =============================================================================


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _to_number(raw: str) -> float:
    return float(raw) if "." in raw else int(raw)


def _add_unique(items: List[str], values: Iterable[str]) -> None:
    for value in values:
        value = value.strip().strip("'\"`")
        if value and value not in items:
            items.append(value)


def _explicit_type(text: str) -> Optional[str]:
    for match in p.TYPE_HINT_RE.finditer(text):
        keyword = match.group(1).lower()
        if keyword in p.TYPE_KEYWORDS:
            return p.TYPE_KEYWORDS[keyword]
    return None


def infer_type(text: str) -> ParameterType:
    """
    Infer a parameter type from its help text.

    An explicit (TYPE) hint wins; otherwise the contextual rules are
    evaluated in priority order. Anything unrecognized is a string.
    """
    explicit = _explicit_type(text)
    if explicit:
        return ParameterType(explicit)
    for pattern, type_name in p.TYPE_INFERENCE_RULES:
        if pattern.search(text):
            return ParameterType(type_name)
    return ParameterType.STRING


def extract_choices(text: str) -> List[str]:
    """Union of valid-values, enum and pipe-list clauses, case-sensitive."""
    choices: List[str] = []

    for match in p.VALID_VALUES_RE.finditer(text):
        clause = match.group(1).strip()
        values = [v for v in p.CHOICE_SPLIT_RE.split(clause) if v.strip()]
        if len(values) == 1 and " " in values[0]:
            values = values[0].split()
        _add_unique(choices, values)

    for match in p.ENUM_RE.finditer(text):
        _add_unique(choices, match.group(1).split(","))

    for match in p.PIPE_CHOICES_RE.finditer(text):
        _add_unique(choices, match.group(1).split("|"))

    return choices


def extract_constraints(text: str) -> ParameterConstraints:
    """Probe each constraint clause independently."""
    constraints = ParameterConstraints()

    range_match = p.RANGE_RE.search(text)
    if range_match:
        constraints.min_value = _to_number(range_match.group(1))
        constraints.max_value = _to_number(range_match.group(2))

    match = p.MIN_VALUE_RE.search(text)
    if match:
        constraints.min_value = _to_number(match.group(1))

    match = p.MAX_VALUE_RE.search(text)
    if match:
        constraints.max_value = _to_number(match.group(1))

    match = p.MIN_LENGTH_RE.search(text)
    if match:
        constraints.min_length = int(match.group(1))

    match = p.MAX_LENGTH_RE.search(text)
    if match:
        constraints.max_length = int(match.group(1))

    match = p.PATTERN_RE.search(text)
    if match:
        constraints.pattern = match.group(1).strip("'\"`")

    return constraints


def parse_parameter(line: str, continuation: Iterable[str] = ()) -> ParameterDescriptor:
    """
    Parse one option from its start line plus continuation lines.

    Args:
        line: Line starting with a -x or --name token
        continuation: Following lines belonging to the same option

    Returns:
        ParameterDescriptor with every hint found in the block applied

    Raises:
        ParseError: If the line does not start with an option token
    """
    match = p.PARAMETER_START_RE.match(line)
    if not match:
        raise ParseError(f"Not a parameter line: {line.strip()[:40]!r}")

    name = match.group(2)
    rest = p.OPTION_ALIAS_RE.sub("", match.group(3), count=1)
    extra = [text.strip() for text in continuation if text.strip()]

    head = " ".join(p.PAREN_HINT_RE.sub(" ", rest).split())
    description = " ".join([head] + extra if head else extra)
    hint_text = " ".join([line.strip()] + extra)

    default_match = p.DEFAULT_RE.search(hint_text)
    default_value = None
    if default_match:
        default_value = default_match.group(1).rstrip(".").strip("'\"`") or None

    shorthand_match = p.SHORTHAND_RE.search(hint_text)

    return ParameterDescriptor(
        name=name,
        type=infer_type(hint_text),
        required=bool(p.REQUIRED_RE.search(hint_text)),
        description=description,
        default_value=default_value,
        choices=extract_choices(hint_text),
        multiple=bool(p.LIST_MARKER_RE.search(hint_text) or p.MULTIPLE_RE.search(hint_text)),
        constraints=extract_constraints(hint_text),
        shorthand=shorthand_match.group(1).strip() if shorthand_match else "",
        file_input=bool(p.FILE_URI_RE.search(hint_text)),
    )


def is_parameter_start(line: str) -> bool:
    return bool(p.PARAMETER_START_RE.match(line))


def is_continuation(line: str, state: ParseState) -> bool:
    """A non-option line indented past the open option's own line."""
    stripped = line.strip()
    if not state.in_parameter or not stripped:
        return False
    if is_parameter_start(line) or p.MALFORMED_OPTION_RE.match(stripped):
        return False
    indent = _indent_of(line)
    return indent >= p.CONTINUATION_INDENT or indent > state.parameter_indent


def open_parameter(line: str, state: ParseState) -> None:
    state.current_parameter = parse_parameter(line)
    state.parameter_lines = [line]
    state.parameter_indent = _indent_of(line)


def extend_parameter(line: str, state: ParseState) -> None:
    state.parameter_lines.append(line)


def close_parameter(state: ParseState, result: CommandDescriptor) -> None:
    """Parse the open block, if any, and append it exactly once."""
    if state.current_parameter is not None:
        if len(state.parameter_lines) > 1:
            state.current_parameter = parse_parameter(
                state.parameter_lines[0], state.parameter_lines[1:]
            )
        result.parameters.append(state.current_parameter)
    state.current_parameter = None
    state.parameter_lines = []
    state.parameter_indent = 0


# =============================================================================
# Section Processors
# =============================================================================

Processor = Callable[[str, ParseState, CommandDescriptor], Tuple[ParseState, CommandDescriptor]]


def _append_text(current: str, line: str) -> str:
    stripped = line.strip()
    if not stripped or p.SECTION_END_RE.match(stripped):
        return current
    return f"{current} {stripped}" if current else stripped


def process_description(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    result.description = _append_text(result.description, line)
    return state, result


def process_synopsis(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    result.synopsis = _append_text(result.synopsis, line)
    return state, result


def process_parameters(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    stripped = line.strip()

    if not stripped:
        close_parameter(state, result)
    elif is_parameter_start(line):
        close_parameter(state, result)
        open_parameter(line, state)
    elif is_continuation(line, state):
        extend_parameter(line, state)

    return state, result


def process_examples(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    stripped = line.strip()

    # Shell line continuation
    if result.examples and result.examples[-1].command.endswith("\\") and stripped:
        last = result.examples[-1]
        last.command = f"{last.command[:-1].rstrip()} {stripped}"
        return state, result

    match = p.EXAMPLE_COMMAND_RE.match(stripped)
    if match:
        result.examples.append(ExampleDescriptor(command=match.group(1).strip()))
    return state, result


def process_errors(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    stripped = line.strip()
    if not stripped:
        return state, result

    match = p.ERROR_CODE_RE.match(stripped)
    if match:
        result.errors.append(
            ErrorDescriptor(code=match.group(1), description=match.group(2).strip())
        )
    elif result.errors:
        last = result.errors[-1]
        last.description = _append_text(last.description, stripped)
    return state, result


def process_passthrough(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    return state, result


SECTION_PROCESSORS: Dict[Optional[Section], Processor] = {
    Section.DESCRIPTION: process_description,
    Section.SYNOPSIS: process_synopsis,
    Section.PARAMETERS: process_parameters,
    Section.EXAMPLES: process_examples,
    Section.ERRORS: process_errors,
    Section.OUTPUT: process_passthrough,
    Section.GENERIC: process_passthrough,
    None: process_passthrough,
}


def process_line(
    line: str, state: ParseState, result: CommandDescriptor
) -> Tuple[ParseState, CommandDescriptor]:
    """Route a line to the processor of the current section."""
    processor = SECTION_PROCESSORS.get(state.current_section, process_passthrough)
    return processor(line, state, result)


# =============================================================================
# Document Parser
# =============================================================================


def parse_help_text(
    content: str, context: Optional[Dict[str, str]] = None
) -> CommandDescriptor:
    """
    Parse help text with the section state machine.

    Args:
        content: Help text
        context: Optional {service, command} defaults

    Returns:
        CommandDescriptor with every recognized section reduced

    Raises:
        ParseError: If no section header is recognized
    """
    result = new_descriptor(context)
    state = ParseState()
    sections_found: List[str] = []

    for number, line in enumerate(content.split("\n"), start=1):
        state.line_number = number
        matched, section = match_header(line.strip())

        if matched:
            close_parameter(state, result)
            state.current_section = section
            if section is not None:
                sections_found.append(str(section))
            continue

        state, result = process_line(line, state, result)

    close_parameter(state, result)

    if not sections_found:
        raise ParseError("No recognizable section headers", line=state.line_number)

    result.metadata["sections_found"] = sections_found
    return result


def parse_section(
    section: Optional[Section],
    lines: Iterable[str],
    context: Optional[Dict[str, str]] = None,
) -> CommandDescriptor:
    """Reduce the body lines of a single section into a fresh descriptor."""
    result = new_descriptor(context)
    state = ParseState(current_section=section)
    for number, line in enumerate(lines, start=1):
        state.line_number = number
        state, result = process_line(line, state, result)
    close_parameter(state, result)
    return result
