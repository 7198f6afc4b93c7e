# SPDX-License-Identifier: MIT
"""
cmdhelp: Command Help Text Parser

A Python package for turning free-form command-line help text into
structured command descriptors, with format detection, normalization,
a fallback chain of parsing strategies and quality scoring.

Usage:
    from tools.cmdhelp import parse_adaptive, detect_format, validate_result

    # Parse help text; never raises
    descriptor = parse_adaptive(help_text, {"service": "s3", "command": "ls"})

    # Inspect the input format
    analysis = detect_format(help_text)

    # Score a finished descriptor
    report = validate_result(descriptor)
"""

from .parser import (
    parse_help_text,
    parse_parameter,
    detect_section,
    ParseError,
    ParseState,
    Section,
    ParameterType,
    ParameterConstraints,
    ParameterDescriptor,
    ErrorDescriptor,
    ExampleDescriptor,
    CommandDescriptor,
)

from .formats import (
    detect_format,
    normalize_content,
    FormatAnalysis,
)

from .strategies import (
    parse_adaptive,
    parse_streaming,
    merge_descriptors,
    STRATEGY_NAMES,
)

from .validator import (
    validate_result,
    QualityLevel,
    ValidationReport,
)

from .config import (
    load_config,
    ParserConfig,
)

__version__ = "0.1.0"
__all__ = [
    # Parser exports
    "parse_help_text",
    "parse_parameter",
    "detect_section",
    "ParseError",
    "ParseState",
    "Section",
    "ParameterType",
    "ParameterConstraints",
    "ParameterDescriptor",
    "ErrorDescriptor",
    "ExampleDescriptor",
    "CommandDescriptor",
    # Format exports
    "detect_format",
    "normalize_content",
    "FormatAnalysis",
    # Strategy exports
    "parse_adaptive",
    "parse_streaming",
    "merge_descriptors",
    "STRATEGY_NAMES",
    # Validator exports
    "validate_result",
    "QualityLevel",
    "ValidationReport",
    # Config exports
    "load_config",
    "ParserConfig",
    # Version
    "__version__",
]
