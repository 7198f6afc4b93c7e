# SPDX-License-Identifier: MIT
"""
cmdhelp CLI

Command-line interface for parsing command help text into structured
descriptors, inspecting its format and scoring the parse.

Usage:
    python -m tools.cmdhelp.cli parse <file> [--strategy NAME] [--stream]
    python -m tools.cmdhelp.cli analyze <file>
    python -m tools.cmdhelp.cli normalize <file>
    python -m tools.cmdhelp.cli score <file>

Use "-" as the file to read from standard input.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ParserConfig, load_config
from .formats import FormatAnalysis, detect_format, normalize_content
from .strategies import STRATEGY_NAMES, parse_adaptive, parse_streaming
from .validator import QualityLevel, ValidationReport, validate_result

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def read_file(path: str) -> str:
    """
    Read a help text file, or stdin for "-".

    Undecodable bytes are replaced rather than rejected; the parser copes
    with them.

    Args:
        path: Path to the file

    Returns:
        File contents as string

    Raises:
        FileNotFoundError: If file does not exist
        OSError: If file cannot be read
    """
    if path == "-":
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    with open(path, "rb") as f:
        return f.read().decode("utf-8", errors="replace")


def _read_or_report(path: str) -> Optional[str]:
    try:
        return read_file(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except OSError as e:
        print(f"Error: Cannot read file: {e}", file=sys.stderr)
    return None


def format_analysis(analysis: FormatAnalysis) -> str:
    """Format a format analysis for display."""
    lines: List[str] = []

    lines.append(f"Version: {analysis.version}")
    if analysis.tool:
        lines.append(f"  Tool: {analysis.tool}")
    lines.append(f"Output format: {analysis.output_format}")
    lines.append(f"Complexity: {analysis.complexity_score}")
    lines.append(f"Recommended strategy: {analysis.recommended_strategy}")

    for label, issues in (
        ("Encoding issues", analysis.encoding_issues),
        ("Structure issues", analysis.structure_issues),
    ):
        if issues:
            lines.append(f"{label} ({len(issues)}):")
            for issue in sorted(issues):
                lines.append(f"  - {issue}")

    return "\n".join(lines)


def format_report(report: ValidationReport, parsing_method: Optional[str] = None) -> str:
    """
    Format a validation report for display.

    Args:
        report: The report to format
        parsing_method: Strategy that produced the scored descriptor

    Returns:
        Formatted string for display
    """
    lines: List[str] = []

    lines.append(f"Level: {report.level}")
    if parsing_method:
        lines.append(f"Parsing method: {parsing_method}")
    lines.append(f"Quality: {report.quality_score}")
    lines.append(f"Completeness: {report.completeness_score}")
    lines.append(f"Reliability: {report.reliability_score}")

    if report.issues:
        lines.append(f"Issues ({len(report.issues)}):")
        for issue in report.issues:
            lines.append(f"  - {issue}")

    if report.suggestions:
        lines.append("Suggestions:")
        for suggestion in report.suggestions:
            lines.append(f"  - {suggestion}")

    return "\n".join(lines)


def _parse(content: str, args: argparse.Namespace, config: ParserConfig):
    context = {"service": args.service or "", "command": args.cmd_name or ""}
    if args.stream:
        return parse_streaming(content, context, chunk_size=args.chunk_size, config=config)
    return parse_adaptive(content, context, strategy=args.strategy, config=config)


def cmd_parse(args: argparse.Namespace) -> int:
    """
    Parse help text and print the descriptor as JSON.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 if the file cannot be read)
    """
    content = _read_or_report(args.file)
    if content is None:
        return 1

    descriptor = _parse(content, args, args.config)
    print(descriptor.to_json())
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Print the format analysis of a help text."""
    content = _read_or_report(args.file)
    if content is None:
        return 1

    analysis = detect_format(content)
    if args.json:
        print(analysis.to_json())
    else:
        print(format_analysis(analysis))
    return 0


def cmd_normalize(args: argparse.Namespace) -> int:
    """Print the normalized help text."""
    content = _read_or_report(args.file)
    if content is None:
        return 1

    sys.stdout.write(normalize_content(content))
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    """
    Parse help text and print its validation report.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 unless the file is unreadable or quality is POOR)
    """
    content = _read_or_report(args.file)
    if content is None:
        return 1

    descriptor = _parse(content, args, args.config)
    report = validate_result(descriptor)
    method = descriptor.metadata.get("parsing_method")

    if args.json:
        output = report.to_dict()
        output["parsing_method"] = method
        print(json.dumps(output, indent=2))
    else:
        print(format_report(report, method))

    return 1 if report.level == QualityLevel.POOR else 0


def _add_parse_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "file",
        help="Path to the help text file, or - for stdin",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGY_NAMES,
        help="Run only this parsing strategy",
    )
    parser.add_argument(
        "--service",
        help="Service name recorded in the descriptor",
    )
    parser.add_argument(
        "--command",
        dest="cmd_name",
        help="Command name recorded in the descriptor",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Parse in sequential line chunks",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        help="Lines per chunk with --stream",
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for the CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="cmdhelp",
        description="Parse command help text into structured descriptors",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        help="Path to a JSON config file",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse help text and print the descriptor as JSON",
    )
    _add_parse_options(parse_parser)
    parse_parser.set_defaults(func=cmd_parse)

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Classify the format of a help text",
    )
    analyze_parser.add_argument(
        "file",
        help="Path to the help text file, or - for stdin",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    # normalize command
    normalize_parser = subparsers.add_parser(
        "normalize",
        help="Print the normalized help text",
    )
    normalize_parser.add_argument(
        "file",
        help="Path to the help text file, or - for stdin",
    )
    normalize_parser.set_defaults(func=cmd_normalize)

    # score command
    score_parser = subparsers.add_parser(
        "score",
        help="Parse help text and score the result",
    )
    _add_parse_options(score_parser)
    score_parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    score_parser.set_defaults(func=cmd_score)

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(Path(args.config_path) if args.config_path else None)
    configure_logging(args.log_level or config.log_level)
    args.config = config

    if hasattr(args, "func"):
        return args.func(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
