# SPDX-License-Identifier: MIT
"""
Adaptive Parsing Strategies

Runs an ordered chain of progressively more lenient parsing strategies
and accepts the first one that completes. The adaptive entry points,
parse_adaptive and parse_streaming, never raise: if every strategy
fails they return an empty descriptor carrying the last error.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from . import patterns as p
from .config import ParserConfig
from .formats import (
    FormatAnalysis,
    RECOMMEND_LEGACY,
    RECOMMEND_MINIMAL,
    RECOMMEND_ROBUST,
    RECOMMEND_STANDARD,
    detect_format,
    normalize_content,
    normalize_line_endings,
    strip_non_ascii,
)
from .parser import (
    CommandDescriptor,
    ExampleDescriptor,
    ParameterDescriptor,
    ParseError,
    Section,
    match_header,
    new_descriptor,
    parse_help_text,
    parse_parameter,
    parse_section,
)
from .validator import apply_report, validate_result

logger = logging.getLogger(__name__)

Context = Optional[Mapping[str, Any]]
Strategy = Callable[[str, Dict[str, str], ParserConfig], CommandDescriptor]

STRATEGY_STANDARD = "standard"
STRATEGY_LEGACY = "legacy"
STRATEGY_CLEANED = "cleaned"
STRATEGY_SECTIONAL = "sectional"
STRATEGY_LINE_BY_LINE = "line_by_line"
STRATEGY_MINIMAL = "minimal"
TERMINAL_METHOD = "fallback_failed"

# Line classes used by the line-by-line strategy
LINE_EMPTY = "empty"
LINE_HEADER = "header"
LINE_PARAMETER = "parameter"
LINE_EXAMPLE = "example"
LINE_DESCRIPTION = "description"


# =============================================================================
# Strategies
# =============================================================================


def parse_standard(text: str, context: Dict[str, str], config: ParserConfig) -> CommandDescriptor:
    """Section state machine over the text as given."""
    return parse_help_text(text, context)


# Rewrites for older and argparse-style help layouts, applied in order
LEGACY_SUBSTITUTIONS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"^[ \t]*usage:[ \t]*(.*)$", re.IGNORECASE | re.MULTILINE), "SYNOPSIS\n      \\1"),
    (re.compile(r"^[ \t]*description:[ \t]*(.*)$", re.IGNORECASE | re.MULTILINE), "DESCRIPTION\n\\1"),
    (
        re.compile(
            r"^[ \t]*(?:optional |positional )?(?:arguments|options|flags|parameters):[ \t]*$",
            re.IGNORECASE | re.MULTILINE,
        ),
        "OPTIONS",
    ),
    (re.compile(r"^[ \t]*examples?:[ \t]*$", re.IGNORECASE | re.MULTILINE), "EXAMPLES"),
    # -f, --foo  ->  --foo
    (re.compile(r"^([ \t]*)-\w[ \t]*,[ \t]*(--)", re.MULTILINE), "\\1\\2"),
    # --foo <string>  ->  --foo (string)
    (re.compile(r"^([ \t]*--?[\w.-]+)[ \t]+<(\w+)>", re.MULTILINE), "\\1 (\\2)"),
)


def apply_legacy_substitutions(text: str) -> str:
    for pattern, replacement in LEGACY_SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text


def parse_legacy(text: str, context: Dict[str, str], config: ParserConfig) -> CommandDescriptor:
    return parse_help_text(apply_legacy_substitutions(text), context)


def parse_cleaned(text: str, context: Dict[str, str], config: ParserConfig) -> CommandDescriptor:
    return parse_help_text(normalize_content(text), context)


def split_sections(text: str) -> List[Tuple[Optional[Section], List[str]]]:
    """
    Split text into (section, body lines) chunks at recognized headers.

    Lines before the first header and after a section-end marker are
    grouped under None. Returns an empty list if no header is found.
    """
    chunks: List[Tuple[Optional[Section], List[str]]] = []
    current: Optional[Section] = None
    lines: List[str] = []
    header_seen = False

    for line in text.split("\n"):
        matched, section = match_header(line.strip())
        if matched:
            chunks.append((current, lines))
            current, lines = section, []
            header_seen = header_seen or section is not None
        else:
            lines.append(line)
    chunks.append((current, lines))

    return chunks if header_seen else []


def parse_sectional(text: str, context: Dict[str, str], config: ParserConfig) -> CommandDescriptor:
    """Parse each section independently; a failing section is skipped."""
    chunks = split_sections(normalize_content(text))
    if not chunks:
        raise ParseError("No recognizable section headers")

    merged = new_descriptor(context)
    parsed = failed = 0
    for section, lines in chunks:
        if section is None:
            continue
        try:
            part = parse_section(section, lines, context)
        except Exception as e:
            logger.warning("Skipping %s section: %s", section, e)
            failed += 1
            continue
        merged = merge_descriptors(merged, part)
        parsed += 1

    if not parsed:
        raise ParseError(f"All {failed} section(s) failed to parse")

    merged.metadata["parsed_sections"] = parsed
    merged.metadata["failed_sections"] = failed
    return merged


def classify_line(line: str) -> str:
    """Classify one line without any surrounding context."""
    stripped = line.strip()
    if not stripped:
        return LINE_EMPTY
    if p.SECTION_END_RE.match(stripped) or p.ANY_HEADER_RE.match(stripped):
        return LINE_HEADER
    if p.MALFORMED_OPTION_RE.match(stripped):
        raise ParseError(f"Malformed option token: {stripped[:40]!r}")
    if p.PARAMETER_START_RE.match(stripped):
        return LINE_PARAMETER
    if p.EXAMPLE_COMMAND_RE.match(stripped):
        return LINE_EXAMPLE
    return LINE_DESCRIPTION


def parse_line_by_line(
    text: str, context: Dict[str, str], config: ParserConfig
) -> CommandDescriptor:
    """Classify and reduce every line on its own; failures are counted."""
    result = new_descriptor(context)
    description: List[str] = []
    names = set()
    parsed = failed = 0

    sanitized = strip_non_ascii(normalize_line_endings(text))
    for number, line in enumerate(sanitized.split("\n"), start=1):
        try:
            kind = classify_line(line)
            if kind == LINE_EMPTY:
                continue
            if kind == LINE_PARAMETER:
                param = parse_parameter(line)
                if param.name not in names:
                    names.add(param.name)
                    result.parameters.append(param)
            elif kind == LINE_EXAMPLE:
                command = p.EXAMPLE_COMMAND_RE.match(line.strip()).group(1)
                result.examples.append(ExampleDescriptor(command=command))
            elif kind == LINE_DESCRIPTION:
                description.append(line.strip())
            parsed += 1
        except Exception as e:
            logger.debug("Line %d skipped: %s", number, e)
            failed += 1

    if not parsed:
        raise ParseError(f"No parseable lines ({failed} failed)")

    result.description = " ".join(description)
    result.metadata["parsed_lines"] = parsed
    result.metadata["failed_lines"] = failed
    return result


def parse_minimal(text: str, context: Dict[str, str], config: ParserConfig) -> CommandDescriptor:
    """Bounded heuristic extraction: leading lines and bare --options."""
    result = new_descriptor(context)
    description: List[str] = []
    names: List[str] = []

    for index, line in enumerate(text.split("\n")):
        if index >= config.minimal_max_lines:
            break
        stripped = line.strip()
        if not stripped:
            continue
        match = p.LONG_OPTION_RE.match(stripped)
        if match:
            if match.group(1) not in names:
                names.append(match.group(1))
        elif len(description) < config.minimal_description_lines and not p.ANY_HEADER_RE.match(stripped):
            description.append(stripped)

    result.description = " ".join(description)
    result.parameters = [ParameterDescriptor(name=name) for name in names]
    return result


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    (STRATEGY_STANDARD, parse_standard),
    (STRATEGY_LEGACY, parse_legacy),
    (STRATEGY_CLEANED, parse_cleaned),
    (STRATEGY_SECTIONAL, parse_sectional),
    (STRATEGY_LINE_BY_LINE, parse_line_by_line),
    (STRATEGY_MINIMAL, parse_minimal),
)
STRATEGY_NAMES: Tuple[str, ...] = tuple(name for name, _ in STRATEGIES)
STRATEGY_REGISTRY: Dict[str, Strategy] = dict(STRATEGIES)

# Format recommendation -> first strategy of the chain
RECOMMENDATION_ENTRY = {
    RECOMMEND_STANDARD: STRATEGY_STANDARD,
    RECOMMEND_LEGACY: STRATEGY_LEGACY,
    RECOMMEND_ROBUST: STRATEGY_LEGACY,
    RECOMMEND_MINIMAL: STRATEGY_MINIMAL,
}


# =============================================================================
# Merging
# =============================================================================


def _dedupe(items: List[Any], key: Callable[[Any], Any]) -> List[Any]:
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            unique.append(item)
    return unique


def merge_descriptors(base: CommandDescriptor, update: CommandDescriptor) -> CommandDescriptor:
    """
    Merge two partial results, base first.

    Scalars: last non-empty value wins. Lists: concatenated in order and
    deduplicated by parameter name, example command and error code. The
    merge is order-sensitive.
    """
    return CommandDescriptor(
        service=update.service or base.service,
        command=update.command or base.command,
        description=update.description or base.description,
        synopsis=update.synopsis or base.synopsis,
        parameters=_dedupe(base.parameters + update.parameters, key=lambda x: x.name),
        examples=_dedupe(base.examples + update.examples, key=lambda x: x.command),
        output_schema={**base.output_schema, **update.output_schema},
        errors=_dedupe(base.errors + update.errors, key=lambda x: x.code),
        metadata={**base.metadata, **update.metadata},
    )


# =============================================================================
# Adaptive Entry Points
# =============================================================================


def coerce_text(value: Any) -> str:
    """Accept str, bytes or None; bytes are decoded leniently."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value if isinstance(value, str) else str(value)


def _safe_context(context: Context) -> Dict[str, str]:
    if not isinstance(context, Mapping):
        return {}
    return {key: str(context.get(key) or "") for key in ("service", "command")}


def run_chain(
    text: str, context: Dict[str, str], config: ParserConfig, names: Tuple[str, ...]
) -> Tuple[Optional[CommandDescriptor], List[Dict[str, Optional[str]]]]:
    """
    Try strategies in order; the first that completes wins.

    Returns:
        (result or None, attempt log)
    """
    attempts: List[Dict[str, Optional[str]]] = []
    for name in names:
        try:
            result = STRATEGY_REGISTRY[name](text, context, config)
        except Exception as e:
            logger.info("Strategy %s failed: %s", name, e)
            attempts.append({"strategy": name, "error": str(e) or type(e).__name__})
            continue
        logger.debug("Strategy %s accepted", name)
        attempts.append({"strategy": name, "error": None})
        result.metadata["parsing_method"] = name
        result.metadata["fallback_level"] = STRATEGY_NAMES.index(name)
        return result, attempts
    return None, attempts


def terminal_result(
    context: Dict[str, str], attempts: List[Dict[str, Optional[str]]], error: Optional[str] = None
) -> CommandDescriptor:
    """Well-typed empty result for when every strategy failed."""
    if error is None:
        errors = [a["error"] for a in attempts if a.get("error")]
        error = errors[-1] if errors else "No parsing strategy succeeded"
    result = CommandDescriptor(
        service=context.get("service", ""),
        command=context.get("command", ""),
    )
    result.metadata.update(
        {
            "parsing_method": TERMINAL_METHOD,
            "fallback_level": len(STRATEGY_NAMES),
            "error": error,
            "attempts": list(attempts),
            "quality_score": 0,
        }
    )
    return result


def _score(result: CommandDescriptor) -> None:
    apply_report(result, validate_result(result))
    if not result.has_content():
        result.metadata["quality_score"] = 0


def _chain_for(analysis: FormatAnalysis, forced: Optional[str]) -> Tuple[str, ...]:
    if forced:
        return (forced,)
    entry = RECOMMENDATION_ENTRY.get(analysis.recommended_strategy, STRATEGY_STANDARD)
    return STRATEGY_NAMES[STRATEGY_NAMES.index(entry):]


def parse_adaptive(
    text: Any,
    context: Context = None,
    strategy: Optional[str] = None,
    config: Optional[ParserConfig] = None,
    validate: Optional[bool] = None,
) -> CommandDescriptor:
    """
    Parse help text with automatic strategy selection and fallback.

    Args:
        text: Help text (str, bytes or None)
        context: Optional {service, command} defaults
        strategy: Run only this strategy instead of the chain
        config: Parser configuration
        validate: Record quality scores in metadata (defaults to config)

    Returns:
        CommandDescriptor; never raises
    """
    config = config or ParserConfig()
    ctx = _safe_context(context)
    forced = strategy or config.strategy
    attempts: List[Dict[str, Optional[str]]] = []

    try:
        text = coerce_text(text)
        analysis = detect_format(text)

        if forced and forced not in STRATEGY_REGISTRY:
            result = terminal_result(ctx, attempts, error=f"Unknown strategy: {forced}")
        else:
            result, attempts = run_chain(text, ctx, config, _chain_for(analysis, forced))
            if result is None:
                logger.warning("All parsing strategies failed")
                result = terminal_result(ctx, attempts)

        result.metadata["attempts"] = attempts
        result.metadata["format_analysis"] = analysis.to_dict()
        if config.validate if validate is None else validate:
            _score(result)
        return result
    except Exception as e:
        logger.exception("Adaptive parse failed")
        return terminal_result(ctx, attempts, error=str(e) or type(e).__name__)


def iter_chunks(text: str, chunk_size: int) -> Iterator[str]:
    """Yield consecutive chunks of at most chunk_size lines."""
    lines = text.split("\n")
    for start in range(0, len(lines), chunk_size):
        yield "\n".join(lines[start:start + chunk_size])


def parse_streaming(
    text: Any,
    context: Context = None,
    chunk_size: Optional[int] = None,
    config: Optional[ParserConfig] = None,
    validate: Optional[bool] = None,
) -> CommandDescriptor:
    """
    Parse large help text in sequential line chunks.

    Each chunk goes through parse_adaptive; results are merged in input
    order. The merged parsing_method is the deepest fallback any chunk
    needed.

    Returns:
        CommandDescriptor; never raises
    """
    config = config or ParserConfig()
    ctx = _safe_context(context)

    try:
        text = coerce_text(text)
        size = max(1, int(chunk_size or config.chunk_size))
        merged = new_descriptor(ctx)
        methods: List[str] = []
        deepest = (-1, TERMINAL_METHOD)

        for chunk in iter_chunks(text, size):
            part = parse_adaptive(chunk, ctx, config=config, validate=False)
            method = part.metadata.get("parsing_method", TERMINAL_METHOD)
            level = part.metadata.get("fallback_level", len(STRATEGY_NAMES))
            methods.append(method)
            if level > deepest[0]:
                deepest = (level, method)
            part.metadata = {}
            merged = merge_descriptors(merged, part)

        merged.metadata = {
            "parsing_method": deepest[1],
            "fallback_level": deepest[0],
            "chunks": len(methods),
            "chunk_size": size,
            "chunk_methods": methods,
        }
        if config.validate if validate is None else validate:
            _score(merged)
        return merged
    except Exception as e:
        logger.exception("Streaming parse failed")
        return terminal_result(ctx, [], error=str(e) or type(e).__name__)
