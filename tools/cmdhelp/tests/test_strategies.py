# SPDX-License-Identifier: MIT
"""Tests for the adaptive parsing strategies."""

import unittest
from unittest import mock

from tools.cmdhelp import strategies
from tools.cmdhelp.config import ParserConfig
from tools.cmdhelp.parser import (
    CommandDescriptor,
    ErrorDescriptor,
    ExampleDescriptor,
    ParameterDescriptor,
    ParseError,
    Section,
)
from tools.cmdhelp.strategies import (
    STRATEGY_NAMES,
    TERMINAL_METHOD,
    apply_legacy_substitutions,
    classify_line,
    iter_chunks,
    merge_descriptors,
    parse_adaptive,
    parse_line_by_line,
    parse_minimal,
    parse_sectional,
    parse_streaming,
    split_sections,
)


SCENARIO_A = (
    "DESCRIPTION\nDoes a thing.\n\nOPTIONS\n--foo (string) (required)\n"
    "    The foo value.\n\n--bar (integer)\n    Default: 5.\n"
)

WELL_FORMED = (
    "DESCRIPTION\nCopies objects.\n\nSYNOPSIS\n  cp <src> <dst>\n\n"
    "OPTIONS\n--recursive (boolean)\n    Copy recursively.\n\n"
    "EXAMPLES\n  aws s3 cp a b\n"
)

ARGPARSE_HELP = (
    "Usage: tool [-h] [--name NAME]\n\n"
    "Options:\n"
    "  -h, --help   show help\n"
    "  --name <string>  The name\n"
)

LOWERCASE_HEADERS = "Description\nDoes stuff.\n\nOptions\n--x (string)\n    X value.\n"


class TestFallbackChain(unittest.TestCase):
    """Test strategy selection and fallback."""

    def test_scenario_a_uses_standard(self) -> None:
        """Test a well-formed text is accepted by the first strategy."""
        result = parse_adaptive(SCENARIO_A)
        self.assertEqual(result.metadata["parsing_method"], "standard")
        self.assertEqual(result.metadata["fallback_level"], 0)
        self.assertEqual(result.description, "Does a thing.")
        self.assertEqual([p.name for p in result.parameters], ["foo", "bar"])
        self.assertEqual(result.metadata["attempts"], [{"strategy": "standard", "error": None}])

    def test_empty_input(self) -> None:
        """Test the empty string yields an empty minimal result."""
        result = parse_adaptive("")
        self.assertEqual(result.description, "")
        self.assertEqual(result.synopsis, "")
        self.assertEqual(result.parameters, [])
        self.assertEqual(result.metadata["parsing_method"], "minimal")
        self.assertEqual(result.metadata["quality_score"], 0)

    def test_never_raises(self) -> None:
        """Test arbitrary input always produces a descriptor."""
        inputs = [
            "",
            None,
            b"\x00\xff\xfe\x80garbage",
            "no headers here at all",
            "\x00" * 50,
            "OPTIONS\n---\n--",
            "DESCRIPTION\r\n\x1b[1mBold\x1b[0m café\r\n",
            12345,
        ]
        for value in inputs:
            with self.subTest(value=value):
                result = parse_adaptive(value)
                self.assertIsInstance(result, CommandDescriptor)
                self.assertIn("parsing_method", result.metadata)
                self.assertIsInstance(result.parameters, list)

    def test_argparse_layout_uses_legacy(self) -> None:
        """Test usage/options layouts are rewritten by the legacy strategy."""
        result = parse_adaptive(ARGPARSE_HELP)
        self.assertEqual(result.metadata["parsing_method"], "legacy")
        self.assertEqual(result.synopsis, "tool [-h] [--name NAME]")
        self.assertEqual([p.name for p in result.parameters], ["help", "name"])
        self.assertEqual(result.parameters[0].description, "show help")
        self.assertEqual(result.parameters[1].type, "string")
        self.assertEqual(result.parameters[1].description, "The name")

    def test_lowercase_headers_use_cleaned(self) -> None:
        """Test normalization rescues non-canonical headers."""
        result = parse_adaptive(LOWERCASE_HEADERS)
        self.assertEqual(result.metadata["parsing_method"], "cleaned")
        self.assertEqual(result.metadata["fallback_level"], 2)
        self.assertEqual(result.description, "Does stuff.")
        self.assertEqual(result.parameters[0].description, "X value.")

    def test_monotonic_degradation(self) -> None:
        """Test a recovery parse never outscores the standard one."""
        standard = parse_adaptive(WELL_FORMED)
        minimal = parse_adaptive(WELL_FORMED, strategy="minimal")
        self.assertEqual(standard.metadata["quality_score"], 100)
        self.assertGreaterEqual(
            standard.metadata["quality_score"], minimal.metadata["quality_score"]
        )
        self.assertGreater(
            standard.metadata["reliability_score"], minimal.metadata["reliability_score"]
        )

    def test_deterministic(self) -> None:
        """Test identical input gives identical output."""
        self.assertEqual(
            parse_adaptive(ARGPARSE_HELP).to_dict(), parse_adaptive(ARGPARSE_HELP).to_dict()
        )

    def test_context_propagates(self) -> None:
        """Test service and command come from the context."""
        result = parse_adaptive(SCENARIO_A, {"service": "s3", "command": "cp"})
        self.assertEqual(result.service, "s3")
        self.assertEqual(result.command, "cp")

        failed = parse_adaptive("x", {"service": "s3"}, strategy="standard")
        self.assertEqual(failed.service, "s3")
        self.assertEqual(failed.command, "")

    def test_validation_can_be_disabled(self) -> None:
        """Test scores are omitted when validation is off."""
        result = parse_adaptive(SCENARIO_A, validate=False)
        self.assertNotIn("quality_score", result.metadata)

        config = ParserConfig(validate=False)
        self.assertNotIn("quality_score", parse_adaptive(SCENARIO_A, config=config).metadata)

    def test_format_analysis_recorded(self) -> None:
        """Test the format analysis is kept in metadata."""
        result = parse_adaptive("DESCRIPTION\r\nx\r\n")
        self.assertEqual(
            result.metadata["format_analysis"]["encoding_issues"], ["crlf_line_endings"]
        )


class TestForcedStrategy(unittest.TestCase):
    """Test running a single named strategy."""

    def test_forced_strategy_runs_alone(self) -> None:
        """Test only the named strategy is attempted."""
        result = parse_adaptive(SCENARIO_A, strategy="minimal")
        self.assertEqual(result.metadata["parsing_method"], "minimal")
        self.assertEqual(len(result.metadata["attempts"]), 1)

    def test_forced_strategy_failure_is_terminal(self) -> None:
        """Test a failing forced strategy does not fall back."""
        result = parse_adaptive("no headers", strategy="standard")
        self.assertEqual(result.metadata["parsing_method"], TERMINAL_METHOD)
        self.assertIn("No recognizable section headers", result.metadata["error"])
        self.assertEqual(result.metadata["quality_score"], 0)
        self.assertEqual(result.parameters, [])
        self.assertEqual(len(result.metadata["attempts"]), 1)

    def test_unknown_strategy(self) -> None:
        """Test an unknown strategy name yields the terminal result."""
        result = parse_adaptive(SCENARIO_A, strategy="telepathy")
        self.assertEqual(result.metadata["parsing_method"], TERMINAL_METHOD)
        self.assertIn("Unknown strategy", result.metadata["error"])
        self.assertEqual(result.metadata["quality_score"], 0)

    def test_config_strategy(self) -> None:
        """Test the configured strategy applies when none is passed."""
        result = parse_adaptive(SCENARIO_A, config=ParserConfig(strategy="line_by_line"))
        self.assertEqual(result.metadata["parsing_method"], "line_by_line")

    def test_all_strategies_fail(self) -> None:
        """Test the terminal result when every strategy raises."""
        def boom(text, context, config):
            raise ParseError("boom")

        registry = {name: boom for name in STRATEGY_NAMES}
        with mock.patch.dict(strategies.STRATEGY_REGISTRY, registry):
            result = parse_adaptive(SCENARIO_A)

        self.assertEqual(result.metadata["parsing_method"], TERMINAL_METHOD)
        self.assertEqual(result.metadata["error"], "boom")
        self.assertEqual(len(result.metadata["attempts"]), len(STRATEGY_NAMES))


class TestLegacy(unittest.TestCase):
    """Test legacy rewrites."""

    def test_substitutions(self) -> None:
        """Test each rewrite."""
        self.assertEqual(
            apply_legacy_substitutions(ARGPARSE_HELP),
            "SYNOPSIS\n      tool [-h] [--name NAME]\n\n"
            "OPTIONS\n"
            "  --help   show help\n"
            "  --name (string)  The name\n",
        )

    def test_description_and_examples(self) -> None:
        """Test description and example labels."""
        self.assertEqual(
            apply_legacy_substitutions("Description: Runs it.\nExamples:\n"),
            "DESCRIPTION\nRuns it.\nEXAMPLES\n",
        )


class TestSectional(unittest.TestCase):
    """Test the per-section strategy."""

    def test_split_sections(self) -> None:
        """Test chunking at headers."""
        chunks = split_sections("intro\nDESCRIPTION\nd\nOPTIONS\n--x\n")
        self.assertEqual(
            [section for section, _ in chunks],
            [None, Section.DESCRIPTION, Section.PARAMETERS],
        )
        self.assertEqual(chunks[1][1], ["d"])
        self.assertEqual(split_sections("no headers"), [])

    def test_failing_section_is_skipped(self) -> None:
        """Test one broken section does not sink the rest."""
        real = strategies.parse_section

        def flaky(section, lines, context=None):
            if section == Section.EXAMPLES:
                raise ParseError("bad examples")
            return real(section, lines, context)

        with mock.patch.object(strategies, "parse_section", side_effect=flaky):
            result = parse_sectional(WELL_FORMED, {}, ParserConfig())

        self.assertEqual(result.description, "Copies objects.")
        self.assertEqual(result.examples, [])
        self.assertEqual(result.metadata["parsed_sections"], 3)
        self.assertEqual(result.metadata["failed_sections"], 1)

    def test_no_headers_raises(self) -> None:
        """Test that text without headers raises ParseError."""
        with self.assertRaises(ParseError):
            parse_sectional("plain text", {}, ParserConfig())


class TestLineByLine(unittest.TestCase):
    """Test the per-line strategy."""

    def test_classify_line(self) -> None:
        """Test line classes."""
        self.assertEqual(classify_line("   "), "empty")
        self.assertEqual(classify_line("OPTIONS"), "header")
        self.assertEqual(classify_line("Options"), "header")
        self.assertEqual(classify_line("--foo (string)"), "parameter")
        self.assertEqual(classify_line("$ aws s3 ls"), "example")
        self.assertEqual(classify_line("Some text"), "description")
        with self.assertRaises(ParseError):
            classify_line("---broken")

    def test_counts(self) -> None:
        """Test parsed and failed lines are counted."""
        result = parse_line_by_line(
            "Some tool.\n--alpha (integer) count\n---broken\naws tool run\n", {}, ParserConfig()
        )
        self.assertEqual(result.description, "Some tool.")
        self.assertEqual(result.parameters[0].type, "int")
        self.assertEqual([e.command for e in result.examples], ["aws tool run"])
        self.assertEqual(result.metadata["parsed_lines"], 3)
        self.assertEqual(result.metadata["failed_lines"], 1)

    def test_nothing_parsed_raises(self) -> None:
        """Test that all-blank text raises ParseError."""
        with self.assertRaises(ParseError):
            parse_line_by_line("\n\n  \n", {}, ParserConfig())


class TestMinimal(unittest.TestCase):
    """Test the last-resort strategy."""

    def test_extraction(self) -> None:
        """Test leading description lines and bare options."""
        result = parse_minimal(
            "NAME\nfoo\nbar\nbaz\nqux\n--one x\n--one y\n--two", {}, ParserConfig()
        )
        self.assertEqual(result.description, "foo bar baz")
        self.assertEqual([p.name for p in result.parameters], ["one", "two"])

    def test_bounded(self) -> None:
        """Test only the configured number of lines is scanned."""
        config = ParserConfig(minimal_max_lines=2)
        result = parse_minimal("first\n--a\n--b\n", {}, config)
        self.assertEqual(result.description, "first")
        self.assertEqual([p.name for p in result.parameters], ["a"])

    def test_never_raises(self) -> None:
        """Test empty input."""
        result = parse_minimal("", {}, ParserConfig())
        self.assertFalse(result.has_content())


class TestMerge(unittest.TestCase):
    """Test merging partial results."""

    def test_scalars_last_non_empty_wins(self) -> None:
        """Test scalar fields."""
        base = CommandDescriptor(description="first", synopsis="syn")
        update = CommandDescriptor(description="second")
        merged = merge_descriptors(base, update)
        self.assertEqual(merged.description, "second")
        self.assertEqual(merged.synopsis, "syn")

    def test_lists_deduplicated_in_order(self) -> None:
        """Test list fields keep the first occurrence."""
        base = CommandDescriptor(
            parameters=[ParameterDescriptor(name="a", description="from base")],
            examples=[ExampleDescriptor(command="aws x")],
            errors=[ErrorDescriptor(code="E1")],
        )
        update = CommandDescriptor(
            parameters=[
                ParameterDescriptor(name="a", description="from update"),
                ParameterDescriptor(name="b"),
            ],
            examples=[ExampleDescriptor(command="aws x"), ExampleDescriptor(command="aws y")],
            errors=[ErrorDescriptor(code="E2"), ErrorDescriptor(code="E1")],
        )
        merged = merge_descriptors(base, update)
        self.assertEqual([p.name for p in merged.parameters], ["a", "b"])
        self.assertEqual(merged.parameters[0].description, "from base")
        self.assertEqual([e.command for e in merged.examples], ["aws x", "aws y"])
        self.assertEqual([e.code for e in merged.errors], ["E1", "E2"])


class TestStreaming(unittest.TestCase):
    """Test chunked parsing."""

    def test_iter_chunks(self) -> None:
        """Test line chunking."""
        self.assertEqual(list(iter_chunks("a\nb\nc", 2)), ["a\nb", "c"])

    def test_single_chunk_matches_adaptive(self) -> None:
        """Test a text smaller than one chunk parses as a whole."""
        streamed = parse_streaming(SCENARIO_A, chunk_size=1000)
        whole = parse_adaptive(SCENARIO_A)
        self.assertEqual(streamed.metadata["chunks"], 1)
        self.assertEqual(streamed.metadata["parsing_method"], "standard")
        self.assertEqual(
            [p.to_dict() for p in streamed.parameters], [p.to_dict() for p in whole.parameters]
        )

    def test_merge_in_input_order(self) -> None:
        """Test chunk results are merged in order with the deepest method."""
        result = parse_streaming(SCENARIO_A, chunk_size=4)
        self.assertEqual(result.metadata["chunks"], 3)
        self.assertEqual(result.metadata["chunk_size"], 4)
        self.assertEqual(
            result.metadata["chunk_methods"], ["standard", "line_by_line", "line_by_line"]
        )
        self.assertEqual(result.metadata["parsing_method"], "line_by_line")
        self.assertEqual(result.metadata["fallback_level"], 4)
        self.assertEqual([p.name for p in result.parameters], ["foo", "bar"])
        self.assertIn("quality_score", result.metadata)

    def test_never_raises(self) -> None:
        """Test empty and missing input."""
        for value in ("", None, b"\xff\xfe"):
            with self.subTest(value=value):
                result = parse_streaming(value, chunk_size=2)
                self.assertIsInstance(result, CommandDescriptor)
                self.assertIn("parsing_method", result.metadata)


if __name__ == "__main__":
    unittest.main()
