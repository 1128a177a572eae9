"""Command-line entry point for liquid-frames automation commands."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .agent import EXIT_SUCCESS, EXIT_USAGE, CheckPolicy, run_benchmark, run_check, run_merge
from .benchmark import parse_grade
from .config import VERBOSITY_ENV, get_verbosity, parse_preset
from .errors import LiquidFramesError, UsageError
from .quality import QualityLevel

HELP_TEXT = """\
liquid-frames automation commands

Commands:
  check [--workspace PATH] [--min-runs N] [--require-grade A|B|C|D] [--require-quality healthy|caution|unstable] [--allow-attention] [--export-markdown PATH] [--pretty]
  benchmark [--preset balanced|responsive|cinematic] [--pretty]
  merge CURRENT INCOMING [--output PATH] [--pretty]
  help

Exit codes:
  0   success / policy passed
  2   policy failed
  64  usage error
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that raises ``UsageError`` instead of exiting with status 2."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = -1
    if number < 0:
        raise argparse.ArgumentTypeError("--min-runs must be a non-negative integer")
    return number


def _grade(value: str):
    try:
        return parse_grade(value)
    except ValueError:
        raise argparse.ArgumentTypeError("--require-grade must be one of: A, B, C, D") from None


def _quality(value: str) -> QualityLevel:
    try:
        return QualityLevel(value.strip().lower())
    except ValueError:
        raise argparse.ArgumentTypeError(
            "--require-quality must be one of: healthy, caution, unstable"
        ) from None


def _preset(value: str):
    try:
        return parse_preset(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            "--preset must be one of: balanced, responsive, cinematic"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="liquid-frames",
        description="Release checks and benchmarks for liquid-frames motion workspaces.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check --workspace motion-workspace.json --pretty
  %(prog)s check --min-runs 2 --allow-attention
  %(prog)s benchmark --preset responsive
  %(prog)s merge mine.json theirs.json --output merged.json
        """,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log detailed progress information to stderr.",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Log errors only.",
    )
    commands = parser.add_subparsers(dest="command", parser_class=_ArgumentParser)

    check = commands.add_parser("check", help="Evaluate the release gate against policy thresholds.")
    check.add_argument("--workspace", type=Path, help="Workspace snapshot (default: $LIQUID_FRAMES_WORKSPACE).")
    check.add_argument("--min-runs", type=_non_negative_int, default=5, help="Minimum recorded runs (default: 5).")
    check.add_argument("--require-grade", type=_grade, default=parse_grade("B"), help="Lowest passing grade (default: B).")
    check.add_argument(
        "--require-quality",
        type=_quality,
        default=QualityLevel.HEALTHY,
        help="Worst passing quality level (default: healthy).",
    )
    check.add_argument("--allow-attention", action="store_true", help="Accept an ATTENTION gate status.")
    check.add_argument("--export-markdown", type=Path, help="Also write the gate report as markdown.")
    check.add_argument("--pretty", action="store_true", help="Indent the JSON output.")

    benchmark = commands.add_parser("benchmark", help="Run the benchmark suite against a preset.")
    benchmark.add_argument("--preset", type=_preset, default=parse_preset("balanced"), help="Preset to benchmark (default: balanced).")
    benchmark.add_argument("--pretty", action="store_true", help="Indent the JSON output.")

    merge = commands.add_parser("merge", help="Merge two workspace snapshots.")
    merge.add_argument("current", type=Path, help="Local snapshot.")
    merge.add_argument("incoming", type=Path, help="Snapshot to merge in.")
    merge.add_argument("--output", type=Path, help="Destination (default: CURRENT).")
    merge.add_argument("--pretty", action="store_true", help="Indent the JSON output.")

    commands.add_parser("help", help="Show the command summary.")
    return parser


def configure_logging(quiet: bool, verbose: bool) -> None:
    if quiet:
        os.environ[VERBOSITY_ENV] = "0"
    elif verbose:
        os.environ[VERBOSITY_ENV] = "2"
    level = {0: logging.ERROR, 1: logging.WARNING}.get(get_verbosity(), logging.DEBUG)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f"liquid-frames error: {e}\n\n{HELP_TEXT}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(args.quiet, args.verbose)

    if args.command in (None, "help"):
        print(HELP_TEXT)
        return EXIT_SUCCESS

    try:
        if args.command == "check":
            policy = CheckPolicy(
                min_runs=args.min_runs,
                require_grade=args.require_grade,
                require_quality=args.require_quality,
                allow_attention=args.allow_attention,
            )
            result = run_check(args.workspace, policy, export_markdown=args.export_markdown)
        elif args.command == "benchmark":
            result = run_benchmark(args.preset)
        else:
            result = run_merge(args.current, args.incoming, args.output)
    except (LiquidFramesError, OSError) as e:
        print(f"liquid-frames error: {e}", file=sys.stderr)
        return EXIT_USAGE

    print(result.to_json(pretty=args.pretty))
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
