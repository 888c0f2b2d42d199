"""CLI entry point for bestbefore.

Usage:
    bestbefore check [PATH ...]          # Scan sources and manifest, fail on expired code
    bestbefore check --strict            # Also fail on warnings
    bestbefore check --date 04.2024      # Evaluate as if it were April 2024
    bestbefore evaluate 03.2024 --expires 12.2025 --target legacy_api
    bestbefore --version                 # Show version

Exit codes:
    0: Pass (or warnings outside strict mode)
    1: Expired code found
    2: Invalid policy, date or configuration
"""

import argparse
import logging
import sys
from pathlib import Path

from bestbefore import __version__
from bestbefore.checker import EXIT_ERROR, EXIT_EXPIRED, EXIT_OK, print_report, run_check
from bestbefore.clock import EnvironmentDateProvider, FixedDateProvider
from bestbefore.config import find_config, load_config
from bestbefore.engine import check
from bestbefore.errors import ConfigurationError, PolicyError
from bestbefore.policy import arguments_from_mapping, build_policy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bestbefore",
        description="bestbefore - Expiration dates for code",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="Scan sources and the manifest, report stale and expired code",
    )
    check_parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Files or directories to scan (default: .)",
    )
    check_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .bestbefore.yaml (default: search upwards from the first path)",
    )
    check_parser.add_argument(
        "--date",
        default=None,
        help="Evaluate as of this month (MM.YYYY); overrides the environment",
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Strict mode: treat warnings as failures",
    )
    check_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Evaluate command
    evaluate_parser = subparsers.add_parser(
        "evaluate",
        help="Evaluate a single policy and print the verdict",
    )
    evaluate_parser.add_argument(
        "warning_date",
        nargs="?",
        default=None,
        help="Warning date (MM.YYYY)",
    )
    evaluate_parser.add_argument("--expires", default=None, help="Expiry date (MM.YYYY)")
    evaluate_parser.add_argument("--message", default=None, help="Custom message")
    evaluate_parser.add_argument(
        "--target",
        default="code block",
        help="Name used in default messages (default: 'code block')",
    )
    evaluate_parser.add_argument(
        "--date",
        default=None,
        help="Evaluate as of this month (MM.YYYY); overrides the environment",
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "check":
        return run_check_command(args)
    if args.command == "evaluate":
        return run_evaluate_command(args)

    parser.print_help()
    return EXIT_ERROR


def run_check_command(args) -> int:
    """Run the check pass over the given paths."""
    try:
        config_path = args.config or find_config(args.paths[0])
        config = load_config(config_path)
        if args.date:
            provider = FixedDateProvider.parse(args.date)
        else:
            provider = EnvironmentDateProvider(config.check.env_var)
    except (ConfigurationError, PolicyError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    report = run_check(args.paths, config, provider=provider)
    print_report(report, verbose=args.verbose)
    return report.exit_code(strict=args.strict or config.check.strict)


def run_evaluate_command(args) -> int:
    """Evaluate one policy from command-line arguments."""
    named = []
    if args.expires is not None:
        named.append(("expires", args.expires))
    if args.message is not None:
        named.append(("message", args.message))

    try:
        policy = build_policy(arguments_from_mapping(args.warning_date, named))
        provider = FixedDateProvider.parse(args.date) if args.date else EnvironmentDateProvider()
    except PolicyError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    verdict = check(policy, args.target, provider)
    if verdict.is_pass:
        print(f"pass: {args.target}")
        return EXIT_OK
    print(f"{verdict.kind.value}: {verdict.message}")
    return EXIT_EXPIRED if verdict.is_fail else EXIT_OK


def main_entry():
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
