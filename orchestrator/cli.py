"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the airdrop reconciliation tooling.

- Provides argparse-based CLI with one subcommand per step
- Loads configuration from .env, environment and flags (in that order)
- Configures logging
- Maps run outcomes to exit codes

============================================================
USAGE
============================================================
python -m orchestrator.cli reconcile
python -m orchestrator.cli reconcile --settlement-snapshot claims.json --no-batch
python -m orchestrator.cli generate-batch --output-dir out/
python -m orchestrator.cli verify-batch --output-dir out/

============================================================
EXIT CODES
============================================================
0  success
1  fatal run failure or failed batch verification
2  invalid arguments or configuration

============================================================
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from command_batch.exceptions import CommandBatchError
from reconciliation.exceptions import ReconciliationError

from .exceptions import ConfigurationError
from .models import AirdropConfig, OutputPaths
from .pipeline import AirdropPipeline, generate_batch_from_csv, verify_batch_files


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="airdrop-recon",
        description="Reconcile settlement and appchain rewards into airdrop amounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  reconcile       - Fetch both ledgers, write CSVs and the invoke batch
  generate-batch  - Build the invoke batch from an existing airdrop CSV
  verify-batch    - Parse the invoke batch back and compare with the airdrop CSV

Examples:
  %(prog)s reconcile
  %(prog)s reconcile --appchain-endpoint http://localhost:8080/graphql --strict
  %(prog)s verify-batch --output-dir out/
        """
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    reconcile_parser = subparsers.add_parser("reconcile", help="Run a full reconciliation")
    generate_parser = subparsers.add_parser("generate-batch", help="Build the invoke batch from airdrop.csv")
    verify_parser = subparsers.add_parser("verify-batch", help="Verify invoke.txt against airdrop.csv")

    for sub in (reconcile_parser, generate_parser, verify_parser):
        _add_common_options(sub)

    # --------------------------------------------------------
    # Source Options
    # --------------------------------------------------------
    source_group = reconcile_parser.add_argument_group("Source Options")

    source_group.add_argument(
        "--settlement-endpoint",
        type=str,
        metavar="URL",
        help="Settlement-layer GraphQL endpoint",
    )

    source_group.add_argument(
        "--appchain-endpoint",
        type=str,
        metavar="URL",
        help="Appchain GraphQL endpoint",
    )

    source_group.add_argument(
        "--settlement-snapshot",
        type=str,
        metavar="PATH",
        help="Read settlement data from a JSON snapshot instead of the endpoint",
    )

    source_group.add_argument(
        "--appchain-snapshot",
        type=str,
        metavar="PATH",
        help="Read appchain data from a JSON snapshot instead of the endpoint",
    )

    source_group.add_argument(
        "--query-limit",
        type=int,
        metavar="N",
        help="Row limit for each GraphQL query (default: 200)",
    )

    source_group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Request timeout per source (default: 30)",
    )

    # --------------------------------------------------------
    # Run Options
    # --------------------------------------------------------
    run_group = reconcile_parser.add_argument_group("Run Options")

    run_group.add_argument(
        "--strict",
        action="store_true",
        help="Fail the run when no records combine",
    )

    run_group.add_argument(
        "--no-batch",
        action="store_true",
        help="Write the CSV exports only",
    )

    return parser


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output-dir",
        type=str,
        metavar="PATH",
        help="Directory for CSV and batch files (default: current directory)",
    )

    parser.add_argument(
        "--target-address",
        type=str,
        metavar="ADDRESS",
        help="Contract address targeted by every batched call",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> AirdropConfig:
    """
    Build configuration from environment, then apply CLI overrides.

    Args:
        args: Parsed arguments

    Returns:
        AirdropConfig instance
    """
    config = AirdropConfig.from_env()

    if args.output_dir:
        config.output_paths = OutputPaths.in_directory(Path(args.output_dir))
    if args.target_address:
        config.batch_target_address = args.target_address
    if args.log_level:
        config.log_level = args.log_level

    if args.command == "reconcile":
        if args.settlement_endpoint:
            config.settlement_endpoint = args.settlement_endpoint
        if args.appchain_endpoint:
            config.appchain_endpoint = args.appchain_endpoint
        if args.query_limit is not None:
            config.query_limit = args.query_limit
        if args.timeout is not None:
            config.request_timeout_seconds = args.timeout
        if args.strict:
            config.allow_empty_export = False
        if args.no_batch:
            config.generate_batch = False

    return config


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-5s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ============================================================
# COMMANDS
# ============================================================

async def run_reconcile(args: argparse.Namespace, config: AirdropConfig) -> int:
    """
    Run a full reconciliation.

    Returns:
        Exit code
    """
    pipeline = AirdropPipeline(config)

    try:
        result = await pipeline.run(
            settlement_snapshot=args.settlement_snapshot,
            appchain_snapshot=args.appchain_snapshot,
        )
    except ReconciliationError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    print("Summary:")
    for line in result.summary.lines():
        print(line)

    if result.batch_error is not None:
        print(f"Command batch not generated: {result.batch_error}", file=sys.stderr)
        return EXIT_FAILURE

    if result.verification is not None and not result.verification.is_clean:
        print("Command batch does NOT round-trip to the airdrop export", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_OK


def run_generate_batch(config: AirdropConfig) -> int:
    try:
        export = generate_batch_from_csv(config)
    except (OSError, ValueError, CommandBatchError) as e:
        logger.error(f"Error generating invoke command: {e}")
        return EXIT_FAILURE

    print(f"Generated invoke command with {export.record_count} calls and saved to {export.path}")
    return EXIT_OK


def run_verify_batch(config: AirdropConfig) -> int:
    try:
        report = verify_batch_files(config)
    except (OSError, ValueError, CommandBatchError) as e:
        logger.error(f"Error processing invoke file: {e}")
        return EXIT_FAILURE

    print(f"Generated {config.output_paths.inverse_csv} with {report.parsed_count} records")
    if not report.is_clean:
        print(f"Verification FAILED: {report.to_dict()}", file=sys.stderr)
        return EXIT_FAILURE

    print(f"Verification passed: {report.matched} entries match {config.output_paths.airdrop_csv}")
    return EXIT_OK


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config.log_level)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_USAGE

    if args.command == "reconcile":
        return asyncio.run(run_reconcile(args, config))
    if args.command == "generate-batch":
        return run_generate_batch(config)
    return run_verify_batch(config)


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
