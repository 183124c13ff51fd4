"""Command-line entry point for ormgen."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from . import __version__
from .codegen.cli_integration import add_generate_args, handle_generate_command
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the `ormgen` command."""
    parser = argparse.ArgumentParser(
        prog="ormgen",
        description="Generate ORM schemas (drizzle, prisma, kysely) from table presets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ormgen --backend drizzle --preset blog
  ormgen -b prisma -d sqlite --tables comments -o .
  ormgen -b kysely --preset custom --tables users,orders
  ormgen --definitions tables.json --tables invoices
  ormgen --list-presets
        """.strip(),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Logging level (default: $ORMGEN_LOG_LEVEL or WARNING)",
    )
    parser.add_argument("--log-file", metavar="FILE", help="Also write logs to this file")

    add_generate_args(parser)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv: Arguments without the program name; defaults to sys.argv.

    Returns:
        Process exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level, args.log_file)
    except ValueError as e:
        parser.error(str(e))

    logger.debug("Arguments: %s", vars(args))
    return handle_generate_command(args)


if __name__ == "__main__":
    sys.exit(main())
