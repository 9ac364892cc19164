from __future__ import annotations

import argparse
import logging
import sys

from .codegen.cli_integration import add_codegen_args, handle_codegen_command
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the ``schema-explorer`` command."""
    parser = argparse.ArgumentParser(
        prog="schema-explorer",
        description="Generate typed models and templated files from a database schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  schema-explorer --snapshot schema.json --language python --output generated
  schema-explorer -c sqlite:///app.db -l csharp -n Shop.Daos
  schema-explorer --snapshot schema.yaml --templates templates/ --json
  schema-explorer --create-config codegen.config.json
  schema-explorer --list-languages
        """.strip(),
    )
    add_codegen_args(parser)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(logging.INFO if args.verbose else logging.WARNING)
    logger.debug("Parsed arguments: %s", args)

    return handle_codegen_command(args)


if __name__ == "__main__":
    sys.exit(main())
