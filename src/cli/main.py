"""Ferry CLI entry points.
This module exposes the import and export commands.
It maps argparse commands onto pipeline runners.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence, TextIO

from cli.export_command import add_export_command, run_export_command
from cli.import_command import add_import_command, run_import_command
from core.config import FerryConfig
from core.errors import FerryConfigError
from core.logging_config import configure_logging, get_logger

_LOGGER = get_logger(__name__)

_COMMAND_ALIASES = {"i": "import", "e": "export"}


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="ferry", description="Move content between sites")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_import_command(subparsers)
    add_export_command(subparsers)
    return parser


def main(
    argv: Sequence[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Run the Ferry CLI.

    Args:
        argv: Optional argument vector.
        stdin: Optional record stream, defaults to ``sys.stdin``.
        stdout: Optional export output, defaults to ``sys.stdout``.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)
    try:
        config = FerryConfig.from_env()
    except FerryConfigError as error:
        _LOGGER.error("config_invalid", error=str(error))
        return 1
    command = _COMMAND_ALIASES.get(args.command, args.command)
    if command == "import":
        return run_import_command(config, args, stdin or sys.stdin)
    if command == "export":
        return run_export_command(config, args, stdin or sys.stdin, stdout or sys.stdout)
    parser.error(f"Unsupported command: {args.command}")
    return 2
