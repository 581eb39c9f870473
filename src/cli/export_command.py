"""Export command wiring for Ferry CLI."""

from __future__ import annotations

import argparse
from typing import Any, TextIO

from core.config import FerryConfig
from core.errors import FerryConfigError, FerryError, FerryValidationError
from core.logging_config import get_logger
from core.types import ExportOptions
from ingest.export import ExportRunner

_LOGGER = get_logger(__name__)


def add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser(
        "export",
        aliases=["e"],
        help="Export resources as dispatch records or a bootstrap document",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-f", "--file", help="Bootstrap YAML/JSON file or directory")
    source.add_argument("-p", "--page", help="Single page url to export")
    source.add_argument("-c", "--component", help="Single component url to export")
    parser.add_argument("--concurrency", type=int, help="Maximum in-flight fetches")
    parser.add_argument(
        "-y",
        "--yaml",
        action="store_true",
        help="Fold records into one bootstrap YAML document",
    )
    parser.add_argument("-V", "--verbose", action="store_true", help="Log debug events")


def run_export_command(
    config: FerryConfig,
    args: argparse.Namespace,
    stdin: TextIO,
    stdout: TextIO,
) -> int:
    """Execute an export and return the process exit code."""
    options = ExportOptions(
        concurrency=args.concurrency or config.concurrency,
        as_bootstrap=args.yaml,
    )
    runner = ExportRunner(options, config, output=stdout)
    try:
        if args.file:
            runner.export_file(args.file)
        elif args.page or args.component:
            runner.export_url(config.normalize_reference(args.page or args.component))
        elif not stdin.isatty():
            runner.export_stream(stdin)
        else:
            raise FerryConfigError("Please specify something to export.")
    except FerryValidationError as error:
        _LOGGER.error("export_aborted", error=str(error), record=error.chunk_key)
        return 1
    except FerryError as error:
        _LOGGER.error("export_failed", error=str(error))
        return 1
    return 0
