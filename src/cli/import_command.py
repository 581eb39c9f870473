"""Import command wiring for Ferry CLI."""

from __future__ import annotations

import argparse
from typing import Any, TextIO

from core.config import FerryConfig
from core.errors import FerryConfigError, FerryError, FerryValidationError
from core.logging_config import get_logger
from core.types import ImportOptions
from ingest.pipeline import ImportPipelineRunner

_LOGGER = get_logger(__name__)


def add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser(
        "import",
        aliases=["i"],
        help="Import data into a site",
        description=(
            "Import into a site from a bootstrap file, another site, a single page "
            "or component, or dispatch records piped on stdin."
        ),
    )
    parser.add_argument("destination", nargs="?", help="Site alias or url to import into")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-f", "--file", help="Bootstrap YAML/JSON file or directory")
    source.add_argument("-s", "--site", help="Site alias or url to import pages from")
    source.add_argument("-p", "--page", help="Single page url to import")
    source.add_argument("-c", "--component", help="Single component url to import")
    parser.add_argument("-k", "--key", help="API key alias or value")
    parser.add_argument("--concurrency", type=int, help="Maximum in-flight fetches and writes")
    parser.add_argument("-l", "--limit", type=int, help="Number of site pages to import")
    parser.add_argument("-o", "--offset", type=int, default=0, help="Site pages to skip")
    parser.add_argument("-u", "--users", action="store_true", help="Also import site users")
    parser.add_argument("--lists", action="store_true", help="Also import site lists")
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Validate and report without writing",
    )
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Leave resources that already exist in the destination untouched",
    )
    parser.add_argument("-V", "--verbose", action="store_true", help="Log every imported uri")


def run_import_command(config: FerryConfig, args: argparse.Namespace, stdin: TextIO) -> int:
    """Execute an import and return the process exit code."""
    try:
        options = _build_import_options(config, args)
        runner = ImportPipelineRunner(options, config)
        if args.file:
            runner.import_file(args.file)
        elif args.site:
            runner.import_site(_resolve_source_site(config, args.site))
        elif args.page or args.component:
            runner.import_url(config.normalize_reference(args.page or args.component))
        elif not stdin.isatty():
            runner.import_stream(stdin)
        else:
            raise FerryConfigError("Please specify somewhere to import from.")
    except FerryValidationError as error:
        _LOGGER.error("import_aborted", error=str(error), record=error.chunk_key)
        return 1
    except FerryError as error:
        _LOGGER.error("import_failed", error=str(error))
        return 1
    return 0


def _build_import_options(config: FerryConfig, args: argparse.Namespace) -> ImportOptions:
    """Resolve destination and key into import options.

    Raises:
        FerryConfigError: If the destination or the API key cannot be resolved.
    """
    destination = config.resolve_site(args.destination)
    if not destination:
        raise FerryConfigError(
            f"Please specify somewhere to import to. Unable to parse '{args.destination}'."
        )
    key = config.resolve_key(args.key)
    if not key:
        raise FerryConfigError(f"Please specify an api key. Unable to parse '{args.key}'.")
    return ImportOptions(
        destination=destination,
        key=key,
        concurrency=args.concurrency or config.concurrency,
        limit=args.limit,
        offset=args.offset,
        include_users=args.users,
        include_lists=args.lists,
        dry_run=args.dry_run,
        skip_existing=args.skip_existing,
        verbose=args.verbose,
    )


def _resolve_source_site(config: FerryConfig, name: str) -> str:
    site = config.resolve_site(name)
    if not site:
        raise FerryConfigError(f"Unable to parse source site '{name}'.")
    return site
