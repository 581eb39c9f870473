"""Import progress and summary reporting.

This module prints one progress marker per processed resource, or logs
each resource URI in verbose mode, and accounts for every attempted
resource exactly once in the final summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.console import Console

from core.logging_config import get_logger
from core.types import ImportSummary

_LOGGER = get_logger(__name__)


def pluralize(word: str, count: int) -> str:
    """Render a count with a naively pluralized noun, e.g. ``3 uris``."""
    suffix = "" if count == 1 else "s"
    return f"{count} {word}{suffix}"


@dataclass
class ImportProgressReporter:
    """Track per-resource outcomes and render progress for one import run."""

    verbose: bool = False
    console: Console = field(default_factory=lambda: Console(highlight=False))
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def record_success(self, uri: str) -> None:
        """Mark one resource as processed."""
        self.succeeded.append(uri)
        if self.verbose:
            _LOGGER.debug("resource_imported", uri=uri)
        else:
            self.console.print(".", end="")

    def record_failure(self, uri: str) -> None:
        """Mark one resource as failed with a distinct red marker."""
        self.failed.append(uri)
        self.console.print("[red].[/red]", end="")

    def record_skipped(self, uri: str) -> None:
        """Mark one resource as left untouched."""
        self.skipped.append(uri)
        if self.verbose:
            _LOGGER.debug("resource_skipped", uri=uri)
        else:
            self.console.print("[yellow].[/yellow]", end="")

    def summary(self) -> ImportSummary:
        return ImportSummary(
            succeeded=tuple(self.succeeded),
            failed=tuple(self.failed),
            skipped=tuple(self.skipped),
        )

    def complete(self) -> ImportSummary:
        """Print the pluralized summary below the progress markers."""
        summary = self.summary()
        self.console.print()
        self.console.print(f"Imported {pluralize('uri', summary.count)}!")
        _LOGGER.info(
            "import_completed",
            succeeded=summary.count,
            failed=len(summary.failed),
            skipped=len(summary.skipped),
        )
        _LOGGER.debug("import_details", uris=list(summary.succeeded))
        return summary
