"""Shared typed models.

This module defines immutable data models used by ingest, store,
SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.constants import DEFAULT_CONCURRENCY
from core.errors import FerryFetchError, FerryWriteError

DispatchChunk = dict[str, Any]
BootstrapDocument = dict[str, Any]


@dataclass(frozen=True)
class ImportOptions:
    """Import command options.

    Attributes:
        destination: Normalized base URL of the site to import into.
        key: API credential used for writes.
        concurrency: Maximum in-flight fetches and, separately, writes.
        limit: Maximum number of pages to import from a site, all when None.
        offset: Number of site pages to skip before importing.
        include_users: Also import the source site's users.
        include_lists: Also import the source site's lists.
        dry_run: Validate and report without writing anything.
        skip_existing: Leave resources already present at the destination untouched
            instead of replacing them.
        verbose: Log each resource uri instead of printing progress dots.
    """

    destination: str
    key: str | None = None
    concurrency: int = DEFAULT_CONCURRENCY
    limit: int | None = None
    offset: int = 0
    include_users: bool = False
    include_lists: bool = False
    dry_run: bool = False
    skip_existing: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class ExportOptions:
    """Export command options.

    Attributes:
        concurrency: Maximum in-flight fetches.
        as_bootstrap: Fold records into one bootstrap document instead of dispatch lines.
    """

    concurrency: int = DEFAULT_CONCURRENCY
    as_bootstrap: bool = False


@dataclass(frozen=True)
class FetchResult:
    """One slot of a reference crawl.

    Attributes:
        url: Fetched URL.
        chunk: Site-agnostic dispatch record when the fetch succeeded.
        error: Fetch failure when it did not.
    """

    url: str
    chunk: DispatchChunk | None = None
    error: FerryFetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class WriteResult:
    """Outcome of writing one dispatch record.

    Attributes:
        uri: Destination resource URI.
        error: Write failure, None on success.
        skipped: True when the resource already existed and was left alone.
    """

    uri: str
    error: FerryWriteError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


@dataclass(frozen=True)
class ImportSummary:
    """Final accounting of an import run.

    Every attempted resource appears in exactly one of the three tuples.
    """

    succeeded: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def count(self) -> int:
        """Number of successfully processed resources."""
        return len(self.succeeded)
