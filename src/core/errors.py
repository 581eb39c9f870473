"""Ferry exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Configuration and validation errors are fatal to a run, while fetch
and write errors are isolated to the single resource that failed.
"""

from __future__ import annotations


class FerryError(Exception):
    """Base exception for all Ferry failures."""


class FerryConfigError(FerryError):
    """Raised for missing or invalid site, key, or runtime configuration."""


class FerryIngestError(FerryError):
    """Raised when input files cannot be read or parsed."""


class FerryValidationError(FerryError):
    """Raised when a dispatch record is structurally malformed."""

    def __init__(self, message: str, chunk: object = None) -> None:
        super().__init__(message)
        self.chunk = chunk

    @property
    def chunk_key(self) -> str | None:
        """Return the offending record's key when it has exactly one."""
        if isinstance(self.chunk, dict) and len(self.chunk) == 1:
            return str(next(iter(self.chunk)))
        return None


class FerryFetchError(FerryError):
    """Raised when a resource cannot be fetched from the content API."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class FerryWriteError(FerryError):
    """Raised when the content API rejects a write or the network fails."""

    def __init__(self, message: str, uri: str) -> None:
        super().__init__(message)
        self.uri = uri
