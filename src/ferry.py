"""Public SDK surface for Ferry.

This module provides a stable import path for library users.
It re-exports the conversion functions, runners, and typed option models.
"""

from __future__ import annotations

from core.config import FerryConfig
from core.errors import (
    FerryConfigError,
    FerryError,
    FerryFetchError,
    FerryIngestError,
    FerryValidationError,
    FerryWriteError,
)
from core.types import ExportOptions, FetchResult, ImportOptions, ImportSummary, WriteResult
from ingest.chunks import from_chunk, to_chunk, validate_chunk
from ingest.crawler import crawl_references
from ingest.export import ExportRunner
from ingest.pipeline import ImportPipelineRunner
from store.rest_client import ContentApiClient
from store.writer import ConcurrentWriter
from transforms.formatting import merge_bootstrap, to_bootstrap, to_dispatch

__all__ = [
    "ConcurrentWriter",
    "ContentApiClient",
    "ExportOptions",
    "ExportRunner",
    "FerryConfig",
    "FerryConfigError",
    "FerryError",
    "FerryFetchError",
    "FerryIngestError",
    "FerryValidationError",
    "FerryWriteError",
    "FetchResult",
    "ImportOptions",
    "ImportPipelineRunner",
    "ImportSummary",
    "WriteResult",
    "crawl_references",
    "from_chunk",
    "merge_bootstrap",
    "to_bootstrap",
    "to_chunk",
    "to_dispatch",
    "validate_chunk",
]
