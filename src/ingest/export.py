"""Export flows.

This module crawls resources, or reads records or bootstrap files, and
writes them out either as line-delimited dispatch records or folded into
a single bootstrap YAML document.
"""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import aclosing
from typing import Iterable, Iterator, TextIO

import httpx
import yaml

from core.config import FerryConfig
from core.logging_config import get_logger
from core.types import DispatchChunk, ExportOptions
from ingest.chunks import validate_chunk
from ingest.crawler import crawl_references
from ingest.input_reader import iter_line_records, read_bootstrap_documents
from store.rest_client import ContentApiClient
from transforms.formatting import to_bootstrap, to_dispatch

_LOGGER = get_logger(__name__)


class ExportRunner:
    """Write site-agnostic records or a bootstrap document to an output stream."""

    def __init__(
        self,
        options: ExportOptions,
        config: FerryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        output: TextIO | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._transport = transport
        self._output = output or sys.stdout

    def export_url(self, url: str) -> int:
        """Export a page or component and everything it references.

        Returns:
            Number of exported records.

        Raises:
            FerryValidationError: On the first malformed fetched resource.
        """
        chunks = asyncio.run(self._crawl([url]))
        return self._emit(chunks)

    def export_stream(self, lines: Iterable[str]) -> int:
        """Re-emit line-delimited records, validating each one.

        Raises:
            FerryValidationError: On the first unparseable or malformed record.
        """
        return self._emit(validate_chunk(record) for record in iter_line_records(lines))

    def export_file(self, source_path: str) -> int:
        """Convert bootstrap files into records.

        Raises:
            FerryIngestError: If the files cannot be read.
        """
        documents = read_bootstrap_documents(source_path)
        return self._emit(_dispatch_documents(documents))

    async def _crawl(self, root_urls: list[str]) -> list[DispatchChunk]:
        chunks: list[DispatchChunk] = []
        async with ContentApiClient(
            timeout=self._config.http_timeout, transport=self._transport
        ) as client:
            crawl = crawl_references(root_urls, client, self._options.concurrency)
            async with aclosing(crawl) as results:
                async for result in results:
                    if result.chunk is not None:
                        chunks.append(validate_chunk(result.chunk))
        return chunks

    def _emit(self, chunks: Iterable[DispatchChunk]) -> int:
        if self._options.as_bootstrap:
            records = list(chunks)
            yaml.safe_dump(
                to_bootstrap(records),
                self._output,
                sort_keys=False,
                allow_unicode=True,
            )
            count = len(records)
        else:
            count = 0
            for chunk in chunks:
                self._output.write(json.dumps(chunk, ensure_ascii=False) + "\n")
                count += 1
        _LOGGER.info("export_completed", records=count, bootstrap=self._options.as_bootstrap)
        return count


def _dispatch_documents(documents: list[dict]) -> Iterator[DispatchChunk]:
    for document in documents:
        yield from to_dispatch(document)
