"""Import orchestration.

This module composes record sources, validation, destination re-keying,
and bounded-concurrency writes into the supported import flows. Validation
failures are fatal to the whole run; fetch and write failures are isolated
to the resource they concern.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from typing import AsyncIterator, Callable, Iterable

import httpx

from core.config import FerryConfig
from core.constants import LISTS_COLLECTION, PAGES_COLLECTION, USERS_COLLECTION
from core.errors import FerryFetchError
from core.logging_config import get_logger
from core.types import DispatchChunk, ImportOptions, ImportSummary
from ingest.chunks import chunk_uri, from_chunk, validate_chunk
from ingest.crawler import crawl_references, resolve_link
from ingest.import_progress import ImportProgressReporter
from ingest.input_reader import iter_line_records, read_bootstrap_documents
from store.rest_client import ContentApiClient
from store.writer import ConcurrentWriter
from transforms.formatting import to_dispatch

_LOGGER = get_logger(__name__)

ChunkSource = Callable[[ContentApiClient], AsyncIterator[DispatchChunk]]


class ImportPipelineRunner:
    """Run one import into a destination site."""

    def __init__(
        self,
        options: ImportOptions,
        config: FerryConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        reporter: ImportProgressReporter | None = None,
    ) -> None:
        self._options = options
        self._config = config
        self._transport = transport
        self._reporter = reporter or ImportProgressReporter(verbose=options.verbose)

    def import_stream(self, lines: Iterable[str]) -> ImportSummary:
        """Import line-delimited dispatch records, preserving input order.

        Raises:
            FerryValidationError: On the first unparseable or malformed record.
        """
        _log_import_started("stream", self._options)

        async def _source(_: ContentApiClient) -> AsyncIterator[DispatchChunk]:
            for record in iter_line_records(lines):
                yield validate_chunk(record)

        return self._execute(_source, ordered=True)

    def import_url(self, url: str) -> ImportSummary:
        """Crawl a page or component and import everything it references.

        Raises:
            FerryValidationError: On the first malformed fetched resource.
        """
        _log_import_started(url, self._options)
        return self._execute(lambda client: self._crawled_chunks(client, [url]))

    def import_site(self, site: str) -> ImportSummary:
        """Import a window of a site's pages, plus its users and lists on request.

        Raises:
            FerryFetchError: If a site listing cannot be fetched.
            FerryValidationError: On the first malformed fetched resource.
        """
        _log_import_started(site, self._options)

        async def _source(client: ContentApiClient) -> AsyncIterator[DispatchChunk]:
            root_urls = await self._list_site_roots(client, site)
            async for chunk in self._crawled_chunks(client, root_urls):
                yield chunk

        return self._execute(_source)

    def import_file(self, source_path: str) -> ImportSummary:
        """Import bootstrap documents from a YAML/JSON file or directory.

        Raises:
            FerryIngestError: If the files cannot be read.
            FerryValidationError: On the first malformed converted record.
        """
        _log_import_started(source_path, self._options)
        documents = read_bootstrap_documents(source_path)

        async def _source(_: ContentApiClient) -> AsyncIterator[DispatchChunk]:
            for document in documents:
                for chunk in to_dispatch(document):
                    yield validate_chunk(chunk)

        return self._execute(_source)

    def _execute(self, source: ChunkSource, ordered: bool = False) -> ImportSummary:
        return asyncio.run(self._execute_async(source, ordered))

    async def _execute_async(self, source: ChunkSource, ordered: bool) -> ImportSummary:
        async with ContentApiClient(
            timeout=self._config.http_timeout, transport=self._transport
        ) as client:
            async with aclosing(source(client)) as chunks:
                return await self._import(client, chunks, ordered)

    async def _import(
        self,
        client: ContentApiClient,
        chunks: AsyncIterator[DispatchChunk],
        ordered: bool,
    ) -> ImportSummary:
        destination_chunks = self._destination_chunks(chunks)
        if self._options.dry_run:
            async for chunk in destination_chunks:
                self._reporter.record_success(chunk_uri(chunk))
            return self._reporter.complete()
        writer = ConcurrentWriter(
            client,
            self._options.key,
            self._options.concurrency,
            overwrite=not self._options.skip_existing,
        )
        async with aclosing(writer.write_stream(destination_chunks, ordered=ordered)) as results:
            async for result in results:
                if result.error is not None:
                    self._reporter.record_failure(result.uri)
                elif result.skipped:
                    self._reporter.record_skipped(result.uri)
                else:
                    self._reporter.record_success(result.uri)
        return self._reporter.complete()

    async def _destination_chunks(
        self,
        chunks: AsyncIterator[DispatchChunk],
    ) -> AsyncIterator[DispatchChunk]:
        async for chunk in chunks:
            yield from_chunk(self._options.destination, chunk)

    async def _crawled_chunks(
        self,
        client: ContentApiClient,
        root_urls: list[str],
    ) -> AsyncIterator[DispatchChunk]:
        """Validate crawled resources, dropping the ones that failed to fetch."""
        crawl = crawl_references(root_urls, client, self._options.concurrency)
        async with aclosing(crawl) as results:
            async for result in results:
                if result.chunk is None:
                    continue
                yield validate_chunk(result.chunk)

    async def _list_site_roots(self, client: ContentApiClient, site: str) -> list[str]:
        page_urls = await _list_collection(client, site, PAGES_COLLECTION)
        start = self._options.offset
        stop = None if self._options.limit is None else start + self._options.limit
        root_urls = page_urls[start:stop]
        if self._options.include_users:
            root_urls.extend(await _list_collection(client, site, USERS_COLLECTION))
        if self._options.include_lists:
            root_urls.extend(await _list_collection(client, site, LISTS_COLLECTION))
        return root_urls


async def _list_collection(client: ContentApiClient, site: str, collection: str) -> list[str]:
    """Fetch the URIs a site lists for one root collection.

    Raises:
        FerryFetchError: If the listing fails or is not a list of URIs.
    """
    listing_url = f"{site}/{collection}"
    payload = await client.get_json(listing_url)
    if not isinstance(payload, list):
        raise FerryFetchError(
            f"Failed to list {listing_url}: expected a list of uris, "
            f"got {type(payload).__name__}.",
            listing_url,
        )
    return [resolve_link(item, listing_url + "/") for item in payload if isinstance(item, str)]


def _log_import_started(source: str, options: ImportOptions) -> None:
    _LOGGER.info(
        "import_started",
        source=source,
        destination=options.destination,
        concurrency=options.concurrency,
        dry_run=options.dry_run,
        skip_existing=options.skip_existing,
    )
