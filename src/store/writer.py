"""Bounded-concurrency writer for dispatch records.

This module upserts records into the content API with at most N writes
in flight. Each write failure is captured on its own result and never
aborts the rest of the stream.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterable, AsyncIterator

from core.errors import FerryWriteError
from core.logging_config import get_logger
from core.resource_uri import normalize_url
from core.types import DispatchChunk, WriteResult
from ingest.chunks import chunk_uri
from store.rest_client import ContentApiClient

_LOGGER = get_logger(__name__)


class ConcurrentWriter:
    """Write dispatch records to the content API with bounded concurrency."""

    def __init__(
        self,
        client: ContentApiClient,
        key: str | None,
        concurrency: int,
        overwrite: bool = True,
    ) -> None:
        """Create a writer.

        Args:
            client: Content API client.
            key: API credential for writes.
            concurrency: Maximum writes in flight.
            overwrite: Replace resources that already exist when true,
                skip them otherwise.
        """
        self._client = client
        self._key = key
        self._concurrency = max(1, concurrency)
        self._overwrite = overwrite

    async def write_stream(
        self,
        chunks: AsyncIterable[DispatchChunk],
        ordered: bool = False,
    ) -> AsyncIterator[WriteResult]:
        """Write every chunk and yield one result per chunk.

        A new chunk is pulled only when a write slot is free. If the input
        raises, no further chunks are pulled, in-flight writes drain, and the
        error propagates.

        Args:
            chunks: Destination-prefixed dispatch records.
            ordered: Yield results in input order instead of completion order.
                Finished writes are held back until every earlier one is done.

        Yields:
            Write results, successes and failures alike.
        """
        in_flight: dict[asyncio.Task[WriteResult], int] = {}
        finished: dict[int, WriteResult] = {}
        iterator = chunks.__aiter__()
        pulled = 0
        released = 0
        exhausted = False
        try:
            while not exhausted or in_flight:
                while not exhausted and len(in_flight) < self._concurrency:
                    try:
                        chunk = await iterator.__anext__()
                    except StopAsyncIteration:
                        exhausted = True
                        break
                    in_flight[asyncio.create_task(self.write(chunk))] = pulled
                    pulled += 1
                if not in_flight:
                    continue
                done, _ = await asyncio.wait(set(in_flight), return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    index = in_flight.pop(task)
                    if ordered:
                        finished[index] = task.result()
                    else:
                        yield task.result()
                while released in finished:
                    yield finished.pop(released)
                    released += 1
        finally:
            if in_flight:
                await asyncio.gather(*in_flight, return_exceptions=True)

    async def write(self, chunk: DispatchChunk) -> WriteResult:
        """Write a single chunk, capturing any failure on the result."""
        uri = chunk_uri(chunk)
        url = normalize_url(uri)
        try:
            if not self._overwrite and await self._client.exists(url):
                _LOGGER.debug("write_skipped_existing", uri=uri)
                return WriteResult(uri=uri, skipped=True)
            await self._client.put_json(url, chunk[uri], self._key)
        except FerryWriteError as error:
            _LOGGER.error("write_failed", uri=uri, error=str(error))
            return WriteResult(uri=uri, error=error)
        return WriteResult(uri=uri)
