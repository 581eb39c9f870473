"""Reference graph crawler.

This module fetches a root resource and everything it transitively
references, with a caller-supplied bound on in-flight fetches. Links are
discovered as bodies arrive, so the crawl frontier is never precomputed.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import AsyncIterator, Iterable

from core.errors import FerryFetchError
from core.logging_config import get_logger
from core.resource_uri import normalize_url, parse_resource_uri, url_scheme
from core.types import FetchResult
from ingest.chunks import to_chunk
from store.rest_client import ContentApiClient
from transforms.references import discover_references

_LOGGER = get_logger(__name__)


async def crawl_references(
    root_urls: Iterable[str],
    client: ContentApiClient,
    concurrency: int,
) -> AsyncIterator[FetchResult]:
    """Lazily fetch root resources and every resource they reference.

    Each URL is fetched at most once. A failed fetch is yielded as a result
    carrying its error; siblings already in flight are unaffected and the
    failed resource is not retried. Closing the generator early stops new
    fetches and lets in-flight ones drain.

    Args:
        root_urls: Resource URLs to start from, fetched first.
        client: Content API client.
        concurrency: Maximum fetches in flight.

    Yields:
        One fetch result per distinct URL, in completion order.
    """
    pending: deque[str] = deque()
    seen: set[str] = set()
    _enqueue(pending, seen, (normalize_url(url) for url in root_urls))
    in_flight: set[asyncio.Task[tuple[FetchResult, list[str]]]] = set()
    try:
        while pending or in_flight:
            while pending and len(in_flight) < max(1, concurrency):
                in_flight.add(asyncio.create_task(_fetch(client, pending.popleft())))
            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                result, links = task.result()
                _enqueue(pending, seen, links)
                yield result
    finally:
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)


def _enqueue(pending: deque[str], seen: set[str], urls: Iterable[str]) -> None:
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        pending.append(url)


async def _fetch(client: ContentApiClient, url: str) -> tuple[FetchResult, list[str]]:
    """Fetch one URL and return its result with the links found in its body."""
    try:
        body = await client.get_json(url)
    except FerryFetchError as error:
        _LOGGER.warning("fetch_failed", url=url, error=str(error))
        return FetchResult(url=url, error=error), []
    _LOGGER.debug("resource_fetched", url=url)
    links = [resolve_link(link, url) for link in discover_references(body)]
    return FetchResult(url=url, chunk=to_chunk(url, body)), links


def resolve_link(link: str, parent_url: str) -> str:
    """Resolve a discovered reference against the URL it was found in.

    Site-agnostic references inherit the parent's site prefix; scheme-less
    ones inherit its scheme.
    """
    parsed_link = parse_resource_uri(link)
    parsed_parent = parse_resource_uri(parent_url)
    if parsed_link is not None and not parsed_link.prefix and parsed_parent is not None:
        return parsed_link.with_prefix(parsed_parent.prefix)
    return normalize_url(link, url_scheme(parent_url))

