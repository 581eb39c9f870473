"""HTTP client for the remote content API.

This module wraps ``httpx.AsyncClient`` with the three calls the import
pipeline needs: fetch a resource, check whether one exists, and upsert
one. Transport failures are mapped onto Ferry fetch and write errors.
"""

from __future__ import annotations

import json
from types import TracebackType
from typing import Any

import httpx

from core.constants import AUTHORIZATION_SCHEME, DEFAULT_HTTP_TIMEOUT_SECONDS, JSON_CONTENT_TYPE
from core.errors import FerryFetchError, FerryWriteError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class ContentApiClient:
    """Async JSON client for content API resources."""

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the pooled httpx client.

        Args:
            timeout: Per-request timeout in seconds.
            transport: Optional transport override, e.g. ``httpx.MockTransport``.
        """
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": JSON_CONTENT_TYPE},
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ContentApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close pooled connections."""
        await self._client.aclose()

    async def get_json(self, url: str) -> Any:
        """Fetch one resource body.

        Args:
            url: Fully-qualified resource URL.

        Returns:
            Decoded JSON body.

        Raises:
            FerryFetchError: On network failure, non-2xx status, or non-JSON body.
        """
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as error:
            raise FerryFetchError(
                f"Failed to fetch {url}: HTTP {error.response.status_code}.", url
            ) from error
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            raise FerryFetchError(f"Failed to fetch {url}: {error}.", url) from error
        except json.JSONDecodeError as error:
            raise FerryFetchError(f"Failed to fetch {url}: body is not JSON.", url) from error

    async def exists(self, url: str) -> bool:
        """Return whether a resource is already present.

        Raises:
            FerryWriteError: On network failure or unexpected status.
        """
        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            raise FerryWriteError(f"Failed to check {url}: {error}.", url) from error
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        if response.is_success:
            return True
        raise FerryWriteError(f"Failed to check {url}: HTTP {response.status_code}.", url)

    async def put_json(self, url: str, body: Any, key: str | None) -> None:
        """Upsert one resource with a full replace.

        Args:
            url: Fully-qualified destination URL.
            body: JSON-compatible resource body.
            key: API credential sent in the authorization header.

        Raises:
            FerryWriteError: On network failure or non-2xx status.
        """
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        if key:
            headers["Authorization"] = f"{AUTHORIZATION_SCHEME} {key}"
        try:
            response = await self._client.put(url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            raise FerryWriteError(
                f"Failed to write {url}: HTTP {error.response.status_code}.", url
            ) from error
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            raise FerryWriteError(f"Failed to write {url}: {error}.", url) from error
        _LOGGER.debug("resource_written", uri=url, status=response.status_code)
