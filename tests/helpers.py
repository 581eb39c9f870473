"""Shared test helpers: fixture paths and an in-memory content API."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import httpx


def fixture_path(relative_path: str) -> Path:
    """Resolve a path under tests/fixtures."""
    return Path(__file__).resolve().parent / "fixtures" / relative_path


class FakeContentApi:
    """Serve GETs from a URL-keyed mapping and record PUTs."""

    def __init__(
        self,
        resources: dict[str, Any] | None = None,
        failing_gets: Iterable[str] = (),
        failing_puts: Iterable[str] = (),
    ) -> None:
        self.resources = dict(resources or {})
        self.failing_gets = set(failing_gets)
        self.failing_puts = set(failing_puts)
        self.gets: list[str] = []
        self.puts: list[tuple[str, Any, str | None]] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def put_urls(self) -> list[str]:
        return [url for url, _, _ in self.puts]

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.method == "PUT":
            body = json.loads(request.content)
            self.puts.append((url, body, request.headers.get("Authorization")))
            if url in self.failing_puts:
                return httpx.Response(500, json={"message": "write rejected"})
            self.resources[url] = body
            return httpx.Response(200, json=body)
        self.gets.append(url)
        if url in self.failing_gets:
            return httpx.Response(503, json={"message": "unavailable"})
        if url not in self.resources:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json=self.resources[url])
