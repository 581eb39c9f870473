"""Dispatch record validation and site re-keying.

A chunk is one dispatch record: a mapping with exactly one resource URI key.
Chunks are site-agnostic (``/_pages/a``) while they travel through the
pipeline and are re-keyed under a destination prefix just before writing.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from core.errors import FerryValidationError
from core.resource_uri import is_resource_uri, parse_resource_uri, strip_scheme
from core.types import DispatchChunk
from transforms.references import rewrite_uris


def validate_chunk(chunk: object) -> DispatchChunk:
    """Check that a chunk is a structurally well-formed dispatch record.

    Args:
        chunk: Candidate record, usually parsed JSON.

    Returns:
        The same chunk, unchanged.

    Raises:
        FerryValidationError: If the chunk is not a single-key mapping from a
            resource URI to a JSON-compatible value.
    """
    if not isinstance(chunk, Mapping):
        raise FerryValidationError(
            f"Invalid record: expected an object, got {type(chunk).__name__}.", chunk
        )
    if len(chunk) != 1:
        raise FerryValidationError(
            f"Invalid record: expected exactly one uri key, got {len(chunk)}.", chunk
        )
    uri, value = next(iter(chunk.items()))
    if not is_resource_uri(uri):
        raise FerryValidationError(f"Invalid record: '{uri}' is not a resource uri.", chunk)
    if not _is_json_compatible(value):
        raise FerryValidationError(
            f"Invalid record '{uri}': value is not JSON-compatible.", chunk
        )
    return chunk  # type: ignore[return-value]


def _is_json_compatible(value: Any) -> bool:
    if value is None or isinstance(value, (str, bool, int)):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Mapping):
        return all(
            isinstance(key, str) and _is_json_compatible(item) for key, item in value.items()
        )
    if isinstance(value, list):
        return all(_is_json_compatible(item) for item in value)
    return False


def to_chunk(url: str, data: Any) -> DispatchChunk:
    """Build a site-agnostic chunk from a fetched resource.

    Args:
        url: Site-prefixed resource URL.
        data: Resource body; contained resource URIs are made site-agnostic too.

    Returns:
        Chunk keyed by the agnostic URI.

    Raises:
        FerryValidationError: If the url is not a resource URI.
    """
    parsed = parse_resource_uri(url)
    if parsed is None:
        raise FerryValidationError(f"Cannot build record: '{url}' is not a resource uri.", url)
    return {parsed.agnostic: rewrite_uris(data, _to_agnostic)}


def from_chunk(prefix: str, chunk: Mapping[str, Any]) -> DispatchChunk:
    """Re-key a chunk and its contained resource URIs under a site prefix.

    Args:
        prefix: Destination site base, e.g. ``http://site.com``.
        chunk: Site-agnostic or foreign-prefixed chunk.

    Returns:
        Chunk keyed by the destination URL. Contained references use the
        scheme-less ``site.com/_components/...`` form.
    """
    uri, value = next(iter(chunk.items()))
    reference_prefix = strip_scheme(prefix)

    def _to_reference(resource_uri: str) -> str:
        parsed = parse_resource_uri(resource_uri)
        return parsed.with_prefix(reference_prefix) if parsed is not None else resource_uri

    parsed_key = parse_resource_uri(uri)
    destination_uri = parsed_key.with_prefix(prefix) if parsed_key is not None else uri
    return {destination_uri: rewrite_uris(value, _to_reference)}


def chunk_uri(chunk: Mapping[str, Any]) -> str:
    """Return the single key of a chunk."""
    return next(iter(chunk))


def _to_agnostic(resource_uri: str) -> str:
    parsed = parse_resource_uri(resource_uri)
    return parsed.agnostic if parsed is not None else resource_uri
