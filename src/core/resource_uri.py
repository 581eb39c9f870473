"""Resource URI parsing helpers.

This module centralizes how resource identities are read and built.
A resource URI is an optional site prefix followed by a root collection
segment such as ``/_components/`` and a collection-specific remainder.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from core.constants import (
    COMPONENTS_COLLECTION,
    DEFAULT_URL_SCHEME,
    INSTANCES_SEGMENT,
    PATH_SEPARATOR,
    USERS_COLLECTION,
)

_RESOURCE_URI_PATTERN = re.compile(
    r"^(?P<prefix>\S*?)/(?P<collection>_[A-Za-z][A-Za-z0-9-]*)/(?P<remainder>\S*)$"
)
_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


@dataclass(frozen=True)
class ResourceUri:
    """Parsed resource URI.

    Attributes:
        prefix: Site prefix before the root segment, empty when site-agnostic.
        collection: Root collection name including its underscore, e.g. ``_pages``.
        remainder: Collection-specific key after the root segment.
    """

    prefix: str
    collection: str
    remainder: str

    @property
    def agnostic(self) -> str:
        """Return the URI without its site prefix."""
        return f"/{self.collection}/{self.remainder}"

    def with_prefix(self, prefix: str) -> str:
        """Return the URI re-keyed under another site prefix."""
        return f"{prefix.rstrip(PATH_SEPARATOR)}{self.agnostic}"


def parse_resource_uri(uri: str) -> ResourceUri | None:
    """Parse a resource URI into prefix, collection, and remainder.

    Args:
        uri: Site-agnostic (``/_pages/a``) or prefixed (``site.com/_pages/a``) URI.

    Returns:
        Parsed URI, or None when the value is not a resource URI.
    """
    match = _RESOURCE_URI_PATTERN.match(uri)
    if match is None:
        return None
    return ResourceUri(
        prefix=match.group("prefix"),
        collection=match.group("collection"),
        remainder=match.group("remainder"),
    )


def is_resource_uri(value: object) -> bool:
    """Return whether a value is a syntactically valid resource URI."""
    return isinstance(value, str) and parse_resource_uri(value) is not None


def split_component_name(remainder: str) -> tuple[str, str | None]:
    """Split a component remainder into type name and optional instance name."""
    name, separator, instance = remainder.partition(INSTANCES_SEGMENT)
    if not separator:
        return name, None
    return name, instance


def build_component_uri(name: object, instance: object = None) -> str:
    """Build a site-agnostic component URI.

    Non-string names, e.g. integer YAML keys, are rendered with ``str``.
    """
    base_uri = f"/{COMPONENTS_COLLECTION}/{name}"
    if instance is None:
        return base_uri
    return f"{base_uri}{INSTANCES_SEGMENT}{instance}"


def build_collection_uri(collection: object, key: object) -> str:
    """Build a site-agnostic URI for an arbitrary collection entry.

    A key equal to the path separator collapses to an empty remainder.
    """
    remainder = "" if key == PATH_SEPARATOR else str(key)
    return f"/{collection}/{remainder}"


def encode_user_key(username: str, provider: str) -> str:
    """Encode ``username@provider`` into a reversible resource key."""
    raw_value = f"{username}@{provider}"
    return base64.b64encode(raw_value.encode("utf-8")).decode("ascii")


def decode_user_key(key: str) -> tuple[str, str] | None:
    """Decode a user resource key back into username and provider.

    Returns:
        Username and provider, or None for keys not produced by ``encode_user_key``.
    """
    try:
        raw_value = base64.b64decode(key.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None
    username, separator, provider = raw_value.rpartition("@")
    if not separator:
        return None
    return username, provider


def build_user_uri(username: str, provider: str) -> str:
    """Build the site-agnostic URI of a user."""
    return f"/{USERS_COLLECTION}/{encode_user_key(username, provider)}"


def normalize_url(value: str, scheme: str = DEFAULT_URL_SCHEME) -> str:
    """Normalize a site or resource reference into a fetchable URL.

    Args:
        value: Bare host/path (``site.com/_pages/a``) or full URL.
        scheme: Scheme added when the value carries none.

    Returns:
        URL with a scheme and without trailing separators.
    """
    stripped_value = value.strip()
    if not _SCHEME_PATTERN.match(stripped_value):
        stripped_value = f"{scheme}://{stripped_value.lstrip(PATH_SEPARATOR)}"
    if stripped_value.endswith(PATH_SEPARATOR) and parse_resource_uri(stripped_value) is None:
        return stripped_value.rstrip(PATH_SEPARATOR)
    return stripped_value


def url_scheme(url: str) -> str:
    """Return the scheme of a URL, or the default scheme when absent."""
    match = _SCHEME_PATTERN.match(url)
    if match is None:
        return DEFAULT_URL_SCHEME
    return match.group(0)[: -len("://")]


def strip_scheme(url: str) -> str:
    """Return a URL without its scheme, the form stored inside references."""
    return _SCHEME_PATTERN.sub("", url, count=1)
