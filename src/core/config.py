"""Runtime configuration model for Ferry.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import yaml

from core.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CONFIG_PATH,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
)
from core.errors import FerryConfigError
from core.resource_uri import normalize_url


@dataclass(frozen=True)
class FerryConfig:
    """Validated runtime configuration.

    Attributes:
        sites: Site aliases mapped to base URLs, e.g. ``prod: www.site.com``.
        keys: Key aliases mapped to API credentials.
        default_site: Site alias or URL used when none is given.
        default_key: Key alias or credential used when none is given.
        concurrency: Default number of in-flight fetches and writes.
        http_timeout: Per-request HTTP timeout in seconds.
    """

    sites: Mapping[str, str] = field(default_factory=dict)
    keys: Mapping[str, str] = field(default_factory=dict)
    default_site: str | None = None
    default_key: str | None = None
    concurrency: int = DEFAULT_CONCURRENCY
    http_timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "FerryConfig":
        """Build config from environment variables and the YAML config file.

        Returns:
            A validated config object.

        Raises:
            FerryConfigError: If environment values or the config file are invalid.
        """
        config_path = Path(os.getenv("FERRY_CONFIG", str(DEFAULT_CONFIG_PATH))).expanduser()
        file_payload = _load_config_file(config_path)
        return cls(
            sites=_read_alias_table(file_payload, "sites", config_path),
            keys=_read_alias_table(file_payload, "keys", config_path),
            default_site=os.getenv("FERRY_DEFAULT_SITE"),
            default_key=os.getenv("FERRY_DEFAULT_KEY"),
            concurrency=_parse_concurrency(os.getenv("FERRY_CONCURRENCY")),
            http_timeout=_parse_timeout(os.getenv("FERRY_HTTP_TIMEOUT")),
        )

    def resolve_site(self, name: str | None) -> str | None:
        """Resolve a site alias or URL into a normalized base URL.

        Args:
            name: Site alias, bare host, or URL. Falls back to the default site.

        Returns:
            Normalized base URL, or None when nothing can be resolved.
        """
        value = name or self.default_site
        if not value:
            return None
        if value in self.sites:
            return normalize_url(self.sites[value])
        if _looks_like_site(value):
            return normalize_url(value)
        return None

    def resolve_key(self, name: str | None) -> str | None:
        """Resolve a key alias into an API credential.

        Args:
            name: Key alias or raw credential. Falls back to the default key.

        Returns:
            Credential string, or None when no key is configured.
        """
        value = name or self.default_key
        if not value:
            return None
        return self.keys.get(value, value)

    def normalize_reference(self, value: str) -> str:
        """Normalize a page or component reference into a fetchable URL."""
        if value in self.sites:
            return normalize_url(self.sites[value])
        return normalize_url(value)


def _load_config_file(config_path: Path) -> Mapping[str, object]:
    """Load the optional YAML config file.

    Args:
        config_path: Path to the config file.

    Returns:
        Parsed mapping, empty when the file does not exist.

    Raises:
        FerryConfigError: If the file cannot be read or is not a mapping.
    """
    if not config_path.exists():
        return {}
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as error:
        raise FerryConfigError(
            f"Failed to read config file at {config_path}: {error}. "
            "Fix the YAML syntax or point FERRY_CONFIG elsewhere."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise FerryConfigError(
            f"Invalid config file at {config_path}: expected a mapping, "
            f"got {type(payload).__name__}."
        )
    return payload


def _read_alias_table(
    payload: Mapping[str, object],
    section: str,
    config_path: Path,
) -> dict[str, str]:
    table = payload.get(section) or {}
    if not isinstance(table, Mapping):
        raise FerryConfigError(
            f"Invalid '{section}' section in {config_path}: expected alias mapping."
        )
    return {str(alias): str(value) for alias, value in table.items()}


def _parse_concurrency(raw_value: str | None) -> int:
    """Parse the concurrency environment value.

    Raises:
        FerryConfigError: If the value is not a positive integer.
    """
    if raw_value is None:
        return DEFAULT_CONCURRENCY
    try:
        concurrency = int(raw_value)
    except ValueError as error:
        raise FerryConfigError(
            "Invalid FERRY_CONCURRENCY value: "
            f"expected integer, got '{raw_value}'. "
            "Set FERRY_CONCURRENCY to a positive number."
        ) from error
    if concurrency < 1:
        raise FerryConfigError(
            f"Invalid FERRY_CONCURRENCY value: expected at least 1, got {concurrency}."
        )
    return concurrency


def _parse_timeout(raw_value: str | None) -> float:
    if raw_value is None:
        return DEFAULT_HTTP_TIMEOUT_SECONDS
    try:
        return float(raw_value)
    except ValueError as error:
        raise FerryConfigError(
            f"Invalid FERRY_HTTP_TIMEOUT value: expected seconds, got '{raw_value}'."
        ) from error


def _looks_like_site(value: str) -> bool:
    return "://" in value or "." in value or value.startswith("localhost")
