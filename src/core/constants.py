"""Core constants used across Ferry modules.

This module centralizes collection names, URI segments and runtime
defaults shared across packages.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("~/.ferryconfig.yml")
DEFAULT_CONCURRENCY = 10
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_URL_SCHEME = "http"
PATH_SEPARATOR = "/"
COMPONENTS_COLLECTION = "_components"
PAGES_COLLECTION = "_pages"
USERS_COLLECTION = "_users"
LISTS_COLLECTION = "_lists"
INSTANCES_KEY = "instances"
REFERENCE_KEY = "_ref"
COMPONENTS_SEGMENT = f"/{COMPONENTS_COLLECTION}/"
PAGES_SEGMENT = f"/{PAGES_COLLECTION}/"
INSTANCES_SEGMENT = f"/{INSTANCES_KEY}/"
PAGE_FIELD_ALIASES = {"url": "customUrl"}
AUTHORIZATION_SCHEME = "Token"
JSON_CONTENT_TYPE = "application/json"
BOOTSTRAP_FILE_EXTENSIONS = (".yml", ".yaml", ".json")
