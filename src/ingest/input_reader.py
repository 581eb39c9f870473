"""Input readers for imports.

This module parses line-delimited dispatch records from a text stream and
loads bootstrap documents from local YAML or JSON files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Iterator

import yaml

from core.constants import BOOTSTRAP_FILE_EXTENSIONS
from core.errors import FerryIngestError, FerryValidationError
from core.types import BootstrapDocument


def iter_line_records(lines: Iterable[str]) -> Iterator[object]:
    """Parse one JSON value per line, skipping blank lines.

    Args:
        lines: Text lines, e.g. ``sys.stdin``.

    Yields:
        Parsed JSON values in input order.

    Raises:
        FerryValidationError: If a line is not valid JSON.
    """
    for line_number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as error:
            raise FerryValidationError(
                f"Failed to parse record on line {line_number}: {error.msg}.", line.strip()
            ) from error


def read_bootstrap_documents(source_path: str) -> list[BootstrapDocument]:
    """Load bootstrap documents from a file or a directory of files.

    Args:
        source_path: YAML/JSON file, or directory searched recursively.

    Returns:
        Documents in file order; YAML files may hold several documents.

    Raises:
        FerryIngestError: If the path is missing, unreadable, or holds no documents.
    """
    path = Path(source_path).expanduser()
    if not path.exists():
        raise FerryIngestError(
            f"Failed to read bootstrap at {path}: path does not exist. "
            "Provide an existing file or directory."
        )
    if path.is_file():
        return _read_bootstrap_file(path)
    documents: list[BootstrapDocument] = []
    for file_path in sorted(path.rglob("*")):
        if file_path.is_file() and file_path.suffix.lower() in BOOTSTRAP_FILE_EXTENSIONS:
            documents.extend(_read_bootstrap_file(file_path))
    if not documents:
        raise FerryIngestError(
            f"No bootstrap files found under {path}. "
            f"Supported extensions: {BOOTSTRAP_FILE_EXTENSIONS}."
        )
    return documents


def _read_bootstrap_file(file_path: Path) -> list[BootstrapDocument]:
    """Parse every document in one bootstrap file.

    Raises:
        FerryIngestError: If the file cannot be parsed or a document is not a mapping.
    """
    try:
        text = file_path.read_text(encoding="utf-8")
        if file_path.suffix.lower() == ".json":
            payloads = [json.loads(text)]
        else:
            payloads = list(yaml.safe_load_all(text))
    except (OSError, ValueError, yaml.YAMLError) as error:
        raise FerryIngestError(
            f"Failed to parse bootstrap file {file_path}: {error}. Fix the syntax and retry."
        ) from error
    documents: list[BootstrapDocument] = []
    for payload in payloads:
        if payload is None:
            continue
        if not isinstance(payload, dict):
            raise FerryIngestError(
                f"Invalid bootstrap file {file_path}: expected a mapping of root "
                f"collections, got {type(payload).__name__}."
            )
        documents.append(payload)
    return documents
