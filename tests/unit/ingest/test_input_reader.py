"""Unit tests for input reader module."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import FerryIngestError, FerryValidationError
from ingest.input_reader import iter_line_records, read_bootstrap_documents
from tests.helpers import fixture_path


def test_iter_line_records_skips_blank_lines() -> None:
    """Blank lines are ignored and records keep their order."""
    lines = ['{"/_lists/a": [1]}\n', "\n", '{"/_lists/b": [2]}\n']

    records = list(iter_line_records(lines))

    assert records == [{"/_lists/a": [1]}, {"/_lists/b": [2]}]


def test_iter_line_records_raises_for_invalid_json() -> None:
    """Unparseable lines are validation failures."""
    records = iter_line_records(['{"/_lists/a": [1]}\n', "{oops\n"])

    assert next(records) == {"/_lists/a": [1]}
    with pytest.raises(FerryValidationError):
        next(records)


def test_read_bootstrap_documents_reads_yaml_file() -> None:
    """A YAML bootstrap file loads as one document."""
    documents = read_bootstrap_documents(str(fixture_path("bootstrap/site.yml")))

    assert len(documents) == 1
    assert set(documents[0]) == {"_components", "_pages", "_users", "_lists"}


def test_read_bootstrap_documents_reads_directories(tmp_path: Path) -> None:
    """Directories are searched for YAML and JSON files."""
    (tmp_path / "a.json").write_text('{"_lists": {"a": [1]}}', encoding="utf-8")
    (tmp_path / "b.yml").write_text("_lists:\n  b: [2]\n---\n_lists:\n  c: [3]\n", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    documents = read_bootstrap_documents(str(tmp_path))

    assert documents == [
        {"_lists": {"a": [1]}},
        {"_lists": {"b": [2]}},
        {"_lists": {"c": [3]}},
    ]


def test_read_bootstrap_documents_raises_for_missing_path(tmp_path: Path) -> None:
    """Reader should fail when the source path is missing."""
    with pytest.raises(FerryIngestError):
        read_bootstrap_documents(str(tmp_path / "does-not-exist.yml"))


def test_read_bootstrap_documents_raises_for_invalid_yaml() -> None:
    """Reader should fail for malformed YAML."""
    with pytest.raises(FerryIngestError):
        read_bootstrap_documents(str(fixture_path("bad/broken.yml")))
