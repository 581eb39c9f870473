"""Unit tests for dispatch record validation and re-keying."""

from __future__ import annotations

import pytest

from core.errors import FerryValidationError
from ingest.chunks import from_chunk, to_chunk, validate_chunk


def test_validate_chunk_passes_well_formed_records_through() -> None:
    """Valid records are returned unchanged."""
    chunk = {"/_components/a": {"title": "x", "items": [1, 2.5, True, None]}}

    assert validate_chunk(chunk) is chunk


def test_validate_chunk_accepts_null_values() -> None:
    """A present JSON null is a defined value."""
    chunk = {"/_lists/a": None}

    assert validate_chunk(chunk) is chunk


def test_validate_chunk_accepts_prefixed_and_empty_remainder_uris() -> None:
    """Site-prefixed keys and empty remainders are valid uris."""
    assert validate_chunk({"http://site.com/_pages/a": {}})
    assert validate_chunk({"/_uris/": "/_pages/index"})


@pytest.mark.parametrize(
    "chunk",
    [
        [],
        {},
        {"/_pages/a": {}, "/_pages/b": {}},
        {"not a uri": {}},
        {"/_pages/a": {"when": object()}},
        {"/_pages/a": {1: "non-string key"}},
    ],
)
def test_validate_chunk_rejects_malformed_records(chunk: object) -> None:
    """Malformed records raise and carry the offending record."""
    with pytest.raises(FerryValidationError) as error_info:
        validate_chunk(chunk)

    assert error_info.value.chunk is chunk


def test_validation_error_reports_record_key() -> None:
    """The offending record key is available for reporting."""
    with pytest.raises(FerryValidationError) as error_info:
        validate_chunk({"/_pages/a": float("nan")})

    assert error_info.value.chunk_key == "/_pages/a"


def test_to_chunk_makes_fetched_resources_site_agnostic() -> None:
    """Fetched bodies lose their site prefix in keys and references."""
    chunk = to_chunk(
        "http://source.com/_components/a",
        {"child": {"_ref": "source.com/_components/b"}},
    )

    assert chunk == {"/_components/a": {"child": {"_ref": "/_components/b"}}}


def test_from_chunk_rekeys_under_destination() -> None:
    """Keys gain the destination url and references its scheme-less form."""
    chunk = {"/_pages/a": {"main": ["/_components/b"], "customUrl": "http://x.com/a"}}

    rekeyed = from_chunk("https://dest.com", chunk)

    assert rekeyed == {
        "https://dest.com/_pages/a": {
            "main": ["dest.com/_components/b"],
            "customUrl": "http://x.com/a",
        }
    }
