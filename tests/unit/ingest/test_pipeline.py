"""Unit tests for import orchestration."""

from __future__ import annotations

import asyncio
import io
import json

import httpx
import pytest
from rich.console import Console

from core.config import FerryConfig
from core.errors import FerryFetchError, FerryValidationError
from core.types import ImportOptions
from ingest.import_progress import ImportProgressReporter
from ingest.pipeline import ImportPipelineRunner
from tests.helpers import FakeContentApi, fixture_path

DESTINATION = "http://dest.com"


def _runner(
    api: FakeContentApi,
    **option_overrides: object,
) -> tuple[ImportPipelineRunner, io.StringIO]:
    options = ImportOptions(destination=DESTINATION, key="secret", **option_overrides)
    buffer = io.StringIO()
    reporter = ImportProgressReporter(console=Console(file=buffer, highlight=False))
    runner = ImportPipelineRunner(
        options, FerryConfig.from_env(), transport=api.transport, reporter=reporter
    )
    return runner, buffer


def _lines(*records: object) -> list[str]:
    return [json.dumps(record) + "\n" for record in records]


def test_import_stream_dry_run_counts_valid_records_in_order() -> None:
    """A dry run validates every record and writes nothing."""
    api = FakeContentApi()
    runner, buffer = _runner(api, dry_run=True)
    lines = _lines({"/_lists/a": [1]}, {"/_lists/b": [2]}, {"/_pages/c": {"main": []}})

    summary = runner.import_stream(["\n", *lines])

    assert summary.succeeded == (
        "http://dest.com/_lists/a",
        "http://dest.com/_lists/b",
        "http://dest.com/_pages/c",
    )
    assert api.puts == []
    assert buffer.getvalue() == "...\nImported 3 uris!\n"


def test_import_stream_writes_records_under_destination() -> None:
    """Records are re-keyed under the destination before writing."""
    api = FakeContentApi()
    runner, _ = _runner(api, concurrency=1)
    lines = _lines(
        {"/_components/article/instances/a": {"content": [{"_ref": "/_components/b"}]}}
    )

    summary = runner.import_stream(lines)

    assert summary.count == 1
    assert api.puts == [
        (
            "http://dest.com/_components/article/instances/a",
            {"content": [{"_ref": "dest.com/_components/b"}]},
            "Token secret",
        )
    ]


def test_import_stream_aborts_on_first_invalid_record() -> None:
    """A malformed record stops the run and nothing after it is written."""
    api = FakeContentApi()
    runner, _ = _runner(api, concurrency=1)
    lines = _lines({"/_lists/a": [1]}, {"not-a-uri": [2]}, {"/_lists/c": [3]})

    with pytest.raises(FerryValidationError) as error_info:
        runner.import_stream(lines)

    assert error_info.value.chunk_key == "not-a-uri"
    assert api.put_urls == ["http://dest.com/_lists/a"]


def test_import_stream_aborts_on_unparseable_line() -> None:
    """A line that is not JSON is a validation failure."""
    runner, _ = _runner(FakeContentApi(), dry_run=True)

    with pytest.raises(FerryValidationError):
        runner.import_stream(['{"/_lists/a": [1]}\n', "{not json\n"])


def test_import_url_isolates_write_failures() -> None:
    """A failed child write is reported but the rest of the import succeeds."""
    api = FakeContentApi(
        {
            "http://source.com/_components/article/instances/a": {
                "content": [
                    {"_ref": "source.com/_components/paragraph/instances/b"},
                    {"_ref": "source.com/_components/paragraph/instances/c"},
                ]
            },
            "http://source.com/_components/paragraph/instances/b": {"text": "b"},
            "http://source.com/_components/paragraph/instances/c": {"text": "c"},
        },
        failing_puts=["http://dest.com/_components/paragraph/instances/c"],
    )
    runner, buffer = _runner(api, concurrency=1)

    summary = runner.import_url("http://source.com/_components/article/instances/a")

    assert summary.count == 2
    assert summary.failed == ("http://dest.com/_components/paragraph/instances/c",)
    assert sorted(api.put_urls) == [
        "http://dest.com/_components/article/instances/a",
        "http://dest.com/_components/paragraph/instances/b",
        "http://dest.com/_components/paragraph/instances/c",
    ]
    root_body = api.resources["http://dest.com/_components/article/instances/a"]
    assert root_body["content"][0] == {"_ref": "dest.com/_components/paragraph/instances/b"}
    assert buffer.getvalue().endswith("Imported 2 uris!\n")


def test_import_url_skips_resources_that_fail_to_fetch() -> None:
    """Fetch failures are not written and do not abort the import."""
    api = FakeContentApi(
        {
            "http://source.com/_pages/index": {
                "main": ["source.com/_components/article/instances/a"]
            },
        },
    )
    runner, _ = _runner(api)

    summary = runner.import_url("http://source.com/_pages/index")

    assert summary.succeeded == ("http://dest.com/_pages/index",)
    assert summary.failed == ()


def test_import_url_replay_replaces_destination_resources() -> None:
    """Importing again rewrites every resource with the current source data."""
    api = FakeContentApi(
        {
            "http://source.com/_components/article/instances/a": {
                "child": {"_ref": "source.com/_components/paragraph/instances/b"}
            },
            "http://source.com/_components/paragraph/instances/b": {"text": "first"},
        }
    )
    runner, _ = _runner(api)
    first = runner.import_url("http://source.com/_components/article/instances/a")
    api.resources["http://source.com/_components/paragraph/instances/b"] = {"text": "second"}
    replay_runner, _ = _runner(api)

    second = replay_runner.import_url("http://source.com/_components/article/instances/a")

    assert first.count == 2
    assert second.count == 2
    assert second.skipped == ()
    assert len(api.puts) == 4
    assert api.resources["http://dest.com/_components/paragraph/instances/b"] == {
        "text": "second"
    }


def test_import_url_skip_existing_leaves_destination_untouched() -> None:
    """With skip_existing, resources already at the destination are left alone."""
    api = FakeContentApi(
        {
            "http://source.com/_lists/tags": ["news"],
            "http://dest.com/_lists/tags": ["old"],
        }
    )
    runner, _ = _runner(api, skip_existing=True)

    summary = runner.import_url("http://source.com/_lists/tags")

    assert summary.skipped == ("http://dest.com/_lists/tags",)
    assert summary.count == 0
    assert api.resources["http://dest.com/_lists/tags"] == ["old"]


def test_import_stream_reports_results_in_input_order() -> None:
    """Stream results follow line order even when an earlier write is slower."""
    api = FakeContentApi()

    async def _handler(request: httpx.Request) -> httpx.Response:
        if str(request.url).endswith("/a"):
            await asyncio.sleep(0.05)
        return api.handle(request)

    options = ImportOptions(destination=DESTINATION, key="secret", concurrency=3)
    reporter = ImportProgressReporter(
        verbose=True, console=Console(file=io.StringIO(), highlight=False)
    )
    runner = ImportPipelineRunner(
        options,
        FerryConfig.from_env(),
        transport=httpx.MockTransport(_handler),
        reporter=reporter,
    )

    lines = _lines({"/_lists/a": [1]}, {"/_lists/b": [2]}, {"/_lists/c": [3]})

    summary = runner.import_stream(lines)

    assert summary.succeeded == (
        "http://dest.com/_lists/a",
        "http://dest.com/_lists/b",
        "http://dest.com/_lists/c",
    )
    assert api.put_urls[0] != "http://dest.com/_lists/a"


def test_import_file_converts_bootstrap_documents() -> None:
    """Bootstrap files are converted to dispatch records and validated."""
    api = FakeContentApi()
    runner, _ = _runner(api, dry_run=True)

    summary = runner.import_file(str(fixture_path("bootstrap/site.yml")))

    assert summary.succeeded == (
        "http://dest.com/_components/article",
        "http://dest.com/_components/article/instances/foo",
        "http://dest.com/_pages/index",
        "http://dest.com/_users/Zm9vQGdvb2dsZQ==",
        "http://dest.com/_lists/tags",
    )


def test_import_site_applies_offset_limit_and_users() -> None:
    """Site imports window the page listing and append users on request."""
    api = FakeContentApi(
        {
            "http://source.com/_pages": [
                "source.com/_pages/one",
                "source.com/_pages/two",
                "source.com/_pages/three",
            ],
            "http://source.com/_pages/two": {"main": []},
            "http://source.com/_users": ["source.com/_users/Zm9vQGdvb2dsZQ=="],
            "http://source.com/_users/Zm9vQGdvb2dsZQ==": {
                "username": "foo",
                "provider": "google",
                "auth": "admin",
            },
        }
    )
    runner, _ = _runner(api, dry_run=True, offset=1, limit=1, include_users=True)

    summary = runner.import_site("http://source.com")

    assert set(summary.succeeded) == {
        "http://dest.com/_pages/two",
        "http://dest.com/_users/Zm9vQGdvb2dsZQ==",
    }
    assert "http://source.com/_pages/one" not in api.gets


def test_import_site_raises_when_listing_is_not_a_list() -> None:
    """A malformed page listing fails the site import."""
    api = FakeContentApi({"http://source.com/_pages": {"unexpected": True}})
    runner, _ = _runner(api, dry_run=True)

    with pytest.raises(FerryFetchError):
        runner.import_site("http://source.com")
