"""
Tests for SFSApiClient.

The client only talks to a CommandInvoker, so a scripted fake invoker
stands in for the desktop app.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pytest

from adapters.sfs_api import SFSApiClient, filter_files
from core.domain.errors import ApiError, CommandError
from core.interfaces.invoker import CommandInvoker


class FakeInvoker:
    """Returns queued payloads (or raises queued errors) in order."""

    def __init__(self, *results: dict[str, Any] | Exception) -> None:
        self.results = list(results)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def invoke(self, command: str, args: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append((command, dict(args)))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _ok(body: Any, status: int = 200) -> dict[str, Any]:
    text = body if isinstance(body, str) else json.dumps(body)
    return {"ok": 200 <= status <= 299, "status": status, "body": text}


def _fail(status: int, body: str = "") -> dict[str, Any]:
    return {"ok": False, "status": status, "body": body}


def test_fake_invoker_satisfies_protocol():
    assert isinstance(FakeInvoker(), CommandInvoker)


@pytest.mark.asyncio
async def test_upload_file_invokes_secure_upload(settings):
    invoker = FakeInvoker(_ok({"job_id": "job-7"}))
    client = SFSApiClient(invoker, settings)

    accepted = await client.upload_file("/home/ana/a.md", "home_ana_a.md", update=True)

    assert accepted.job_id == "job-7"
    command, args = invoker.calls[0]
    assert command == "secure_upload"
    assert args == {
        "url": "https://sfs.test/index",
        "filePath": "/home/ana/a.md",
        "fileName": "home_ana_a.md",
        "apiKey": "secret-key",
        "update": True,
    }


@pytest.mark.asyncio
async def test_upload_file_error_uses_body_or_default(settings):
    client = SFSApiClient(FakeInvoker(_fail(409, "already indexed"), _fail(500, "")), settings)

    with pytest.raises(ApiError, match="already indexed") as first:
        await client.upload_file("/a", "a")
    with pytest.raises(ApiError, match="Upload failed") as second:
        await client.upload_file("/a", "a")

    assert first.value.status == 409
    assert second.value.status == 500


@pytest.mark.asyncio
async def test_command_error_becomes_api_error(settings):
    client = SFSApiClient(FakeInvoker(CommandError("[Errno 2] No such file or directory: '/a'")), settings)

    with pytest.raises(ApiError, match="No such file"):
        await client.upload_file("/a", "a")


@pytest.mark.asyncio
async def test_get_job_status_sends_api_key(settings):
    invoker = FakeInvoker(_ok({"job_id": "j1", "status": "processing"}))
    client = SFSApiClient(invoker, settings)

    status = await client.get_job_status("j1")

    assert status.status == "processing"
    command, args = invoker.calls[0]
    assert command == "secure_fetch"
    assert args["url"] == "https://sfs.test/index/status/j1"
    assert args["options"] == {"method": "GET", "headers": {"X-API-Key": "secret-key"}, "body": None}


@pytest.mark.asyncio
async def test_get_job_status_failure(settings):
    client = SFSApiClient(FakeInvoker(_fail(404)), settings)

    with pytest.raises(ApiError, match="Status check failed"):
        await client.get_job_status("missing")


@pytest.mark.asyncio
async def test_health_check(settings):
    invoker = FakeInvoker(_ok({"status": "healthy"}), _fail(503))
    client = SFSApiClient(invoker, settings)

    assert await client.health_check() == {"status": "healthy"}
    assert invoker.calls[0][1]["url"] == "https://sfs.test/health"
    with pytest.raises(ApiError, match="Health check failed"):
        await client.health_check()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "prefix, expected_url",
    [(None, "https://sfs.test/files/"), ("docs/2024", "https://sfs.test/files/?prefix=docs%2F2024")],
)
async def test_list_files(prefix, expected_url, settings):
    invoker = FakeInvoker(_ok({"files": ["a.md", "b.txt"], "count": 2}))
    client = SFSApiClient(invoker, settings)

    listing = await client.list_files(prefix)

    assert listing.files == ["a.md", "b.txt"]
    assert listing.count == 2
    assert invoker.calls[0][1]["url"] == expected_url


@pytest.mark.asyncio
async def test_list_files_invalid_json(settings):
    client = SFSApiClient(FakeInvoker(_ok("<html>proxy error</html>")), settings)

    with pytest.raises(ApiError, match="Failed to list files: invalid JSON response"):
        await client.list_files()


@pytest.mark.asyncio
async def test_download_file_returns_bytes(settings):
    invoker = FakeInvoker(_ok("línea 1\nlínea 2"), _fail(404, "not found"))
    client = SFSApiClient(invoker, settings)

    assert await client.download_file("notes.md") == "línea 1\nlínea 2".encode("utf-8")
    assert invoker.calls[0][1]["url"] == "https://sfs.test/files/notes.md"
    with pytest.raises(ApiError, match="Download failed"):
        await client.download_file("gone.md")


@pytest.mark.asyncio
async def test_delete_file_uses_delete_verb(settings):
    invoker = FakeInvoker(_ok({"job_id": "del-1"}))
    client = SFSApiClient(invoker, settings)

    accepted = await client.delete_file("notes.md")

    assert accepted.job_id == "del-1"
    args = invoker.calls[0][1]
    assert args["url"] == "https://sfs.test/index/notes.md"
    assert args["options"]["method"] == "DELETE"


@pytest.mark.asyncio
async def test_search_posts_json_body(settings):
    results = {
        "results": [
            {
                "score": 0.91,
                "payload": {"file_path": "a.md", "text": "alpha", "start": 0, "end": 5, "chunk_index": 0},
            }
        ]
    }
    invoker = FakeInvoker(_ok(results))
    client = SFSApiClient(invoker, settings)

    found = await client.search("alpha", limit=3, score_threshold=0.7)

    assert [r.payload.file_path for r in found] == ["a.md"]
    assert found[0].score == pytest.approx(0.91)
    options = invoker.calls[0][1]["options"]
    assert options["method"] == "POST"
    assert options["headers"] == {"X-API-Key": "secret-key", "Content-Type": "application/json"}
    assert json.loads(options["body"]) == {"query": "alpha", "limit": 3, "score_threshold": 0.7}


@pytest.mark.asyncio
async def test_search_defaults_come_from_settings(settings):
    invoker = FakeInvoker(_ok({}))
    client = SFSApiClient(invoker, settings)

    assert await client.search("anything") == []
    body = json.loads(invoker.calls[0][1]["options"]["body"])
    assert body["limit"] == settings.search_limit
    assert body["score_threshold"] == settings.search_score_threshold


@pytest.mark.asyncio
async def test_search_failure(settings):
    client = SFSApiClient(FakeInvoker(_fail(401)), settings)

    with pytest.raises(ApiError, match="Search failed"):
        await client.search("q")


def test_filter_files_is_case_insensitive():
    files = ["Report_2024.PDF", "notes.md", "home_ana_report.txt"]

    assert filter_files(files, "report") == ["Report_2024.PDF", "home_ana_report.txt"]
    assert filter_files(files, "") == files
