"""
Pytest configuration and shared fixtures.

Fixtures:
    - isolated_config_dir: points the user config dir at tmp_path
    - settings: AppSettings without .env files, zero poll/pause delays
    - recorder: collects requests seen by an httpx.MockTransport
    - make_transport: builds a MockTransport from a response factory
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from core.config import AppSettings


class RequestRecorder:
    """Keeps every request that reached the mock transport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    config_dir = tmp_path / "config"
    monkeypatch.setenv("SFS_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        api_url="https://sfs.test",
        api_key="secret-key",
        job_poll_interval_seconds=0,
        job_poll_max_attempts=3,
        upload_pause_seconds=0,
    )


@pytest.fixture
def recorder() -> RequestRecorder:
    return RequestRecorder()


@pytest.fixture
def make_transport(
    recorder: RequestRecorder,
) -> Callable[..., httpx.MockTransport]:
    def _make(
        status: int = 200,
        body: str = "",
        *,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> httpx.MockTransport:
        def _handle(request: httpx.Request) -> httpx.Response:
            recorder.requests.append(request)
            if handler is not None:
                return handler(request)
            return httpx.Response(status, text=body)

        return httpx.MockTransport(_handle)

    return _make
