"""Tests for chunk downloads and the retry policy."""

import httpx
import pytest

from ndjson_rebuild.errors import DownloadError
from ndjson_rebuild.fetcher import ChunkFetcher

URL = "https://github.com/example/archive/releases/download/c_1_5/c_1_5.ndjson.xz"


def flaky(failures: int, body: bytes = b"payload", error: Exception | None = None):
    """Handler that fails ``failures`` times before succeeding."""
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] <= failures:
            if error is not None:
                raise error
            return httpx.Response(503)
        return httpx.Response(200, content=body)

    return handler, calls


def test_download_writes_body(tmp_path, settings):
    handler, calls = flaky(0, body=b"x" * 5000)
    dest = tmp_path / "out.xz"
    with ChunkFetcher(settings, transport=httpx.MockTransport(handler)) as fetcher:
        assert fetcher.download(URL, dest) == 5000
    assert dest.read_bytes() == b"x" * 5000
    assert calls["n"] == 1


def test_download_retries_with_fixed_delay(tmp_path, settings):
    settings = settings.model_copy(update={"download_attempts": 4, "retry_delay": 2.5})
    handler, calls = flaky(3)
    delays = []
    dest = tmp_path / "out.xz"

    with ChunkFetcher(settings, transport=httpx.MockTransport(handler), sleep=delays.append) as fetcher:
        fetcher.download(URL, dest)

    assert calls["n"] == 4
    assert delays == [2.5, 2.5, 2.5]
    assert dest.read_bytes() == b"payload"


def test_download_retries_connection_errors(tmp_path, settings):
    handler, calls = flaky(2, error=httpx.ConnectError("reset"))
    with ChunkFetcher(settings, transport=httpx.MockTransport(handler), sleep=lambda s: None) as fetcher:
        fetcher.download(URL, tmp_path / "out.xz")
    assert calls["n"] == 3


def test_download_gives_up(tmp_path, settings):
    handler, calls = flaky(100)
    delays = []
    with ChunkFetcher(settings, transport=httpx.MockTransport(handler), sleep=delays.append) as fetcher:
        with pytest.raises(DownloadError, match="after 3 attempts"):
            fetcher.download(URL, tmp_path / "out.xz", label="c_1_5")
    assert calls["n"] == 3
    # No sleep after the final attempt
    assert len(delays) == 2


def test_redirects_are_followed(tmp_path, settings):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "github.com":
            return httpx.Response(302, headers={"Location": "https://objects.example/asset"})
        return httpx.Response(200, content=b"asset")

    dest = tmp_path / "out.xz"
    with ChunkFetcher(settings, transport=httpx.MockTransport(handler)) as fetcher:
        fetcher.download(URL, dest)
    assert dest.read_bytes() == b"asset"


def test_client_required(settings):
    fetcher = ChunkFetcher(settings)
    with pytest.raises(RuntimeError):
        fetcher.get_manifest()
