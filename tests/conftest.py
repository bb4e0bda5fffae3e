"""Shared fixtures: synthetic posts, xz chunks and a fake release host."""

import json
import lzma
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import httpx
import pytest

from ndjson_rebuild.config import Settings

REPO = "example/archive"


def record_line(num: int) -> bytes:
    """One NDJSON post; every seventh post is a not-found placeholder."""
    if num % 7 == 0:
        record = {"num": str(num), "exception": "Not found", "timestamp": 1700000000 + num}
    else:
        # Vary line length so probes land at uneven offsets
        record = {"num": str(num), "name": "Anonymous", "comment": "x" * (num % 13) + f"post {num}"}
    return json.dumps(record).encode() + b"\n"


def records(start: int, end: int) -> bytes:
    """Posts ``start``..``end`` inclusive."""
    return b"".join(record_line(n) for n in range(start, end + 1))


def xz(data: bytes) -> bytes:
    return lzma.compress(data, format=lzma.FORMAT_XZ)


def chunk_url(name: str) -> str:
    return f"https://github.com/{REPO}/releases/download/{name}/{name}.ndjson.xz"


MANIFEST_URL = f"https://raw.githubusercontent.com/{REPO}/main/manifest.json"


@dataclass
class FakeReleaseHost:
    """Serves a manifest and chunk assets; records every requested URL."""

    routes: dict[str, Callable[[httpx.Request], httpx.Response]] = field(default_factory=dict)
    requests: list[str] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url in self.routes:
            return self.routes[url](request)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def serve(self, url: str, body: bytes, status: int = 200) -> None:
        self.routes[url] = lambda request: httpx.Response(status, content=body)

    def serve_manifest(self, manifest: dict) -> None:
        self.serve(MANIFEST_URL, json.dumps(manifest).encode())

    def serve_chunk(self, name: str, start: int, end: int) -> None:
        self.serve(chunk_url(name), xz(records(start, end)))

    def chunk_requests(self) -> list[str]:
        return [url for url in self.requests if url != MANIFEST_URL]


@pytest.fixture
def host() -> FakeReleaseHost:
    return FakeReleaseHost()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        repo=REPO,
        download_attempts=3,
        retry_delay=0,
        workers=2,
        search_buffer_size=64,
        max_search_bytes=4096,
        copy_block_size=1024,
    )


@pytest.fixture
def archive(tmp_path: Path) -> Path:
    return tmp_path / "archive.ndjson"
