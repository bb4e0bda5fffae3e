"""HTTP retrieval of the manifest and chunk release assets."""

import time
from pathlib import Path
from typing import Callable

import httpx

from .config import Settings
from .errors import DownloadError
from .manifest import Manifest, fetch_manifest
from .progress import TransferProgress

STREAM_CHUNK_SIZE = 1024 * 1024


class ChunkFetcher:
    """Sequential downloader for chunk release assets.

    Chunks are fetched one at a time; the release host rate-limits bursts
    and a fixed retry budget per chunk is easier to reason about.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        progress: TransferProgress | None = None,
    ):
        self.settings = settings
        self.attempts = settings.download_attempts
        self.retry_delay = settings.retry_delay
        self._transport = transport
        self._sleep = sleep
        self._progress = progress
        self._client: httpx.Client | None = None

    def __enter__(self) -> "ChunkFetcher":
        self._client = httpx.Client(
            timeout=httpx.Timeout(self.settings.request_timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            raise RuntimeError("ChunkFetcher used outside of its context")
        return self._client

    def get_manifest(self) -> Manifest:
        """Fetch the release manifest (single attempt)."""
        return fetch_manifest(self.client, self.settings)

    def _stream_to(self, url: str, dest: Path, label: str) -> int:
        """Stream one response body into ``dest``, returning bytes written."""
        written = 0
        with self.client.stream("GET", url) as resp:
            resp.raise_for_status()
            length = resp.headers.get("Content-Length", "")
            total = int(length) if length.isdigit() else None
            if self._progress:
                self._progress.begin(label, total)
            with open(dest, "wb") as f:
                for data in resp.iter_bytes(STREAM_CHUNK_SIZE):
                    f.write(data)
                    written += len(data)
                    if self._progress:
                        self._progress.advance(len(data))
        return written

    def download(self, url: str, dest: Path, label: str | None = None) -> int:
        """Download ``url`` into ``dest``, retrying with a fixed delay.

        Each attempt rewrites ``dest`` from scratch.

        Raises:
            DownloadError: When every attempt has failed
        """
        label = label or url
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                return self._stream_to(url, dest, label)
            except (httpx.HTTPError, OSError) as e:
                last_error = e
                if attempt < self.attempts:
                    self._sleep(self.retry_delay)
            finally:
                if self._progress:
                    self._progress.end()

        raise DownloadError(
            f"Failed to download {label} from {url} after {self.attempts} attempts: {last_error}"
        ) from last_error
