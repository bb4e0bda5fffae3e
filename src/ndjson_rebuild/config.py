"""Configuration and URL management for ndjson-rebuild."""

import os

from pydantic import BaseModel, Field

DEFAULT_REPO = "firlin123/desu-mlp"
DEFAULT_ARCHIVE = "desuarchive_mlp_full.ndjson"


def _default_workers() -> int:
    return os.cpu_count() or 4


class Settings(BaseModel):
    """Tunables for a single rebuild run."""

    repo: str = Field(default=DEFAULT_REPO, min_length=1)

    # Downloads
    download_attempts: int = Field(default=10, ge=1)
    retry_delay: float = Field(default=60.0, ge=0)
    request_timeout: float = Field(default=60.0, gt=0)

    # Decompression
    workers: int = Field(default_factory=_default_workers, ge=1)

    # Offset search
    max_search_bytes: int = Field(default=1024 * 1024, gt=0)
    search_buffer_size: int = Field(default=64 * 1024, gt=0)
    order_samples: int = Field(default=16, ge=2)

    # Bulk copies (trim and append)
    copy_block_size: int = Field(default=16 * 1024 * 1024, gt=0)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings, applying environment overrides.

        REPO selects the GitHub repository the chunks are released from.
        REBUILD_DOWNLOAD_ATTEMPTS, REBUILD_RETRY_DELAY and REBUILD_WORKERS
        adjust the retry and worker budget.
        """
        data: dict[str, str] = {}
        if repo := os.environ.get("REPO"):
            data["repo"] = repo
        if attempts := os.environ.get("REBUILD_DOWNLOAD_ATTEMPTS"):
            data["download_attempts"] = attempts
        if delay := os.environ.get("REBUILD_RETRY_DELAY"):
            data["retry_delay"] = delay
        if workers := os.environ.get("REBUILD_WORKERS"):
            data["workers"] = workers
        return cls.model_validate(data)

    @property
    def manifest_url(self) -> str:
        return f"https://raw.githubusercontent.com/{self.repo}/main/manifest.json"

    @property
    def release_base_url(self) -> str:
        return f"https://github.com/{self.repo}/releases/download"

    def chunk_url(self, name: str) -> str:
        """Release asset URL for a monthly or daily chunk."""
        return f"{self.release_base_url}/{name}/{name}.ndjson.xz"
