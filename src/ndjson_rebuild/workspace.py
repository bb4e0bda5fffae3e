"""Temporary files owned by one rebuild run."""

import os
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path

from .manifest import ChunkDescriptor


@dataclass(frozen=True)
class WorkItem:
    """A planned chunk and the temp files that carry it through the run."""

    chunk: ChunkDescriptor
    compressed_path: Path
    path: Path

    def with_chunk(self, chunk: ChunkDescriptor, path: Path) -> "WorkItem":
        return replace(self, chunk=chunk, path=path)


class ChunkWorkspace:
    """Allocates temp files beside the archive and removes them all on exit.

    Every path handed out is removed when the context exits, whether the
    run succeeded, failed or was interrupted.

        with ChunkWorkspace(archive.parent) as ws:
            items = [ws.allocate(chunk) for chunk in plan.chunks]
            ...
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self._paths: list[Path] = []

    def __enter__(self) -> "ChunkWorkspace":
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()

    def temp_path(self, name: str, suffix: str) -> Path:
        """Create an empty temp file named ``<name><suffix>.tmp.XXXXXX``."""
        fd, raw = tempfile.mkstemp(prefix=f"{name}{suffix}.tmp.", dir=self.directory)
        os.close(fd)
        path = Path(raw)
        self._paths.append(path)
        return path

    def allocate(self, chunk: ChunkDescriptor) -> WorkItem:
        return WorkItem(
            chunk=chunk,
            compressed_path=self.temp_path(chunk.name, ".ndjson.xz"),
            path=self.temp_path(chunk.name, ".ndjson"),
        )

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def cleanup(self) -> None:
        """Remove every temp file this workspace created."""
        while self._paths:
            self._paths.pop().unlink(missing_ok=True)
