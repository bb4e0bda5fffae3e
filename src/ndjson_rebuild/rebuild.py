"""End-to-end archive rebuild: inspect, plan, fetch, decompress, trim, append."""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

import httpx
from rich.console import Console

from .appender import append_chunks
from .config import Settings
from .decompress import decompress_all
from .errors import CorruptTailError
from .fetcher import ChunkFetcher
from .local_state import inspect_archive, repair_tail
from .planner import Plan, plan_chunks
from .progress import TransferProgress, format_duration
from .trim import trim_chunk
from .workspace import ChunkWorkspace, WorkItem


class Outcome(str, Enum):
    UP_TO_DATE = "up-to-date"
    REPAIRED = "repaired"
    UPDATED = "updated"


@dataclass
class RunResult:
    """Summary of one rebuild run."""

    outcome: Outcome
    last_record: int = 0
    latest: int = 0
    chunks: list[str] = field(default_factory=list)
    bytes_appended: int = 0
    bytes_removed: int = 0


class Rebuilder:
    """Brings a local NDJSON archive up to the latest published post.

    The archive is only ever appended to, and only after every needed chunk
    has been downloaded and decompressed. Temp files for the run live beside
    the archive and are removed on every exit path.
    """

    def __init__(
        self,
        archive: Path,
        settings: Settings,
        console: Console | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.archive = archive
        self.settings = settings
        self.console = console or Console(stderr=True)
        self._transport = transport
        self._sleep = sleep

    def run(self, attempt_repair: bool = False) -> RunResult:
        start_time = time.time()

        try:
            state = inspect_archive(self.archive)
        except CorruptTailError:
            if not attempt_repair:
                raise
            return self._repair()

        progress = TransferProgress(self.console)
        with ChunkFetcher(self.settings, self._transport, self._sleep, progress) as fetcher:
            manifest = fetcher.get_manifest()
            plan = plan_chunks(manifest, state)

            if plan.up_to_date:
                self.console.print("[green]Local archive is already up to date. No updates needed.[/green]")
                return RunResult(Outcome.UP_TO_DATE, last_record=state.last_record, latest=manifest.latest)

            self.console.print(
                f"[cyan]Updating posts {plan.resume_point:,} → {plan.latest:,} "
                f"from {len(plan.chunks)} chunk(s)[/cyan]"
            )
            self.archive.parent.mkdir(parents=True, exist_ok=True)

            with ChunkWorkspace(self.archive.parent) as workspace:
                items = [workspace.allocate(chunk) for chunk in plan.chunks]
                with progress:
                    self._download(fetcher, items)
                self._decompress(items)
                if plan.needs_trim:
                    items[0] = self._trim(items[0], plan, workspace)
                appended = append_chunks(
                    self.archive,
                    items,
                    add_newline=state.missing_newline,
                    block_size=self.settings.copy_block_size,
                    on_append=self._announce_append,
                )

        self.console.print(
            f"[bold green]Updated posts from {plan.resume_point} to {plan.latest} "
            f"appended to {self.archive}.[/bold green]"
        )
        self.console.print(f"[dim]Finished in {format_duration(time.time() - start_time)}[/dim]")
        return RunResult(
            Outcome.UPDATED,
            last_record=state.last_record,
            latest=plan.latest,
            chunks=[item.chunk.name for item in items],
            bytes_appended=appended,
        )

    def _repair(self) -> RunResult:
        self.console.print("[yellow]Attempting to repair local NDJSON file by removing the last line...[/yellow]")
        size = self.archive.stat().st_size
        removed = repair_tail(self.archive)
        self.console.print(f"Truncated file to {size - removed} bytes ({removed} removed).")
        self.console.print("[dim]Run again to resume updating.[/dim]")
        return RunResult(Outcome.REPAIRED, bytes_removed=removed)

    def _download(self, fetcher: ChunkFetcher, items: list[WorkItem]) -> None:
        for item in items:
            self.console.print(f"Downloading {item.chunk.name} from {item.chunk.url}...")
            fetcher.download(item.chunk.url, item.compressed_path, label=item.chunk.name)
            self.console.print(f"Done downloading {item.chunk.name}.")

    def _decompress(self, items: list[WorkItem]) -> None:
        decompress_all(
            items,
            self.settings.workers,
            on_start=lambda item: self.console.print(f"Decompressing {item.chunk.name}..."),
            on_done=lambda item: self.console.print(f"Done decompressing {item.chunk.name}."),
        )
        self.console.print("All decompressions completed successfully.")

    def _trim(self, item: WorkItem, plan: Plan, workspace: ChunkWorkspace) -> WorkItem:
        chunk = item.chunk.starting_at(plan.resume_point)
        self.console.print(f"Trimming {item.chunk.name} to start from post {plan.resume_point}...")
        dest = workspace.temp_path(chunk.name, ".ndjson")
        span = trim_chunk(item.path, dest, plan.resume_point, self.settings)
        self.console.print(
            f"Overwrote {item.chunk.name} to start from post {plan.resume_point} at byte offset {span.start}."
        )
        self.console.print("Trim complete.")
        return item.with_chunk(chunk, dest)

    def _announce_append(self, item: WorkItem) -> None:
        self.console.print(f"Appending posts {item.chunk.start}–{item.chunk.end} from {item.chunk.name}...")


def rebuild(
    archive: Path,
    settings: Settings | None = None,
    attempt_repair: bool = False,
    console: Console | None = None,
    transport: httpx.BaseTransport | None = None,
) -> RunResult:
    """Convenience wrapper around ``Rebuilder(...).run()``."""
    return Rebuilder(archive, settings or Settings.from_env(), console, transport).run(attempt_repair)
