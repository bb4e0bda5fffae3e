"""Rich progress display for chunk downloads."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)


def format_duration(seconds: float | None) -> str:
    """Format seconds as human-readable duration."""
    if seconds is None:
        return "—"
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        mins = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{mins}m {secs}s"
    hours = int(seconds // 3600)
    mins = int((seconds % 3600) // 60)
    return f"{hours}h {mins}m"


class TransferProgress:
    """Byte-level transfer bar, one task per download attempt.

    Disabled automatically when the console is not a terminal.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=self.console,
            transient=True,
            disable=not self.console.is_terminal,
        )
        self._task: TaskID | None = None

    def __enter__(self) -> "TransferProgress":
        self._progress.start()
        return self

    def __exit__(self, *args):
        self.stop()

    def stop(self):
        """Stop the live display and restore terminal state."""
        self._progress.stop()
        # Always restore cursor visibility
        self.console.show_cursor(True)

    def begin(self, label: str, total: int | None):
        """Start tracking a new transfer."""
        self.end()
        self._task = self._progress.add_task(label, total=total)

    def advance(self, count: int):
        if self._task is not None:
            self._progress.advance(self._task, count)

    def end(self):
        """Drop the current transfer's bar, if any."""
        if self._task is not None:
            self._progress.remove_task(self._task)
            self._task = None
