"""Command-line interface for ndjson-rebuild."""

import signal
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import DEFAULT_ARCHIVE, Settings
from .errors import RebuildError
from .rebuild import Rebuilder

console = Console(stderr=True)


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


@click.command()
@click.argument("archive", type=click.Path(dir_okay=False, path_type=Path), default=DEFAULT_ARCHIVE)
@click.option(
    "--attempt-repair",
    "-r",
    is_flag=True,
    help="Remove a corrupted final line left by an interrupted run, then exit.",
)
@click.version_option(version=__version__)
def main(archive: Path, attempt_repair: bool) -> None:
    """Bring a local NDJSON post archive up to date from released chunks.

    Resumes from the last post already in ARCHIVE, downloading only the
    chunks that hold newer posts. Set REPO to pull releases from a
    different repository.

    Examples:

      # Update the default archive in the current directory
      ndjson-rebuild

      # Update a specific file
      ndjson-rebuild data/desuarchive_mlp_full.ndjson

      # Recover from an interrupted append
      ndjson-rebuild -r data/desuarchive_mlp_full.ndjson
    """
    try:
        settings = Settings.from_env()
    except ValidationError as e:
        console.print(f"[red]Error:[/red] invalid configuration: {escape(str(e))}")
        sys.exit(1)

    # Turn SIGTERM into SystemExit so temp files are cleaned up
    previous = signal.signal(signal.SIGTERM, _raise_system_exit)
    try:
        Rebuilder(archive, settings, console=console).run(attempt_repair=attempt_repair)
    except RebuildError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if e.hint:
            console.print(f"[yellow]{escape(e.hint)}[/yellow]")
        sys.exit(1)
    except OSError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. Temporary files removed.[/yellow]")
        console.print("[dim]If posts were being appended, run again with --attempt-repair.[/dim]")
        sys.exit(130)
    finally:
        signal.signal(signal.SIGTERM, previous)


if __name__ == "__main__":
    main()
