"""Inspection and tail repair of the local NDJSON archive."""

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import CorruptTailError
from .records import record_number

TAIL_BLOCK_SIZE = 64 * 1024

REPAIR_HINT = (
    "If the process was interrupted, consider using --attempt-repair (-r) "
    "to remove the last corrupted line."
)


@dataclass(frozen=True)
class LocalArchiveState:
    """What the local archive already holds."""

    last_record: int = 0
    # A valid final record without a trailing newline
    missing_newline: bool = False

    @property
    def resume_point(self) -> int:
        return self.last_record + 1


@dataclass(frozen=True)
class TailLine:
    """The final line of a file and where it starts."""

    data: bytes
    offset: int
    terminated: bool


def read_tail_line(path: Path, block_size: int = TAIL_BLOCK_SIZE) -> TailLine:
    """Read the last line of a file by scanning backwards from the end.

    Only the final line is read, so this is cheap for very large files.
    A trailing newline terminates the last line rather than starting a
    new empty one.
    """
    with open(path, "rb") as f:
        size = f.seek(0, os.SEEK_END)
        if size == 0:
            return TailLine(b"", 0, False)

        f.seek(size - 1)
        terminated = f.read(1) == b"\n"
        line_end = size - 1 if terminated else size

        parts: list[bytes] = []
        pos = line_end
        while pos > 0:
            read_start = max(0, pos - block_size)
            f.seek(read_start)
            block = f.read(pos - read_start)
            newline = block.rfind(b"\n")
            if newline != -1:
                parts.append(block[newline + 1:])
                pos = read_start + newline + 1
                break
            parts.append(block)
            pos = read_start

    return TailLine(b"".join(reversed(parts)), pos, terminated)


def inspect_archive(path: Path) -> LocalArchiveState:
    """Determine the last post number present in the local archive.

    Raises:
        CorruptTailError: If the final line is not a parseable record
    """
    if not path.exists():
        return LocalArchiveState()

    try:
        tail = read_tail_line(path)
    except OSError as e:
        raise CorruptTailError(f"Failed to read local NDJSON file: {e}") from e

    if tail.offset == 0 and not tail.data and not tail.terminated:
        # Empty file
        return LocalArchiveState()

    try:
        last = record_number(tail.data)
    except ValueError as e:
        raise CorruptTailError(
            f"Failed to parse local NDJSON file {path}: {e}",
            hint=REPAIR_HINT,
        ) from e

    return LocalArchiveState(last_record=last, missing_newline=not tail.terminated)


def repair_tail(path: Path) -> int:
    """Truncate the final line of the archive, returning bytes removed.

    Every byte before the final line is left untouched.
    """
    try:
        size = path.stat().st_size
        tail = read_tail_line(path)
    except OSError as e:
        raise CorruptTailError(f"Cannot repair {path}: {e}") from e

    if size == 0:
        raise CorruptTailError(f"Cannot repair {path}; it is empty.")

    os.truncate(path, tail.offset)
    return size - tail.offset
