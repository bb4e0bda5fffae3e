"""Byte-level binary search for a post inside an uncompressed chunk.

Chunk files can be tens of gigabytes, so nothing here reads more than a
bounded window around each probe. The search assumes the file holds one
record per line, strictly ascending and gap-free by ``num``; that is a
property of how chunks are produced, not something the search proves.
``check_ascending_sample`` is a cheap spot check run beforehand.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .errors import OffsetSearchError
from .records import record_number

DEFAULT_MAX_SEARCH_BYTES = 1024 * 1024
DEFAULT_BUFFER_SIZE = 64 * 1024


@dataclass(frozen=True)
class LineSpan:
    """Byte range ``[start, end)`` of one line, excluding its newline."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


class RecordFile:
    """Random access to the lines of an open NDJSON file."""

    def __init__(
        self,
        f: BinaryIO,
        max_search_bytes: int = DEFAULT_MAX_SEARCH_BYTES,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        self.f = f
        self.size = f.seek(0, os.SEEK_END)
        self.max_search_bytes = max_search_bytes
        self.buffer_size = buffer_size

    def _read(self, start: int, count: int) -> bytes:
        self.f.seek(start)
        return self.f.read(count)

    def _check_budget(self, scanned: int, what: str) -> None:
        if scanned > self.max_search_bytes:
            raise OffsetSearchError(
                f"Reached maximum search limit ({self.max_search_bytes} bytes) without finding {what}."
            )

    def line_at(self, pos: int) -> LineSpan:
        """Find the line containing byte ``pos``.

        A newline byte belongs to the line it terminates.
        """
        scanned = 0

        # Backward to the previous newline (or start of file)
        line_start = 0
        read_pos = pos
        while read_pos > 0:
            read_start = max(0, read_pos - self.buffer_size)
            block = self._read(read_start, read_pos - read_start)
            newline = block.rfind(b"\n")
            if newline != -1:
                line_start = read_start + newline + 1
                break
            scanned += len(block)
            self._check_budget(scanned, "line start")
            read_pos = read_start

        # Forward to the next newline (or end of file)
        line_end = self.size
        read_pos = pos
        while read_pos < self.size:
            block = self._read(read_pos, min(self.buffer_size, self.size - read_pos))
            if not block:
                break
            newline = block.find(b"\n")
            if newline != -1:
                line_end = read_pos + newline
                break
            scanned += len(block)
            self._check_budget(scanned, "line end")
            read_pos += len(block)

        return LineSpan(line_start, line_end)

    def record_at(self, pos: int) -> tuple[LineSpan, int]:
        """Return the span and post number of the line containing ``pos``."""
        span = self.line_at(pos)
        if span.length <= 0:
            raise OffsetSearchError(f"Failed to determine line boundaries at byte {pos}.")
        if span.length >= self.max_search_bytes:
            raise OffsetSearchError(f"Line at byte {span.start} exceeds maximum search limit.")
        line = self._read(span.start, span.length)
        try:
            return span, record_number(line)
        except ValueError as e:
            raise OffsetSearchError(f"Failed to parse post JSON at byte {span.start}: {e}") from e

    def find(self, target: int) -> LineSpan:
        """Binary search byte offsets for the line whose ``num`` equals ``target``."""
        low, high = 0, self.size - 1
        while low <= high:
            mid = (low + high) // 2
            span, num = self.record_at(mid)
            if num < target:
                low = span.end + 1
            elif num > target:
                high = span.start - 1
            else:
                return span
        raise OffsetSearchError(f"Failed to locate post {target} in remote file.")

    def sample(self, count: int) -> list[tuple[LineSpan, int]]:
        """Post numbers at ``count`` evenly spaced offsets, first and last line included."""
        if self.size == 0:
            return []
        count = max(2, count)
        last = self.size - 1
        offsets = sorted({last * i // (count - 1) for i in range(count)})
        records: list[tuple[LineSpan, int]] = []
        for offset in offsets:
            span, num = self.record_at(offset)
            if records and records[-1][0] == span:
                continue
            records.append((span, num))
        return records


def locate_record(
    path: Path,
    target: int,
    max_search_bytes: int = DEFAULT_MAX_SEARCH_BYTES,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> LineSpan:
    """Find the byte range of the record numbered ``target`` in ``path``.

    Raises:
        OffsetSearchError: If the file is malformed or ``target`` is absent
    """
    with open(path, "rb") as f:
        return RecordFile(f, max_search_bytes, buffer_size).find(target)


def check_ascending_sample(
    path: Path,
    target: int,
    samples: int = 16,
    max_search_bytes: int = DEFAULT_MAX_SEARCH_BYTES,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> None:
    """Spot-check that sampled records ascend and bracket ``target``.

    Raises:
        OffsetSearchError: On an out-of-order sample or an out-of-range target
    """
    with open(path, "rb") as f:
        records = RecordFile(f, max_search_bytes, buffer_size).sample(samples)

    if not records:
        raise OffsetSearchError(f"Cannot search for post {target}; {path.name} is empty.")

    for (prev_span, prev_num), (span, num) in zip(records, records[1:]):
        if num <= prev_num:
            raise OffsetSearchError(
                f"{path.name} is not in ascending order: post {prev_num} at byte "
                f"{prev_span.start} is followed by post {num} at byte {span.start}."
            )

    first, last = records[0][1], records[-1][1]
    if not first <= target <= last:
        raise OffsetSearchError(f"Post {target} is outside the range {first}-{last} held by {path.name}.")
