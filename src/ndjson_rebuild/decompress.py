"""Parallel xz decompression of downloaded chunks."""

import lzma
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from .errors import DecompressionError
from .workspace import WorkItem

READ_BLOCK_SIZE = 4 * 1024 * 1024


def decompress_file(src: Path, dest: Path, stop: threading.Event | None = None) -> bool:
    """Decompress an .xz file into ``dest`` block by block.

    Returns False if ``stop`` was set before the file was finished.

    Raises:
        DecompressionError: If the input is corrupt, truncated or unreadable
    """
    try:
        with lzma.open(src, "rb") as fin, open(dest, "wb") as fout:
            while True:
                if stop is not None and stop.is_set():
                    return False
                block = fin.read(READ_BLOCK_SIZE)
                if not block:
                    break
                fout.write(block)
    except (lzma.LZMAError, EOFError, OSError) as e:
        raise DecompressionError(f"Failed to decompress {src.name}: {e}") from e
    return True


def decompress_all(
    items: list[WorkItem],
    workers: int,
    on_start: Callable[[WorkItem], None] | None = None,
    on_done: Callable[[WorkItem], None] | None = None,
) -> None:
    """Decompress every item concurrently, stopping at the first failure.

    Each item's compressed file is deleted as soon as it has been
    decompressed. Completion order is arbitrary; callers keep ``items``
    in chunk order.
    """
    stop = threading.Event()

    def run(item: WorkItem) -> None:
        if stop.is_set():
            return
        if on_start:
            on_start(item)
        if not decompress_file(item.compressed_path, item.path, stop):
            return
        item.compressed_path.unlink(missing_ok=True)
        if on_done:
            on_done(item)

    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures: list[Future] = [pool.submit(run, item) for item in items]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            # Halt the rest: queued items never start, running ones
            # notice the event at their next block
            stop.set()
            for future in futures:
                future.cancel()
            raise
