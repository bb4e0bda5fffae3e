"""Append prepared chunk files to the local archive."""

import shutil
from pathlib import Path
from typing import Callable

from .workspace import WorkItem


def append_chunks(
    archive: Path,
    items: list[WorkItem],
    add_newline: bool = False,
    block_size: int = 16 * 1024 * 1024,
    on_append: Callable[[WorkItem], None] | None = None,
) -> int:
    """Append each item's uncompressed chunk to ``archive`` in list order.

    Sources are deleted as soon as they have been copied. This is not
    transactional: a failure part way leaves a valid prefix followed by a
    partial chunk, which ``--attempt-repair`` can clean up.

    Args:
        archive: Local NDJSON archive (created if missing)
        items: Work items in ascending chunk order
        add_newline: Terminate the archive's final record before appending
        block_size: Copy buffer size
        on_append: Called before each chunk is appended

    Returns:
        Total bytes appended
    """
    written = 0
    with open(archive, "ab") as out:
        if add_newline:
            written += out.write(b"\n")
        for item in items:
            if on_append:
                on_append(item)
            with open(item.path, "rb") as src:
                shutil.copyfileobj(src, out, block_size)
                size = src.tell()
                written += size
                if size:
                    src.seek(size - 1)
                    if src.read(1) != b"\n":
                        # Keep the next chunk on its own line
                        written += out.write(b"\n")
            item.path.unlink(missing_ok=True)
    return written
