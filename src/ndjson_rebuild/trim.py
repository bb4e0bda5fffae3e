"""Cut the already-archived head off the first downloaded chunk."""

import shutil
from pathlib import Path

from .config import Settings
from .errors import OffsetSearchError
from .locator import LineSpan, check_ascending_sample, locate_record


def copy_from_offset(src: Path, dest: Path, offset: int, block_size: int = 16 * 1024 * 1024) -> int:
    """Bulk-copy bytes ``[offset, EOF)`` of ``src`` into ``dest``.

    Returns the number of bytes written.
    """
    with open(src, "rb") as fin, open(dest, "wb") as fout:
        fin.seek(offset)
        shutil.copyfileobj(fin, fout, block_size)
        return fout.tell()


def trim_chunk(src: Path, dest: Path, first_post: int, settings: Settings) -> LineSpan:
    """Write the records of ``src`` from ``first_post`` onward into ``dest``.

    ``src`` is deleted once the trimmed copy exists.

    Raises:
        OffsetSearchError: If ``first_post`` cannot be located in ``src``
    """
    try:
        check_ascending_sample(
            src,
            first_post,
            samples=settings.order_samples,
            max_search_bytes=settings.max_search_bytes,
            buffer_size=settings.search_buffer_size,
        )
        span = locate_record(
            src,
            first_post,
            max_search_bytes=settings.max_search_bytes,
            buffer_size=settings.search_buffer_size,
        )
        copy_from_offset(src, dest, span.start, settings.copy_block_size)
    except OSError as e:
        raise OffsetSearchError(f"Failed to trim {src.name}: {e}") from e

    src.unlink(missing_ok=True)
    return span
