"""Tests for trimming the first chunk and appending chunks to the archive."""

from pathlib import Path

import pytest

from ndjson_rebuild.appender import append_chunks
from ndjson_rebuild.errors import OffsetSearchError
from ndjson_rebuild.manifest import ChunkDescriptor
from ndjson_rebuild.trim import copy_from_offset, trim_chunk
from ndjson_rebuild.workspace import WorkItem

from conftest import records


def item(tmp_path: Path, start: int, end: int, data: bytes | None = None) -> WorkItem:
    name = f"c_{start}_{end}"
    path = tmp_path / f"{name}.ndjson"
    path.write_bytes(records(start, end) if data is None else data)
    chunk = ChunkDescriptor(name=name, url="https://x", start=start, end=end)
    return WorkItem(chunk=chunk, compressed_path=tmp_path / f"{name}.ndjson.xz", path=path)


def test_copy_from_offset(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"0123456789")
    dest = tmp_path / "dest"
    assert copy_from_offset(src, dest, 4, block_size=3) == 6
    assert dest.read_bytes() == b"456789"


@pytest.mark.parametrize("resume", [202, 251, 299, 300])
def test_trim_seam_is_exact(tmp_path, settings, resume):
    local = records(1, resume - 1)
    src = tmp_path / "chunk.ndjson"
    src.write_bytes(records(201, 300))
    dest = tmp_path / "trimmed.ndjson"

    span = trim_chunk(src, dest, resume, settings)

    assert local + dest.read_bytes() == records(1, 300)
    assert dest.read_bytes().startswith(records(resume, resume))
    assert span.start == len(records(201, resume - 1))
    assert not src.exists()


def test_trim_failure_keeps_source(tmp_path, settings):
    src = tmp_path / "chunk.ndjson"
    src.write_bytes(records(201, 300))
    with pytest.raises(OffsetSearchError):
        trim_chunk(src, tmp_path / "out", 400, settings)
    assert src.exists()


def test_append_in_list_order(tmp_path, archive):
    archive.write_bytes(records(1, 10))
    items = [item(tmp_path, 11, 20), item(tmp_path, 21, 25), item(tmp_path, 26, 40)]
    seen = []

    written = append_chunks(archive, items, block_size=32, on_append=lambda i: seen.append(i.chunk.name))

    assert archive.read_bytes() == records(1, 40)
    assert written == len(records(11, 40))
    assert seen == ["c_11_20", "c_21_25", "c_26_40"]
    assert not any(i.path.exists() for i in items)


def test_append_creates_missing_archive(tmp_path, archive):
    append_chunks(archive, [item(tmp_path, 1, 5)])
    assert archive.read_bytes() == records(1, 5)


def test_append_terminates_unterminated_archive(tmp_path, archive):
    archive.write_bytes(records(1, 10).rstrip(b"\n"))
    append_chunks(archive, [item(tmp_path, 11, 12)], add_newline=True)
    assert archive.read_bytes() == records(1, 12)


def test_append_separates_unterminated_chunks(tmp_path, archive):
    first = item(tmp_path, 1, 3, data=records(1, 3).rstrip(b"\n"))
    append_chunks(archive, [first, item(tmp_path, 4, 6)])
    assert archive.read_bytes() == records(1, 6)
