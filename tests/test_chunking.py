import pytest

from clone_intake.client import (
    DEFAULT_CHUNK_SIZE,
    LocalFile,
    chunk_count,
    chunk_range,
    fingerprint,
    should_use_chunked_upload,
)
from conftest import make_file

MB = 1024 * 1024


def test_default_chunk_size_is_6mb():
    assert DEFAULT_CHUNK_SIZE == 6 * MB


@pytest.mark.parametrize("size,chunk,expected", [
    (0, 6, 0),
    (1, 6, 1),
    (6, 6, 1),
    (7, 6, 2),
    (50 * MB, 6 * MB, 9),
])
def test_chunk_count_is_ceiling(size, chunk, expected):
    assert chunk_count(size, chunk) == expected


def test_chunk_ranges_cover_file_without_gaps():
    size, chunk = 50 * MB, 6 * MB
    total = chunk_count(size, chunk)
    ranges = [chunk_range(i, chunk, size) for i in range(total)]

    assert ranges[0][0] == 0
    assert ranges[-1][1] == size
    for (_, prev_end), (next_start, _) in zip(ranges, ranges[1:]):
        assert prev_end == next_start

    last_start, last_end = ranges[-1]
    assert last_end - last_start == size - (total - 1) * chunk == 2 * MB
    assert 0 < last_end - last_start <= chunk


def test_chunk_count_rejects_non_positive_chunk_size():
    with pytest.raises(ValueError):
        chunk_count(10, 0)


def test_fingerprint_uses_name_size_and_mtime(tmp_path):
    file = make_file(tmp_path / "take1.mp4", 100)
    assert fingerprint(file) == f"take1.mp4_100_{file.last_modified_ms}"


def test_fingerprint_of_empty_file(tmp_path):
    file = make_file(tmp_path / "empty.webm", 0)
    assert fingerprint(file).startswith("empty.webm_0_")


def test_local_file_reads_half_open_range(tmp_path):
    file = make_file(tmp_path / "clip.mov", 1000)
    data = file.read_range(10, 20)
    assert data == bytes(i % 251 for i in range(10, 20))


def test_local_file_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        LocalFile.from_path(tmp_path / "nope.mp4")


def test_chunked_upload_threshold():
    assert not should_use_chunked_upload(20 * MB)
    assert should_use_chunked_upload(20 * MB + 1)
    assert should_use_chunked_upload(5, threshold=4)
