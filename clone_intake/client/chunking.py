"""
File identity and byte-range partitioning for chunked uploads
"""
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

DEFAULT_CHUNK_SIZE = 6 * 1024 * 1024  # 6MB, the media store's recommended chunk size
CHUNKED_UPLOAD_THRESHOLD = 20 * 1024 * 1024  # 20MB


@dataclass(frozen=True)
class LocalFile:
    """A file on disk as the uploader sees it"""
    path: Path
    name: str
    size: int
    last_modified_ms: int

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "LocalFile":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        stat = path.stat()
        return cls(
            path=path,
            name=path.name,
            size=stat.st_size,
            last_modified_ms=stat.st_mtime_ns // 1_000_000,
        )

    def read_range(self, start: int, end: int) -> bytes:
        """Bytes in [start, end)"""
        with open(self.path, "rb") as f:
            f.seek(start)
            return f.read(end - start)


def fingerprint(file: LocalFile) -> str:
    """
    Identity used to key resumable state.
    
    Name + size + mtime, not a content hash: two different files sharing all
    three are treated as the same upload.
    """
    return f"{file.name}_{file.size}_{file.last_modified_ms}"


def chunk_count(file_size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return math.ceil(file_size / chunk_size)


def chunk_range(index: int, chunk_size: int, file_size: int) -> tuple[int, int]:
    """Half-open byte range [start, end) of chunk `index`"""
    start = index * chunk_size
    end = min(start + chunk_size, file_size)
    return start, end


def should_use_chunked_upload(file_size: int, threshold: int = CHUNKED_UPLOAD_THRESHOLD) -> bool:
    return file_size > threshold
