"""
Resumable upload state, persisted per file fingerprint.

The orchestrator records every committed chunk here before moving on, so a
crash loses at most the chunk that was in flight. Records older than the
retention window are discarded and the upload restarts from chunk 0.
Nothing in this module raises on persistence failure: a broken store
degrades uploads to non-resumable instead of failing them.
"""
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

from .chunking import DEFAULT_CHUNK_SIZE, LocalFile, chunk_count, fingerprint

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "chunked_upload_"
RETENTION_SECONDS = 24 * 60 * 60


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store; state is lost when the process exits"""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueStore:
    """
    All keys in one JSON document on disk.
    
    Every write rewrites the document through a temp file and os.replace, so
    readers never observe a half-written file. Not safe for concurrent
    writers in different processes.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".uploads-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


@dataclass
class UploadSession:
    file_fingerprint: str
    upload_session_id: str
    committed_chunk_indices: set[int] = field(default_factory=set)
    started_at: float = field(default_factory=time.time)
    chunk_size: Optional[int] = None

    def to_json(self) -> str:
        return json.dumps({
            "file_fingerprint": self.file_fingerprint,
            "upload_session_id": self.upload_session_id,
            "committed_chunk_indices": sorted(self.committed_chunk_indices),
            "started_at": self.started_at,
            "chunk_size": self.chunk_size,
        })

    @classmethod
    def from_json(cls, raw: str) -> "UploadSession":
        data = json.loads(raw)
        return cls(
            file_fingerprint=str(data["file_fingerprint"]),
            upload_session_id=str(data["upload_session_id"]),
            committed_chunk_indices={int(i) for i in data.get("committed_chunk_indices", [])},
            started_at=float(data["started_at"]),
            chunk_size=int(data["chunk_size"]) if data.get("chunk_size") is not None else None,
        )


class ResumableStateStore:
    """load / save / clear of UploadSession records keyed by fingerprint"""

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.time,
        retention_seconds: float = RETENTION_SECONDS,
    ):
        self.kv = kv if kv is not None else MemoryKeyValueStore()
        self.clock = clock
        self.retention_seconds = retention_seconds

    @staticmethod
    def _key(file_fingerprint: str) -> str:
        return f"{STORAGE_KEY_PREFIX}{file_fingerprint}"

    def load(self, file_fingerprint: str) -> Optional[UploadSession]:
        try:
            raw = self.kv.get(self._key(file_fingerprint))
        except Exception as e:
            logger.warning(f"Failed to read upload state for {file_fingerprint}: {e}")
            return None
        if not raw:
            return None

        try:
            session = UploadSession.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable upload state for {file_fingerprint}: {e}")
            self.clear(file_fingerprint)
            return None

        if self.clock() - session.started_at > self.retention_seconds:
            logger.info(f"Upload state for {file_fingerprint} expired, starting over")
            self.clear(file_fingerprint)
            return None

        return session

    def save(self, session: UploadSession) -> None:
        try:
            self.kv.set(self._key(session.file_fingerprint), session.to_json())
        except Exception as e:
            logger.warning(f"Failed to save upload state for {session.file_fingerprint}: {e}")

    def clear(self, file_fingerprint: str) -> None:
        try:
            self.kv.delete(self._key(file_fingerprint))
        except Exception as e:
            logger.warning(f"Failed to clear upload state for {file_fingerprint}: {e}")


def get_upload_status(
    file: LocalFile,
    store: ResumableStateStore,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Optional[dict]:
    """{"resumable": True, "progress": <percent committed>} or None"""
    session = store.load(fingerprint(file))
    if session is None:
        return None
    total = chunk_count(file.size, chunk_size)
    progress = round(len(session.committed_chunk_indices) / total * 100) if total else 0
    return {"resumable": True, "progress": progress}


def clear_pending_upload(file: LocalFile, store: ResumableStateStore) -> None:
    store.clear(fingerprint(file))
