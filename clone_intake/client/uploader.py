"""
Chunked, resumable upload orchestration.

Drives the splitter, the resumable state store and the chunk transport:
chunks go up strictly in index order, progress is persisted after every
committed chunk, and the final chunk's response is the upload result.
A failed run can simply be repeated; it resumes from the persisted state.
"""
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from ..core.errors import ConcurrentUploadError, EmptyResultError, UploadChunkFailed
from .chunking import DEFAULT_CHUNK_SIZE, LocalFile, chunk_count, chunk_range, fingerprint
from .state import ResumableStateStore, UploadSession
from .transport import ChunkMeta, ChunkTransport, UploadParams

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
SPEED_WINDOW_SECONDS = 0.1

# Fingerprints with an upload running in this process
_active_uploads: set[str] = set()


@dataclass
class UploadProgress:
    loaded: int
    total: int
    percentage: int
    current_chunk: int
    total_chunks: int
    speed: float  # bytes per second over the latest window
    average_speed: float  # bytes per second since this run started
    remaining_time: float  # seconds


@dataclass
class ChunkedUploadConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    on_progress: Optional[Callable[[UploadProgress], None]] = None
    on_chunk_complete: Optional[Callable[[int, int], None]] = None
    on_error: Optional[Callable[[Exception, int], None]] = None


@dataclass
class RemoteUploadResult:
    """Complete-object metadata returned with the final chunk"""
    remote_id: str
    secure_url: str
    bytes: int
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict) -> "RemoteUploadResult":
        return cls(
            remote_id=data.get("public_id", ""),
            secure_url=data.get("secure_url") or data.get("url", ""),
            bytes=int(data.get("bytes") or 0),
            duration=data.get("duration"),
            width=data.get("width"),
            height=data.get("height"),
            raw=dict(data),
        )


def new_session_id(now: Optional[float] = None) -> str:
    """Time-based id with a random suffix"""
    now = time.time() if now is None else now
    return f"{int(now * 1000)}_{secrets.token_hex(6)}"


class _ProgressTracker:
    """Cumulative bytes, windowed throughput and ETA for one run"""

    def __init__(self, file_size: int, already_uploaded: int, total_chunks: int, clock: Callable[[], float]):
        self.file_size = file_size
        self.total_chunks = total_chunks
        self.clock = clock
        self.committed_bytes = already_uploaded
        self.run_start_bytes = already_uploaded
        self.started = clock()
        self.window_start = self.started
        self.window_bytes = already_uploaded
        self.speed = 0.0

    def snapshot(self, in_flight: int, chunk_index: int) -> UploadProgress:
        loaded = min(self.committed_bytes + in_flight, self.file_size)
        now = self.clock()
        elapsed = now - self.window_start
        if elapsed > SPEED_WINDOW_SECONDS:
            self.speed = (loaded - self.window_bytes) / elapsed
            self.window_start = now
            self.window_bytes = loaded

        run_elapsed = now - self.started
        average = (loaded - self.run_start_bytes) / run_elapsed if run_elapsed > 0 else 0.0
        remaining = (self.file_size - loaded) / self.speed if self.speed > 0 else 0.0
        return UploadProgress(
            loaded=loaded,
            total=self.file_size,
            percentage=round(loaded / self.file_size * 100) if self.file_size else 100,
            current_chunk=chunk_index + 1,
            total_chunks=self.total_chunks,
            speed=self.speed,
            average_speed=average,
            remaining_time=remaining,
        )


class ChunkedUploader:
    """
    Orchestrates one chunked upload per call.
    
    Only one upload per file fingerprint may run in this process at a time;
    uploads of the same file from separate processes sharing one state file
    are not coordinated.
    """

    def __init__(
        self,
        transport: ChunkTransport,
        state_store: Optional[ResumableStateStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.state_store = state_store or ResumableStateStore()
        self.clock = clock

    def _open_session(self, file_id: str, total_chunks: int, chunk_size: int) -> UploadSession:
        session = self.state_store.load(file_id)
        if session and session.chunk_size != chunk_size:
            # Committed indices only mean something under the chunk size they were saved with
            logger.info(f"Chunk size changed for {file_id}, starting a new upload session")
            session = None
        if session and session.upload_session_id:
            # The final chunk is always re-sent: its response is the only
            # source of the upload result and it may not have been captured.
            session.committed_chunk_indices.discard(total_chunks - 1)
            session.committed_chunk_indices = {
                i for i in session.committed_chunk_indices if 0 <= i < total_chunks
            }
            logger.info(
                f"Resuming upload {session.upload_session_id}: "
                f"{len(session.committed_chunk_indices)}/{total_chunks} chunks already uploaded"
            )
            return session

        session = UploadSession(
            file_fingerprint=file_id,
            upload_session_id=new_session_id(),
            committed_chunk_indices=set(),
            started_at=self.state_store.clock(),
            chunk_size=chunk_size,
        )
        self.state_store.save(session)
        return session

    async def upload_file_chunked(
        self,
        file: LocalFile,
        upload_params: UploadParams,
        config: Optional[ChunkedUploadConfig] = None,
    ) -> RemoteUploadResult:
        config = config or ChunkedUploadConfig()
        file_id = fingerprint(file)
        if file_id in _active_uploads:
            raise ConcurrentUploadError(f"An upload of {file.name} is already in progress")
        _active_uploads.add(file_id)
        try:
            return await self._run(file, file_id, upload_params, config)
        finally:
            _active_uploads.discard(file_id)

    async def _run(
        self,
        file: LocalFile,
        file_id: str,
        upload_params: UploadParams,
        config: ChunkedUploadConfig,
    ) -> RemoteUploadResult:
        total_chunks = chunk_count(file.size, config.chunk_size)
        session = self._open_session(file_id, total_chunks, config.chunk_size)

        already_uploaded = sum(
            end - start
            for start, end in (
                chunk_range(i, config.chunk_size, file.size) for i in session.committed_chunk_indices
            )
        )
        tracker = _ProgressTracker(file.size, already_uploaded, total_chunks, self.clock)
        result: Optional[dict] = None

        for chunk_index in range(total_chunks):
            if chunk_index in session.committed_chunk_indices:
                logger.info(f"Skipping chunk {chunk_index + 1}/{total_chunks} (already uploaded)")
                continue

            start, end = chunk_range(chunk_index, config.chunk_size, file.size)
            meta = ChunkMeta(
                index=chunk_index,
                total_chunks=total_chunks,
                start=start,
                end=end,
                file_size=file.size,
                filename=file.name,
            )

            def report(sent: int, index: int = chunk_index) -> None:
                if config.on_progress:
                    config.on_progress(tracker.snapshot(sent, index))

            try:
                chunk = file.read_range(start, end)
                response = await self.transport.upload_chunk(
                    chunk,
                    meta,
                    upload_params,
                    session.upload_session_id,
                    max_retries=config.max_retries,
                    retry_delay=config.retry_delay,
                    on_byte_progress=report,
                )
            except UploadChunkFailed as e:
                logger.error(f"❌ Failed to upload chunk {chunk_index + 1}/{total_chunks}: {e.cause}")
                if config.on_error:
                    config.on_error(e, chunk_index)
                raise
            except OSError as e:
                logger.error(f"❌ Could not read chunk {chunk_index + 1}/{total_chunks}: {e}")
                if config.on_error:
                    config.on_error(e, chunk_index)
                raise UploadChunkFailed(chunk_index, total_chunks, e) from e

            session.committed_chunk_indices.add(chunk_index)
            self.state_store.save(session)
            tracker.committed_bytes += end - start
            report(0)

            if config.on_chunk_complete:
                config.on_chunk_complete(chunk_index + 1, total_chunks)

            if chunk_index == total_chunks - 1:
                result = response

        self.state_store.clear(file_id)

        if result is None:
            raise EmptyResultError("Upload completed but no result received")

        upload_result = RemoteUploadResult.from_response(result)
        logger.info(f"✅ Upload completed successfully: {upload_result.secure_url}")
        return upload_result


async def upload_file_chunked(
    file: LocalFile,
    upload_params: UploadParams,
    config: Optional[ChunkedUploadConfig] = None,
    state_store: Optional[ResumableStateStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> RemoteUploadResult:
    """One-shot helper that wires a transport around an (optional) client"""
    if http_client is not None:
        uploader = ChunkedUploader(ChunkTransport(http_client), state_store)
        return await uploader.upload_file_chunked(file, upload_params, config)
    async with httpx.AsyncClient() as client:
        uploader = ChunkedUploader(ChunkTransport(client), state_store)
        return await uploader.upload_file_chunked(file, upload_params, config)
