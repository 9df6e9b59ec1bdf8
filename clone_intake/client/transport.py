"""
Single-chunk transport to the media store's direct upload endpoint
"""
import io
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from ..core.errors import RemoteTransportError, UploadChunkFailed
from .retry import AttemptResult, Fatal, Ok, Retryable, retry_with_backoff

logger = logging.getLogger(__name__)

CHUNK_TIMEOUT_SECONDS = 300.0  # 5 minutes per attempt
DEFAULT_API_BASE = "https://api.cloudinary.com/v1_1"

ByteProgress = Callable[[int], None]


@dataclass(frozen=True)
class UploadParams:
    """Signed parameters issued by the intake server"""
    cloud_name: str
    api_key: str
    timestamp: int
    signature: str
    folder: str
    public_id: str
    upload_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "UploadParams":
        return cls(
            cloud_name=data["cloud_name"],
            api_key=data["api_key"],
            timestamp=int(data["timestamp"]),
            signature=data["signature"],
            folder=data["folder"],
            public_id=data["public_id"],
            upload_url=data.get("upload_url"),
        )

    @property
    def endpoint(self) -> str:
        return self.upload_url or f"{DEFAULT_API_BASE}/{self.cloud_name}/video/upload"

    def form_fields(self, session_id: str) -> dict:
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "timestamp": str(self.timestamp),
            "signature": self.signature,
            "folder": self.folder,
            "public_id": self.public_id,
            "resource_type": "video",
            "unique_id": session_id,
        }


@dataclass(frozen=True)
class ChunkMeta:
    """Where a chunk sits inside the file being uploaded"""
    index: int
    total_chunks: int
    start: int
    end: int
    file_size: int
    filename: str

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end - 1}/{self.file_size}"


class _ProgressReader(io.BytesIO):
    """BytesIO that reports cumulative bytes read by the HTTP client"""

    def __init__(self, data: bytes, on_progress: Optional[ByteProgress]):
        super().__init__(data)
        self.on_progress = on_progress
        self.sent = 0

    def seek(self, offset, whence=io.SEEK_SET):
        position = super().seek(offset, whence)
        if whence == io.SEEK_SET and offset == 0:
            self.sent = 0
        return position

    def read(self, size=-1):
        data = super().read(size)
        if data:
            self.sent += len(data)
            if self.on_progress:
                self.on_progress(self.sent)
        return data


class ChunkTransport:
    """
    Uploads one chunk with bounded retries.
    
    Every request carries the shared session id (X-Unique-Upload-Id) and a
    Content-Range header so the media store can reassemble chunks of one
    logical upload. Network errors, timeouts and non-2xx statuses are retried
    with exponential backoff; the last failure surfaces as UploadChunkFailed.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout: float = CHUNK_TIMEOUT_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.client = http_client
        self.timeout = timeout
        self.sleep = sleep

    async def _attempt(
        self,
        chunk: bytes,
        meta: ChunkMeta,
        params: UploadParams,
        session_id: str,
        on_byte_progress: Optional[ByteProgress],
    ) -> AttemptResult:
        reader = _ProgressReader(chunk, on_byte_progress)
        try:
            response = await self.client.post(
                params.endpoint,
                data=params.form_fields(session_id),
                files={"file": (meta.filename, reader, "application/octet-stream")},
                headers={
                    "X-Unique-Upload-Id": session_id,
                    "Content-Range": meta.content_range,
                },
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            return Retryable(RemoteTransportError(f"Upload timeout: {e}"))
        except httpx.TransportError as e:
            return Retryable(RemoteTransportError(f"Network error during upload: {e}"))

        if not 200 <= response.status_code < 300:
            return Retryable(RemoteTransportError(
                f"Upload failed with status {response.status_code}: {response.text}"
            ))

        try:
            body = response.json()
        except ValueError as e:
            return Fatal(RemoteTransportError(f"Media store returned a non-JSON response: {e}"))
        if not isinstance(body, dict):
            return Fatal(RemoteTransportError("Media store returned an unexpected response body"))
        return Ok(body)

    async def upload_chunk(
        self,
        chunk: bytes,
        meta: ChunkMeta,
        params: UploadParams,
        session_id: str,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        on_byte_progress: Optional[ByteProgress] = None,
    ) -> dict:
        """POST one chunk; returns the media store's JSON response"""

        async def attempt(_attempt_number: int) -> AttemptResult:
            return await self._attempt(chunk, meta, params, session_id, on_byte_progress)

        kwargs = {"sleep": self.sleep} if self.sleep else {}
        result = await retry_with_backoff(
            attempt,
            max_retries=max_retries,
            retry_delay=retry_delay,
            label=f"Chunk {meta.index + 1}/{meta.total_chunks}",
            **kwargs
        )
        if isinstance(result, Ok):
            return result.value
        raise UploadChunkFailed(meta.index, meta.total_chunks, result.error)
