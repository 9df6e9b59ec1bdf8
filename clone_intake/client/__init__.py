"""Upload client: chunked, resumable uploads to the media store"""
from .chunking import (
    DEFAULT_CHUNK_SIZE,
    LocalFile,
    chunk_count,
    chunk_range,
    fingerprint,
    should_use_chunked_upload,
)
from .state import (
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    ResumableStateStore,
    UploadSession,
    clear_pending_upload,
    get_upload_status,
)
from .transport import ChunkMeta, ChunkTransport, UploadParams
from .uploader import (
    ChunkedUploadConfig,
    ChunkedUploader,
    RemoteUploadResult,
    UploadProgress,
    upload_file_chunked,
)
from .api import IntakeApiClient, upload_submission_video

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "LocalFile",
    "chunk_count",
    "chunk_range",
    "fingerprint",
    "should_use_chunked_upload",
    "JsonFileKeyValueStore",
    "MemoryKeyValueStore",
    "ResumableStateStore",
    "UploadSession",
    "clear_pending_upload",
    "get_upload_status",
    "ChunkMeta",
    "ChunkTransport",
    "UploadParams",
    "ChunkedUploadConfig",
    "ChunkedUploader",
    "RemoteUploadResult",
    "UploadProgress",
    "upload_file_chunked",
    "IntakeApiClient",
    "upload_submission_video",
]
