"""
Client for the intake server's upload endpoints, plus the end-to-end flow:
request signed params, upload (chunked or direct), finalize.
"""
import logging
from typing import Optional

import httpx

from ..core.errors import NotFoundError, RemoteTransportError, ValidationError
from .chunking import LocalFile, should_use_chunked_upload
from .state import ResumableStateStore
from .transport import ChunkTransport, UploadParams
from .uploader import ChunkedUploadConfig, ChunkedUploader

logger = logging.getLogger(__name__)


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
    if response.status_code == 400:
        raise ValidationError(str(detail))
    if response.status_code == 404:
        raise NotFoundError(str(detail))
    raise RemoteTransportError(f"Server error {response.status_code}: {detail}")


class IntakeApiClient:
    """Thin wrapper over the /api/v1/uploads endpoints"""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.client = http_client

    async def get_upload_params(self, submission_id: str, filename: str, file_size: int) -> tuple[UploadParams, int]:
        response = await self.client.post(
            f"{self.base_url}/api/v1/uploads/upload-params",
            json={"submission_id": submission_id, "filename": filename, "file_size": file_size}
        )
        _raise_for_status(response)
        data = response.json()
        return UploadParams.from_dict(data["upload_params"]), int(data["chunked_upload_threshold"])

    async def upload_video(self, submission_id: str, file: LocalFile) -> dict:
        with open(file.path, "rb") as f:
            response = await self.client.post(
                f"{self.base_url}/api/v1/uploads/upload-video",
                data={"submission_id": submission_id},
                files={"file": (file.name, f.read())},
                timeout=None
            )
        _raise_for_status(response)
        return response.json()["video"]

    async def finalize_upload(self, submission_id: str, upload_result: dict, filename: str, file_size: int) -> dict:
        response = await self.client.post(
            f"{self.base_url}/api/v1/uploads/finalize-upload",
            json={
                "submission_id": submission_id,
                "upload_result": upload_result,
                "filename": filename,
                "file_size": file_size,
            }
        )
        _raise_for_status(response)
        return response.json()["video"]


async def upload_submission_video(
    api: IntakeApiClient,
    submission_id: str,
    file: LocalFile,
    state_store: Optional[ResumableStateStore] = None,
    config: Optional[ChunkedUploadConfig] = None,
    transport: Optional[ChunkTransport] = None,
) -> dict:
    """
    Upload one video for a submission and return the recorded video.
    
    Files above the server's threshold go straight to the media store in
    chunks and are then finalized; smaller files go through the server.
    """
    upload_params, threshold = await api.get_upload_params(submission_id, file.name, file.size)

    if not should_use_chunked_upload(file.size, threshold):
        logger.info(f"Uploading {file.name} ({file.size} bytes) through the server")
        return await api.upload_video(submission_id, file)

    logger.info(f"Using chunked upload for large file: {file.name}")
    uploader = ChunkedUploader(transport or ChunkTransport(api.client), state_store)
    result = await uploader.upload_file_chunked(file, upload_params, config)
    return await api.finalize_upload(submission_id, result.raw, file.name, file.size)
