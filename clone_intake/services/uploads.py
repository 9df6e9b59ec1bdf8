"""
Signed parameters for direct-to-store uploads
"""
import logging
import os
import re
import time
from typing import Optional

from ..core.config import settings
from ..core.errors import NotFoundError, ValidationError
from .repository import SubmissionRepository
from .storage import BlobStore

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


def validate_video_file(filename: Optional[str], file_size: Optional[int]) -> str:
    """Check extension and size limits; returns the lower-cased extension"""
    if not filename:
        raise ValidationError("filename is required")
    ext = os.path.splitext(filename)[1].lower()
    if ext not in settings.ALLOWED_VIDEO_EXTENSIONS:
        raise ValidationError(
            f"Invalid file type. Allowed: {', '.join(settings.ALLOWED_VIDEO_EXTENSIONS)}"
        )
    if file_size is not None and file_size > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File too large. Maximum size is {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB."
        )
    return ext


def build_public_id(filename: str, now_ms: Optional[int] = None) -> str:
    """<epoch ms>_<filename stem with unsafe characters replaced>"""
    stem = re.sub(r"\.[^/.]+$", "", filename)
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{now_ms}_{_UNSAFE_CHARS.sub('_', stem)}"


class UploadParamsService:
    """Issues signed upload parameters for a submission's next video"""

    def __init__(self, repository: SubmissionRepository, store: BlobStore):
        self.repository = repository
        self.store = store

    async def issue(self, submission_id: Optional[str], filename: Optional[str], file_size: Optional[int]) -> dict:
        if not submission_id or not filename:
            raise ValidationError("Missing submissionId or filename")

        submission = await self.repository.find_by_id(submission_id)
        if not submission:
            raise NotFoundError("Submission not found")

        validate_video_file(filename, file_size)

        folder = f"submissions/{submission_id}"
        public_id = build_public_id(filename)
        params = self.store.sign_upload_params(folder, public_id, int(time.time()))
        logger.info(f"🔏 Issued upload params for submission {submission_id}: {public_id}")
        return {
            "upload_params": params,
            "chunked_upload_threshold": settings.CHUNKED_UPLOAD_THRESHOLD,
        }
