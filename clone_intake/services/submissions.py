"""
Submission lifecycle: creation, finalize/commit of uploads, direct uploads
"""
import logging
from typing import Optional

from ..core.errors import NotFoundError, ValidationError
from ..models import (
    ActivityAction,
    ActivityStatus,
    Submission,
    SubmissionStatus,
    VideoEntry,
    utcnow,
)
from .activity import append_activity
from .repository import SubmissionRepository
from .storage import BlobStore
from .uploads import build_public_id, validate_video_file

logger = logging.getLogger(__name__)

MIN_SCRIPT_LENGTH = 10


def video_from_upload_result(upload_result: dict, filename: str, file_size: Optional[int]) -> VideoEntry:
    """Build a VideoEntry from the media store's final upload response"""
    url = upload_result.get("secure_url") or upload_result.get("url")
    remote_id = upload_result.get("public_id") or upload_result.get("remote_id")
    if not url or not remote_id:
        raise ValidationError("uploadResult must include secure_url and public_id")
    return VideoEntry(
        url=url,
        remote_id=remote_id,
        filename=filename,
        size_bytes=file_size or upload_result.get("bytes") or 0,
        duration_seconds=upload_result.get("duration"),
        width=upload_result.get("width"),
        height=upload_result.get("height"),
        uploaded_at=utcnow(),
    )


class SubmissionService:
    """Business logic for submissions and their uploaded videos"""

    def __init__(self, repository: SubmissionRepository, store: Optional[BlobStore] = None):
        self.repository = repository
        self.store = store

    async def create_submission(self, order_id: str, script_text: Optional[str], green_screen: bool = False) -> Submission:
        if not order_id:
            raise ValidationError("order_id is required")
        if not script_text or len(script_text) < MIN_SCRIPT_LENGTH:
            raise ValidationError(f"Script must be at least {MIN_SCRIPT_LENGTH} characters")
        return await self.repository.create(
            order_id=order_id,
            script_text=script_text,
            green_screen=bool(green_screen),
            status=SubmissionStatus.AWAITING_UPLOAD,
        )

    async def get_submission(self, submission_id: str) -> Submission:
        submission = await self.repository.find_by_id(submission_id)
        if not submission:
            raise NotFoundError("Submission not found")
        return submission

    def _commit_video(self, submission: Submission, video: VideoEntry) -> None:
        submission.videos.append(video)
        append_activity(
            submission,
            action=ActivityAction.UPLOAD,
            status=ActivityStatus.SUCCESS,
            message=f"Video uploaded successfully: {video.filename}",
            video=video,
            response={
                "url": video.url,
                "remote_id": video.remote_id,
                "size": video.size_bytes,
                "uploaded_at": video.uploaded_at.isoformat(),
            },
        )
        submission.status = SubmissionStatus.UPLOADED

    async def finalize_upload(
        self,
        submission_id: Optional[str],
        upload_result: Optional[dict],
        filename: Optional[str],
        file_size: Optional[int] = None,
    ) -> VideoEntry:
        """
        Record a completed chunked upload on its submission.
        
        The video, its upload log entry and the status change are written in
        a single commit. Not idempotent: finalizing the same result twice
        appends two videos and two log entries.
        """
        if not submission_id or not upload_result:
            raise ValidationError("Missing submissionId or uploadResult")
        if not filename:
            raise ValidationError("Missing filename")

        submission = await self.get_submission(submission_id)
        video = video_from_upload_result(upload_result, filename, file_size)
        self._commit_video(submission, video)
        await self.repository.save(submission)

        logger.info(f"📦 Chunked upload finalized: submission={submission_id} remote_id={video.remote_id}")
        return video

    async def upload_video(self, submission_id: Optional[str], filename: Optional[str], content: bytes) -> VideoEntry:
        """Upload a small file through the server and record it"""
        if not submission_id or not filename:
            raise ValidationError("Missing file or submissionId")
        validate_video_file(filename, len(content))
        if not content:
            raise ValidationError("Empty file provided")
        if self.store is None:
            raise RuntimeError("SubmissionService.upload_video needs a media store")

        submission = await self.get_submission(submission_id)
        result = await self.store.upload(
            content,
            folder=f"submissions/{submission_id}",
            public_id=build_public_id(filename),
            filename=filename,
        )
        video = video_from_upload_result(result, filename, len(content))
        self._commit_video(submission, video)
        await self.repository.save(submission)

        logger.info(f"📤 Direct upload recorded: submission={submission_id} file={filename} ({len(content)} bytes)")
        return video
