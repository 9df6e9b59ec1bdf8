"""
Admin review operations: delete and download submitted videos

Every attempt is written to the submission's activity log, success or not.
State machine per video: present --delete ok--> absent;
download never changes the video list.
"""
import hmac
import logging
import mimetypes
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..core.errors import NotFoundError, RemoteOperationError, ValidationError
from ..models import ActivityAction, ActivityStatus, Submission, VideoEntry
from .activity import append_activity
from .repository import SubmissionRepository
from .storage import BlobStore

logger = logging.getLogger(__name__)

PERFORMED_BY = "admin"
DESTROY_OK_RESULTS = ("ok", "not found")


def verify_admin_token(authorization: Optional[str], expected_token: str) -> bool:
    """Accepts 'Bearer <token>' or the bare token"""
    if not authorization or not expected_token:
        return False
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return hmac.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8"))


@dataclass
class DownloadedVideo:
    filename: str
    content: bytes
    content_type: str


class AdminReviewService:
    """Delete / download operations against the media store"""

    def __init__(self, repository: SubmissionRepository, store: BlobStore):
        self.repository = repository
        self.store = store

    async def _load(self, submission_id: str, video_url: Optional[str]) -> tuple[Submission, VideoEntry]:
        if not video_url:
            raise ValidationError("Video URL is required")
        submission = await self.repository.find_by_id(submission_id)
        if not submission:
            raise NotFoundError("Submission not found")
        video = submission.find_video(video_url)
        if not video:
            raise NotFoundError("Video not found in submission")
        return submission, video

    async def _save_failure_log(self, submission: Submission) -> None:
        """Persist a failure log without masking the original error"""
        try:
            await self.repository.save(submission)
        except Exception as e:
            logger.error(f"❌ Could not persist failure log for submission {submission.id}: {e}")

    async def delete_video(self, submission_id: str, video_url: Optional[str]) -> dict:
        submission, video = await self._load(submission_id, video_url)
        if not video.remote_id:
            raise ValidationError("Video remote id not found")

        logger.info(f"🗑️  Deleting video {video.remote_id} from submission {submission_id}")
        delete_result: Optional[dict] = None
        try:
            delete_result = await self.store.destroy(video.remote_id, resource_type="video")
        except Exception as e:
            error_message = str(e)
            logger.error(f"❌ Error deleting {video.remote_id} from media store: {error_message}")
            append_activity(
                submission,
                action=ActivityAction.DELETE,
                status=ActivityStatus.FAILED,
                message=f"Failed to delete video from media store: {error_message}",
                video=video,
                error=error_message,
                response=e.response if isinstance(e, RemoteOperationError) else None,
                performed_by=PERFORMED_BY,
            )
            await self._save_failure_log(submission)
            raise RemoteOperationError(f"Failed to delete from media store: {error_message}") from e

        outcome = (delete_result or {}).get("result")
        if outcome not in DESTROY_OK_RESULTS:
            error_message = f"Media store returned result={outcome!r}"
            logger.warning(f"⚠️ Delete of {video.remote_id} rejected: {delete_result}")
            append_activity(
                submission,
                action=ActivityAction.DELETE,
                status=ActivityStatus.FAILED,
                message=f"Failed to delete video from media store: {error_message}",
                video=video,
                error=error_message,
                response=delete_result,
                performed_by=PERFORMED_BY,
            )
            await self._save_failure_log(submission)
            raise RemoteOperationError(
                f"Failed to delete from media store: {error_message}",
                response=delete_result
            )

        submission.videos.remove(video)
        submission.sync_status()
        append_activity(
            submission,
            action=ActivityAction.DELETE,
            status=ActivityStatus.SUCCESS,
            message=f"Video deleted successfully: {video.filename}",
            video=video,
            response=delete_result,
            performed_by=PERFORMED_BY,
        )
        await self.repository.save(submission)

        logger.info(f"✅ Video removed from submission {submission_id}. Remaining videos: {len(submission.videos)}")
        return {"success": True, "message": "Video deleted successfully"}

    async def download_video(self, submission_id: str, video_url: Optional[str]) -> DownloadedVideo:
        submission, video = await self._load(submission_id, video_url)
        filename = video.filename or "video.mp4"
        content_type = mimetypes.guess_type(filename)[0] or "video/mp4"

        if not video.remote_id:
            raise ValidationError("Video remote id not found")

        try:
            download_url = self.store.signed_url(video.remote_id, resource_type="video", attachment=True)
            content = await self.store.fetch(download_url)
        except Exception as e:
            error_message = str(e)
            logger.error(f"❌ Error downloading {video.remote_id}: {error_message}")
            append_activity(
                submission,
                action=ActivityAction.DOWNLOAD,
                status=ActivityStatus.FAILED,
                message=f"Failed to download video: {error_message}",
                video=video,
                error=error_message,
                performed_by=PERFORMED_BY,
            )
            await self._save_failure_log(submission)
            raise RemoteOperationError(f"Failed to download video: {error_message}") from e

        append_activity(
            submission,
            action=ActivityAction.DOWNLOAD,
            status=ActivityStatus.SUCCESS,
            message=f"Video downloaded successfully: {filename}",
            video=video,
            response={
                "size": len(content),
                "content_type": content_type,
                "downloaded_at": datetime.now(timezone.utc).isoformat(),
            },
            performed_by=PERFORMED_BY,
        )
        await self.repository.save(submission)

        logger.info(f"📥 Downloaded {filename} ({len(content)} bytes) for submission {submission_id}")
        return DownloadedVideo(filename=filename, content=content, content_type=content_type)
