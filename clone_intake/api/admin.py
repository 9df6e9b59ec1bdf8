"""
Admin endpoints for reviewing submitted videos
"""
import logging
from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response

from ..schemas import DeleteVideoRequest, OperationResponse, SubmissionResponse
from ..services import AdminReviewService, SubmissionService
from .deps import get_review_service, get_submission_service, http_error, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/submissions",
    tags=["admin"],
    dependencies=[Depends(require_admin)]
)


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    service: Annotated[SubmissionService, Depends(get_submission_service)]
):
    """Submission with its videos and full activity log"""
    try:
        submission = await service.get_submission(submission_id)
    except Exception as e:
        raise http_error(e) from e
    return SubmissionResponse.model_validate(submission)


@router.delete("/{submission_id}/delete-video", response_model=OperationResponse)
async def delete_video(
    submission_id: str,
    request: DeleteVideoRequest,
    service: Annotated[AdminReviewService, Depends(get_review_service)]
):
    """Delete a video from the media store, then from the submission"""
    logger.info(f"🗑️  DELETE video from submission {submission_id}: {request.video_url}")
    try:
        result = await service.delete_video(submission_id, request.video_url)
    except Exception as e:
        raise http_error(e) from e
    return OperationResponse(**result)


@router.get("/{submission_id}/download-video")
async def download_video(
    submission_id: str,
    service: Annotated[AdminReviewService, Depends(get_review_service)],
    url: Annotated[Optional[str], Query()] = None
):
    """Fetch a video from the media store and return it as an attachment"""
    logger.info(f"📥 Download video from submission {submission_id}: {url}")
    try:
        downloaded = await service.download_video(submission_id, url)
    except Exception as e:
        raise http_error(e) from e

    safe_filename = quote(downloaded.filename, safe='')
    return Response(
        content=downloaded.content,
        media_type=downloaded.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{safe_filename}"',
        }
    )
