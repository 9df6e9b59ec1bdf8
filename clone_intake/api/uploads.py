"""
FastAPI endpoints for submissions and uploads
"""
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from ..schemas import (
    CreateSubmissionRequest,
    CreateSubmissionResponse,
    FinalizeUploadRequest,
    UploadParamsRequest,
    UploadParamsResponse,
    VideoResponse,
    VideoUploadResponse,
)
from ..services import SubmissionService, UploadParamsService
from .deps import get_submission_service, get_upload_params_service, http_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.post(
    "/orders/{order_id}/submission",
    response_model=CreateSubmissionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_submission(
    order_id: str,
    request: CreateSubmissionRequest,
    service: Annotated[SubmissionService, Depends(get_submission_service)]
):
    """Create the submission for a paid order"""
    logger.info(f"📝 Creating submission for order {order_id}")
    try:
        submission = await service.create_submission(order_id, request.script_text, request.green_screen)
    except Exception as e:
        raise http_error(e) from e
    return CreateSubmissionResponse(submission_id=submission.id, status=submission.status)


@router.post("/uploads/upload-params", response_model=UploadParamsResponse)
async def get_upload_params(
    request: UploadParamsRequest,
    service: Annotated[UploadParamsService, Depends(get_upload_params_service)]
):
    """
    Issue signed parameters for a direct chunked upload.
    
    The response includes the size threshold above which the client should
    use the chunked pipeline instead of /uploads/upload-video.
    """
    logger.info(f"🔏 Upload params requested: submission={request.submission_id} file={request.filename}")
    try:
        issued = await service.issue(request.submission_id, request.filename, request.file_size)
    except Exception as e:
        raise http_error(e) from e
    return UploadParamsResponse(**issued)


@router.post("/uploads/upload-video", response_model=VideoUploadResponse)
async def upload_video(
    file: Annotated[UploadFile, File(description="Video file")],
    submission_id: Annotated[Optional[str], Form()] = None,
    service: SubmissionService = Depends(get_submission_service)
):
    """Upload a small video through the server"""
    logger.info(f"📤 Direct upload: {file.filename} submission={submission_id}")
    try:
        content = await file.read()
        video = await service.upload_video(submission_id, file.filename, content)
    except Exception as e:
        raise http_error(e) from e
    return VideoUploadResponse(video=VideoResponse.model_validate(video))


@router.post("/uploads/finalize-upload", response_model=VideoUploadResponse)
async def finalize_upload(
    request: FinalizeUploadRequest,
    service: Annotated[SubmissionService, Depends(get_submission_service)]
):
    """Attach a completed chunked upload to its submission"""
    logger.info(f"📦 Finalize upload: submission={request.submission_id} file={request.filename}")
    try:
        video = await service.finalize_upload(
            request.submission_id,
            request.upload_result,
            request.filename,
            request.file_size
        )
    except Exception as e:
        raise http_error(e) from e
    return VideoUploadResponse(video=VideoResponse.model_validate(video))
