"""
Pydantic schemas for API request/response validation
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateSubmissionRequest(BaseModel):
    """Script and options captured after payment"""
    script_text: str = Field(..., description="Script the buyer will read on camera")
    green_screen: bool = False


class CreateSubmissionResponse(BaseModel):
    submission_id: str
    status: str


class UploadParamsRequest(BaseModel):
    submission_id: Optional[str] = None
    filename: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class UploadParams(BaseModel):
    """Signed parameters the client sends with every chunk"""
    cloud_name: str
    api_key: str
    timestamp: int
    signature: str
    folder: str
    public_id: str
    upload_url: Optional[str] = None


class UploadParamsResponse(BaseModel):
    success: bool = True
    upload_params: UploadParams
    chunked_upload_threshold: int


class FinalizeUploadRequest(BaseModel):
    """Completed chunked upload; upload_result is the media store's final response"""
    submission_id: Optional[str] = None
    upload_result: Optional[dict[str, Any]] = None
    filename: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)


class VideoResponse(BaseModel):
    url: str
    remote_id: Optional[str]
    filename: str
    size_bytes: int
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VideoUploadResponse(BaseModel):
    success: bool = True
    video: VideoResponse


class ActivityLogResponse(BaseModel):
    action: str
    video_url: str
    video_filename: Optional[str]
    remote_id: Optional[str]
    status: str
    message: str
    response: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: datetime
    performed_by: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    id: str
    order_id: str
    script_text: str
    green_screen: bool
    status: str
    videos: list[VideoResponse]
    activity_logs: list[ActivityLogResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeleteVideoRequest(BaseModel):
    video_url: Optional[str] = None


class OperationResponse(BaseModel):
    success: bool
    message: str
