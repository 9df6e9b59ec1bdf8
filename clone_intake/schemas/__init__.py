"""Schemas module exports"""
from .submission import (
    CreateSubmissionRequest,
    CreateSubmissionResponse,
    UploadParamsRequest,
    UploadParams,
    UploadParamsResponse,
    FinalizeUploadRequest,
    VideoResponse,
    VideoUploadResponse,
    ActivityLogResponse,
    SubmissionResponse,
    DeleteVideoRequest,
    OperationResponse,
)

__all__ = [
    "CreateSubmissionRequest",
    "CreateSubmissionResponse",
    "UploadParamsRequest",
    "UploadParams",
    "UploadParamsResponse",
    "FinalizeUploadRequest",
    "VideoResponse",
    "VideoUploadResponse",
    "ActivityLogResponse",
    "SubmissionResponse",
    "DeleteVideoRequest",
    "OperationResponse",
]
