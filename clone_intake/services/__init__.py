"""Services module exports"""
from .storage import BlobStore, CloudinaryConfig, CloudinaryStore, api_sign_request
from .repository import SubmissionRepository
from .submissions import SubmissionService
from .uploads import UploadParamsService, build_public_id, validate_video_file
from .review import AdminReviewService, DownloadedVideo, verify_admin_token

__all__ = [
    "BlobStore",
    "CloudinaryConfig",
    "CloudinaryStore",
    "api_sign_request",
    "SubmissionRepository",
    "SubmissionService",
    "UploadParamsService",
    "build_public_id",
    "validate_video_file",
    "AdminReviewService",
    "DownloadedVideo",
    "verify_admin_token",
]
