"""
Shared FastAPI dependencies and error translation
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.errors import NotFoundError, ValidationError
from ..services import (
    AdminReviewService,
    BlobStore,
    SubmissionRepository,
    SubmissionService,
    UploadParamsService,
    verify_admin_token,
)

logger = logging.getLogger(__name__)


def get_blob_store(request: Request) -> BlobStore:
    """Media store client constructed in the application lifespan"""
    store = getattr(request.app.state, "blob_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Media store is not configured")
    return store


def get_repository(db: Annotated[AsyncSession, Depends(get_db)]) -> SubmissionRepository:
    return SubmissionRepository(db)


def get_submission_service(
    repository: Annotated[SubmissionRepository, Depends(get_repository)],
    request: Request,
) -> SubmissionService:
    return SubmissionService(repository, getattr(request.app.state, "blob_store", None))


def get_upload_params_service(
    repository: Annotated[SubmissionRepository, Depends(get_repository)],
    store: Annotated[BlobStore, Depends(get_blob_store)],
) -> UploadParamsService:
    return UploadParamsService(repository, store)


def get_review_service(
    repository: Annotated[SubmissionRepository, Depends(get_repository)],
    store: Annotated[BlobStore, Depends(get_blob_store)],
) -> AdminReviewService:
    return AdminReviewService(repository, store)


async def require_admin(authorization: Annotated[Optional[str], Header()] = None) -> None:
    """Header-token gate for admin endpoints"""
    if not verify_admin_token(authorization, settings.ADMIN_TOKEN):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def http_error(e: Exception) -> HTTPException:
    """Translate a domain error into the HTTP status the API reports"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    logger.error(f"❌ {type(e).__name__}: {e}")
    return HTTPException(status_code=500, detail=str(e) or "Internal error")
