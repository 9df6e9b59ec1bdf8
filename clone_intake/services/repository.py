"""
Record store for submissions

All mutations are whole-record read-modify-write through one AsyncSession.
There is no version column or lease: two requests mutating the same
submission concurrently race and the last commit wins. Callers that need
stronger guarantees must serialize such calls themselves.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Submission

logger = logging.getLogger(__name__)


class SubmissionRepository:
    """find / create / save for Submission records"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, submission_id: str) -> Optional[Submission]:
        result = await self.session.execute(
            select(Submission).where(Submission.id == submission_id)
        )
        return result.scalar_one_or_none()

    async def create(self, **fields) -> Submission:
        submission = Submission(**fields)
        submission.videos = []
        submission.activity_logs = []
        self.session.add(submission)
        await self.session.commit()
        logger.info(f"✅ Created submission {submission.id} for order {submission.order_id}")
        return submission

    async def save(self, submission: Submission) -> None:
        self.session.add(submission)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
