"""Helpers for the append-only activity trail"""
from typing import Optional

from ..models import ActivityLogEntry, Submission, VideoEntry, utcnow


def append_activity(
    submission: Submission,
    *,
    action: str,
    status: str,
    message: str,
    video: Optional[VideoEntry] = None,
    video_url: Optional[str] = None,
    response: Optional[dict] = None,
    error: Optional[str] = None,
    performed_by: Optional[str] = None,
) -> ActivityLogEntry:
    entry = ActivityLogEntry(
        action=action,
        status=status,
        message=message,
        video_url=video.url if video else (video_url or ""),
        video_filename=video.filename if video else None,
        remote_id=video.remote_id if video else None,
        response=response,
        error=error,
        timestamp=utcnow(),
        performed_by=performed_by,
    )
    submission.activity_logs.append(entry)
    return entry
