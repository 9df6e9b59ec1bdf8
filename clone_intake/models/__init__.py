"""Models module exports"""
from .submission import (
    Submission,
    SubmissionStatus,
    VideoEntry,
    ActivityLogEntry,
    ActivityAction,
    ActivityStatus,
    utcnow,
)

__all__ = [
    "Submission",
    "SubmissionStatus",
    "VideoEntry",
    "ActivityLogEntry",
    "ActivityAction",
    "ActivityStatus",
    "utcnow",
]
