"""
Database models for paid video submissions

A submission owns an ordered list of uploaded videos and an append-only
activity log recording every upload, download and delete attempt.
Invariant: status == "uploaded" iff the submission has at least one video.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import String, Integer, BigInteger, Boolean, Float, DateTime, Text, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionStatus:
    AWAITING_UPLOAD = "awaiting_upload"
    UPLOADED = "uploaded"


class Submission(Base):
    """One paid order's script and its recorded videos"""
    __tablename__ = "submissions"
    
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4())
    )
    order_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    script_text: Mapped[str] = mapped_column(Text, nullable=False)
    green_screen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=SubmissionStatus.AWAITING_UPLOAD,
        nullable=False,
        index=True
    )
    
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )
    
    videos: Mapped[list["VideoEntry"]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="VideoEntry.id",
        lazy="selectin"
    )
    activity_logs: Mapped[list["ActivityLogEntry"]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="ActivityLogEntry.id",
        lazy="selectin"
    )
    
    def find_video(self, url: str) -> Optional["VideoEntry"]:
        return next((v for v in self.videos if v.url == url), None)
    
    def sync_status(self) -> None:
        """Keep status consistent with the video list"""
        self.status = SubmissionStatus.UPLOADED if self.videos else SubmissionStatus.AWAITING_UPLOAD
    
    def __repr__(self):
        return f"<Submission id={self.id} order={self.order_id} status={self.status} videos={len(self.videos)}>"


class VideoEntry(Base):
    """A video committed to the remote media store"""
    __tablename__ = "submission_videos"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    remote_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    duration_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    
    submission: Mapped[Submission] = relationship(back_populates="videos")
    
    def __repr__(self):
        return f"<VideoEntry {self.filename} remote_id={self.remote_id} ({self.size_bytes} bytes)>"


class ActivityAction:
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE = "delete"


class ActivityStatus:
    SUCCESS = "success"
    FAILED = "failed"


class ActivityLogEntry(Base):
    """
    Audit trail entry for one attempted operation on a submission's media.
    
    Rows are only ever inserted; failed attempts are recorded too.
    """
    __tablename__ = "submission_activity_logs"
    
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    video_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    video_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    remote_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    performed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    
    submission: Mapped[Submission] = relationship(back_populates="activity_logs")
    
    def __repr__(self):
        return f"<ActivityLogEntry {self.action} {self.status} {self.video_filename}>"
