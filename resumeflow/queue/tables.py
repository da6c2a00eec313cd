"""Database tables backing the application queue."""
import uuid
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite stores datetimes without an offset."""
    return datetime.now(UTC).replace(tzinfo=None)


class ResumeBlob(Base):
    """Resume payload, stored once per content hash."""

    __tablename__ = "resume_blobs"

    digest: Mapped[str] = mapped_column(String(64), primary_key=True)
    filename: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str] = mapped_column(String(100), default="application/pdf")
    content: Mapped[bytes] = mapped_column(LargeBinary)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class TaskRecord(Base):
    """A queued application task."""

    __tablename__ = "application_tasks"

    # seq gives enqueue order; id is the public identifier
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, index=True, default=generate_uuid)
    job_redirect_url: Mapped[str] = mapped_column(Text)
    job_title: Mapped[str] = mapped_column(String(255), default="")
    company: Mapped[str] = mapped_column(String(255), default="")
    applicant_fields: Mapped[dict] = mapped_column(JSON, default=dict)
    resume_digest: Mapped[Optional[str]] = mapped_column(
        ForeignKey("resume_blobs.digest"), nullable=True
    )
    is_batch_member: Mapped[bool] = mapped_column(Boolean, default=False)
    batch_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(20), default="queued", index=True)  # queued/active/succeeded/failed
    result: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True, default=None)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    lease_owner: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, default=None)
    lease_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, default=None)
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, default=None)

    resume: Mapped[Optional[ResumeBlob]] = relationship(lazy="joined")
