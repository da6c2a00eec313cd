"""Application task model and status state machine."""
import base64
import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..core.errors import InvalidTransition


class TaskStatus(Enum):
    """Lifecycle of a queued application."""
    QUEUED = "queued"
    ACTIVE = "active"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


# ACTIVE -> ACTIVE is a re-claim after the lease expired
ALLOWED_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.QUEUED: {TaskStatus.ACTIVE},
    TaskStatus.ACTIVE: {TaskStatus.ACTIVE, TaskStatus.SUCCEEDED, TaskStatus.FAILED},
    TaskStatus.SUCCEEDED: set(),
    TaskStatus.FAILED: set(),
}


def check_transition(current: TaskStatus, target: TaskStatus) -> None:
    """Raise InvalidTransition if current -> target is not allowed."""
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current.value, target.value)


@dataclass(frozen=True)
class ResumeAttachment:
    """Resume file payload attached to file inputs."""

    filename: str
    content: bytes
    mime_type: str = "application/pdf"

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.content).hexdigest()

    def to_file_payload(self) -> dict[str, Any]:
        """Playwright FilePayload for set_input_files."""
        return {"name": self.filename, "mimeType": self.mime_type, "buffer": self.content}

    @classmethod
    def from_base64(
        cls, filename: str, data: str, mime_type: str = "application/pdf"
    ) -> "ResumeAttachment":
        """Decode a base64 upload.

        Raises:
            binascii.Error: If data is not valid base64.
        """
        content = base64.b64decode(data, validate=True)
        return cls(filename=filename, content=content, mime_type=mime_type)


@dataclass
class ApplicationTask:
    """One queued 'apply to this job' unit of work."""

    job_redirect_url: str
    applicant_fields: dict[str, str] = field(default_factory=dict)
    resume_attachment: Optional[ResumeAttachment] = None
    is_batch_member: bool = False
    batch_id: Optional[str] = None
    job_title: str = ""
    company: str = ""
    id: Optional[str] = None
    status: TaskStatus = TaskStatus.QUEUED
    result: Optional[dict[str, Any]] = None
    attempts: int = 0
    lease_owner: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def validate(self) -> None:
        """Raise ValueError if the task cannot be enqueued."""
        if not isinstance(self.job_redirect_url, str) or not self.job_redirect_url.strip():
            raise ValueError("job_redirect_url must be a non-empty string")

    def value_for(self, field_name: str) -> Optional[str]:
        """Literal value to insert for a logical field, if the task carries one."""
        value = self.applicant_fields.get(field_name)
        return str(value) if value else None

    def summary(self) -> dict[str, Any]:
        """Public view of the task, without the resume payload."""
        return {
            "id": self.id,
            "status": self.status.value,
            "jobRedirectUrl": self.job_redirect_url,
            "jobTitle": self.job_title,
            "company": self.company,
            "isBatchMember": self.is_batch_member,
            "batchId": self.batch_id,
            "attempts": self.attempts,
            "hasResume": self.resume_attachment is not None,
            "result": self.result,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
        }
