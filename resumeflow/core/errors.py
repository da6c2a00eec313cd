"""Error taxonomy for intake, queue processing and form filling."""
from typing import Any, Optional


class ResumeFlowError(Exception):
    """Base class for all ResumeFlow errors."""


class ValidationError(ResumeFlowError):
    """Intake request rejected before anything was enqueued."""


class InvalidTransition(ResumeFlowError):
    """A task status change that the state machine does not allow."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move task from {current} to {target}")
        self.current = current
        self.target = target


class TaskFailure(ResumeFlowError):
    """Task-fatal error. Recorded on the task as a structured cause."""

    stage: str = "unexpected"

    def __init__(self, message: str, stage: Optional[str] = None, url: str = "") -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "stage": self.stage,
            "message": self.message,
            "url": self.url,
        }

    @classmethod
    def from_exception(cls, exc: BaseException, url: str = "") -> "TaskFailure":
        """Wrap an unexpected exception so it can be stored on a task."""
        if isinstance(exc, TaskFailure):
            return exc
        return cls(f"{type(exc).__name__}: {exc}", url=url)


class NavigationFailure(TaskFailure):
    """Target URL unreachable or never became idle."""

    stage = "navigate"


class SessionAcquisitionFailure(TaskFailure):
    """Browser engine could not be launched or a context could not be created."""

    stage = "session"


class FieldFillFailure(ResumeFlowError):
    """A located element could not be filled. Never fatal for the task."""

    def __init__(self, field_name: str, selector: str, reason: str) -> None:
        super().__init__(f"{field_name} ({selector}): {reason}")
        self.field_name = field_name
        self.selector = selector
        self.reason = reason
