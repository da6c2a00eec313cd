"""Durable application queue: task model, store and consumers."""
from .consumer import ConsumerPool, QueueConsumer, build_filler, session_factory_from
from .store import TaskStore, create_queue_engine
from .task import ALLOWED_TRANSITIONS, ApplicationTask, ResumeAttachment, TaskStatus

__all__ = [
    "ConsumerPool",
    "QueueConsumer",
    "build_filler",
    "session_factory_from",
    "TaskStore",
    "create_queue_engine",
    "ALLOWED_TRANSITIONS",
    "ApplicationTask",
    "ResumeAttachment",
    "TaskStatus",
]
