"""Core utilities: configuration, logging and errors."""
from .config import (
    ApiConfig,
    BrowserConfig,
    FormsConfig,
    ProvidersConfig,
    QueueConfig,
    Settings,
)
from .errors import (
    FieldFillFailure,
    InvalidTransition,
    NavigationFailure,
    ResumeFlowError,
    SessionAcquisitionFailure,
    TaskFailure,
    ValidationError,
)
from .logging import setup_logging

__all__ = [
    "ApiConfig",
    "BrowserConfig",
    "FormsConfig",
    "ProvidersConfig",
    "QueueConfig",
    "Settings",
    "FieldFillFailure",
    "InvalidTransition",
    "NavigationFailure",
    "ResumeFlowError",
    "SessionAcquisitionFailure",
    "TaskFailure",
    "ValidationError",
    "setup_logging",
]
