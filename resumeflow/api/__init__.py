"""HTTP API: mass-apply intake, task status, resume analysis."""
from .app import create_app

__all__ = ["create_app"]
