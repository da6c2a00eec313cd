"""Browser automation: scoped headless sessions."""
from .session import BrowserSessionManager

__all__ = ["BrowserSessionManager"]
