"""FastAPI dependencies backed by app.state."""

from fastapi import Request

from resumeflow.core.config import Settings
from resumeflow.queue.store import TaskStore
from resumeflow.scraper.providers import AdzunaClient, JSearchClient


def get_store(request: Request) -> TaskStore:
    """Task store created at startup."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_jsearch(request: Request) -> JSearchClient:
    return request.app.state.jsearch


def get_adzuna(request: Request) -> AdzunaClient:
    return request.app.state.adzuna
