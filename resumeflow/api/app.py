"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resumeflow import __version__
from resumeflow.core.config import Settings
from resumeflow.core.errors import ValidationError
from resumeflow.queue.consumer import ConsumerPool
from resumeflow.queue.store import TaskStore
from resumeflow.scraper.providers import AdzunaClient, JSearchClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[TaskStore] = None,
    pool: Optional[ConsumerPool] = None,
) -> FastAPI:
    """Build the API.

    The store and consumer pool are created from settings unless given.
    Consumers run in background threads for the lifetime of the app when
    `api.run_consumers` is set.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the queue and start consumers on startup."""
        app.state.store = store or TaskStore(
            settings.queue.database_url,
            lease_seconds=settings.queue.lease_seconds,
            claim_candidates=settings.queue.claim_candidates,
        )
        consumers = None
        if settings.api.run_consumers:
            consumers = pool or ConsumerPool.from_settings(settings, app.state.store)
            consumers.start()
        app.state.pool = consumers
        try:
            yield
        finally:
            if consumers is not None:
                consumers.stop()
            if store is None:
                app.state.store.close()

    app = FastAPI(
        title="ResumeFlow API",
        description="Resume scoring, job search and queued application form filling",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.jsearch = JSearchClient(
        settings.providers.jsearch_api_key,
        host=settings.providers.jsearch_host,
        timeout=settings.providers.timeout,
    )
    app.state.adzuna = AdzunaClient(
        settings.providers.adzuna_app_id,
        settings.providers.adzuna_api_key,
        country=settings.providers.adzuna_country,
        timeout=settings.providers.timeout,
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Reject invalid intake requests with 400."""
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are a 400, same as other intake rejections."""
        return JSONResponse(
            status_code=400,
            content={"error": "Malformed request", "details": jsonable_errors(exc)},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    from resumeflow.api.routes import applications, resumes

    app.include_router(applications.router, tags=["Applications"])
    app.include_router(resumes.router, tags=["Resumes"])

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw input, which may hold the resume."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
