"""
FastAPI application factory and configuration
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .. import __version__
from ..logging_config import bind_request_context, clear_request_context, configure_logging
from ..utils.async_utils import drain_background_tasks, pending_background_tasks
from .config import TRUSTED_ORIGINS, get_environment
from .dependencies import AdvisorServices, build_services
from .error_handlers import register_error_handlers

logger = structlog.get_logger(__name__)


def _lifespan(services: Optional[AdvisorServices]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting template advisor API", environment=get_environment(), version=__version__)
        app.state.services = services or build_services()
        await app.state.services.startup()

        yield

        logger.info("Shutting down template advisor API", pending_tasks=pending_background_tasks())
        await drain_background_tasks(timeout=10.0)
        await app.state.services.shutdown()
        logger.info("Shutdown complete")

    return lifespan


def create_app(services: Optional[AdvisorServices] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    configure_logging()
    app = FastAPI(
        title="Process Template Advisor API",
        version=__version__,
        description="Knowledge fusion, benchmarks, compliance and template validation for process design",
        lifespan=_lifespan(services),
    )
    setup_middleware(app)
    register_error_handlers(app)
    setup_routes(app)
    return app


def setup_middleware(app: FastAPI):
    """Configure middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=TRUSTED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Request-ID"],
        max_age=600,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        bind_request_context(request.state.request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1000)


def setup_routes(app: FastAPI):
    """Configure routes"""
    from ..routes import search_router, templates_router

    app.include_router(search_router, prefix="/v1")
    app.include_router(templates_router, prefix="/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}
