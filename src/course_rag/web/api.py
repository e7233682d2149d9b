"""FastAPI application factory.

Main entry point for the Course RAG Manager Web API. Serve with:

    uvicorn course_rag.web.api:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from course_rag import __version__
from course_rag.backend.client import BackendClient
from course_rag.config.app_config import AppConfig, load_app_config
from course_rag.db.database import Database
from course_rag.web.errors import install_error_handlers
from course_rag.web.routes import (
    ask_router,
    courses_router,
    debug_router,
    documents_router,
    health_router,
    semesters_router,
    units_router,
    upload_router,
    years_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config: AppConfig = app.state.config
    logger.info(
        "api_startup",
        db_path=str(config.paths.db_path.absolute()),
        upload_dir=str(config.paths.upload_dir.absolute()),
        backend_url=config.backend.base_url,
    )
    yield
    app.state.backend.close()


def create_app(
    config: AppConfig | None = None,
    backend: BackendClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application config (defaults to load_app_config())
        backend: Remote backend client (defaults to one built from config)

    Returns:
        Configured FastAPI app instance
    """
    config = config or load_app_config()

    db = Database(config.paths.db_path)
    db.init()
    config.paths.upload_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(
        title="Course RAG Manager API",
        description="Course hierarchy manager with a question-answering backend proxy",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.db = db
    app.state.backend = backend or BackendClient(config.backend)

    # CORS middleware for web clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(years_router)
    app.include_router(semesters_router)
    app.include_router(units_router)
    app.include_router(documents_router)
    app.include_router(upload_router)
    app.include_router(ask_router)
    app.include_router(debug_router)

    return app
