"""FastAPI application factory."""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from promptledger.api.routes import generations
from promptledger.core import timezone  # noqa: F401
from promptledger.core.config import Settings, configure_logging
from promptledger.core.database import setup_db_session
from promptledger.services.storage import LocalImageStorage
from promptledger.services.vision import ReplicateVisionClient
from promptledger.uow import create_uow_factory

logger = structlog.get_logger()


def build_image_storage(settings: Settings) -> LocalImageStorage:
    """Create image storage from settings, creating its root directory if needed."""
    Path(settings.storage_root).mkdir(parents=True, exist_ok=True)
    return LocalImageStorage(
        root=settings.storage_root,
        directory=settings.storage_directory,
        url_prefix=settings.storage_url_prefix,
    )


def build_vision_client(settings: Settings) -> ReplicateVisionClient:
    """Create the Replicate vision client from settings."""
    return ReplicateVisionClient(
        api_token=settings.replicate_api_token,
        model=settings.vision_model,
        instruction=settings.vision_instruction,
        timeout_seconds=settings.vision_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, initialize database session factory and collaborators
    - Shutdown: Dispose of the database engine
    """
    settings = Settings()  # type: ignore[call-arg]

    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)

    # Store in app.state for access in routes
    app.state.session_factory = session_factory
    app.state.uow_factory = create_uow_factory(session_factory)
    app.state.image_storage = build_image_storage(settings)
    app.state.vision_client = build_vision_client(settings)

    logger.info(
        "application.startup",
        db_url=settings.database_url.split("@")[-1],
        vision_model=settings.vision_model,
        storage_root=settings.storage_root,
    )

    yield

    logger.info("application.shutdown")
    engine = session_factory.kw.get("bind")
    if engine is not None:
        await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="Prompt Ledger API",
        description="Generate descriptive prompts from uploaded images and keep a history",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generations.router)  # prefix="/api/generations" in definition

    # Serve stored images read-only
    Path(settings.storage_root).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.storage_url_prefix,
        StaticFiles(directory=settings.storage_root),
        name="storage",
    )

    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
