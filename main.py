"""
Recurrence Engine - Main Application Entry Point

Serves the recurrence pattern management API and runs the periodic
recurrence processor in-process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from recurrence_engine.core.config import get_settings
from recurrence_engine.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Recurrence Engine in {settings.ENVIRONMENT} mode...")

    if settings.is_local:
        from recurrence_engine.infrastructure.local.database import init_db

        await init_db()

    # Start background scheduler for the recurrence processor
    from recurrence_engine.services.background_scheduler import (
        start_background_scheduler,
        stop_background_scheduler,
    )

    await start_background_scheduler()

    yield

    # Shutdown
    logger.info("Shutting down Recurrence Engine...")
    await stop_background_scheduler()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Recurrence Engine",
        description="Generates task instances from DAILY / WEEKLY / MONTHLY recurrence patterns",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    from recurrence_engine.api import recurrence_patterns

    app.include_router(recurrence_patterns.router, prefix="/api", tags=["recurrence"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
