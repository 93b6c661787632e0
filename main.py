"""
FastAPI application entry point for the Vehicle Registration Checker.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

# Configure logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer()
    ]
)

logger = structlog.get_logger()

from config import settings
from api import routes
from api.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Vehicle Registration Checker", version=settings.APP_VERSION)

    # Ensure directories exist
    settings.ensure_directories()

    # Validate configuration
    issues = settings.validate()
    if issues:
        for issue in issues:
            logger.warning(f"Configuration issue: {issue}")

    yield

    # Shutdown
    logger.info("Shutting down Vehicle Registration Checker")

    # Let workers drain instead of leaving a search running
    if routes.search_coordinator.request_stop():
        run = routes.search_coordinator.current_run
        if run is not None:
            run.wait(timeout=settings.REQUEST_TIMEOUT + 1)


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Parallel registration date search",
    lifespan=lifespan
)

# Include routes
app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
