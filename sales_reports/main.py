"""
FastAPI Application

Main entry point for the Sales Reports API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_reports.config import get_settings
from sales_reports.config.logging import configure_logging
from sales_reports.database.connection import init_database, close_database
from sales_reports.serving.api import create_api_app

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting Sales Reports API")

    try:
        await init_database()
    except Exception as e:
        # Health endpoints report the store as unavailable until it comes up
        logger.warning(f"Database init failed: {e}")

    yield

    logger.info("Shutting down...")
    await close_database()


app = create_api_app(lifespan=lifespan)


@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    settings = get_settings()
    return {
        "name": "Sales Reports API",
        "version": settings.version,
        "environment": settings.app_env,
        "evaluation_date": settings.reports.evaluation_date,
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
