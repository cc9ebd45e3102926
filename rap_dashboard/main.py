"""
RAP Dashboard Backend - FastAPI Application
Main entry point with all routes configured.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rap_dashboard.config import settings
from rap_dashboard.models.types import utcnow
from rap_dashboard.database import init_db
from rap_dashboard.core.exceptions import register_exception_handlers
from rap_dashboard.core.logging_config import setup_logging
from rap_dashboard.jobs.insight_job import start_insight_scheduler
from rap_dashboard.schemas.common import HealthResponse

# Import all API routers
from rap_dashboard.api import webhook, data, integrations, analytics

# Import models to ensure they are registered with SQLModel
from rap_dashboard.models import (  # noqa: F401
    Dataset, LinkedInContact, EmailContact, WebinarAttendee,
    Insight, AuditLogEntry,
    LinkedInMessage, LinkedInProfileView, FollowUpTask,
    CampaignMetric, RawDataImport
)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    setup_logging()
    await init_db()

    scheduler = None
    if settings.INSIGHT_SCHEDULER_ENABLED:
        scheduler = asyncio.create_task(start_insight_scheduler())
    else:
        logger.info("Insight scheduler disabled")

    yield

    # Shutdown
    if scheduler is not None:
        scheduler.cancel()
        with suppress(asyncio.CancelledError):
            await scheduler


app = FastAPI(
    title="RAP Dashboard API",
    description="Campaign analytics backend: LinkedIn, email and webinar ingestion with rule-based insights",
    version=VERSION,
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include all routers
app.include_router(webhook.router)       # LinkedIn automation events
app.include_router(data.router)          # File uploads and datasets
app.include_router(integrations.router)  # n8n callbacks
app.include_router(analytics.router)


@app.get("/")
async def root():
    return {
        "message": "RAP Dashboard API is running",
        "version": VERSION,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": VERSION,
        "timestamp": utcnow().isoformat() + "Z"
    }
