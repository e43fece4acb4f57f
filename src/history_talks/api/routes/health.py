"""Health check endpoints."""

import shutil

import redis
from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from history_talks import __version__
from history_talks.adapters.llm import get_llm_provider
from history_talks.adapters.voiceover import get_voiceover_provider
from history_talks.config import settings
from history_talks.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    broker: bool
    components: dict[str, bool] | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Reports which external providers are configured.
    """
    components = {
        "llm": settings.llm_provider,
        "voiceover": settings.voiceover_provider,
    }
    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in components.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database, broker and media tooling.",
)
async def readiness_check() -> ReadinessResponse:
    # Check database
    database_ok = False
    try:
        from history_talks.db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            database_ok = True
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))

    # Check broker; eager and in-memory setups have nothing to ping
    broker_ok = True
    if settings.celery_broker_url.startswith("redis"):
        try:
            redis.from_url(settings.celery_broker_url).ping()
        except redis.RedisError as e:
            broker_ok = False
            logger.error("broker_health_check_failed", error=str(e))

    components = {
        "llm": await get_llm_provider().health_check(),
        "voiceover": get_voiceover_provider().available,
        "ffmpeg": shutil.which(settings.ffmpeg_path or "ffmpeg") is not None,
    }

    return ReadinessResponse(
        ready=database_ok and broker_ok,
        database=database_ok,
        broker=broker_ok,
        components=components,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
    description="Simple liveness check for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness check - is the process alive?"""
    return {"status": "alive"}
