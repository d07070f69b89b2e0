"""Health check and config endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

from problemscout import __version__
from problemscout.api.deps import DbDep, SettingsDep
from problemscout.api.schemas import ConfigCheckResponse, HealthResponse

router = APIRouter(tags=["system"])

logger = structlog.get_logger()


@router.get("/health", response_model=HealthResponse)
def health_check(db: DbDep) -> HealthResponse:
    try:
        db_ok = db.check_connection()
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed", error=str(exc))
        db_ok = False

    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        version=__version__,
        db_connected=db_ok,
    )


@router.get("/config/check", response_model=ConfigCheckResponse)
def config_check(settings: SettingsDep) -> ConfigCheckResponse:
    return ConfigCheckResponse(
        llm_provider=settings.llm_provider,
        llm_model=settings.resolved_llm_model,
        dry_run=settings.dry_run,
        configured={
            "anthropic": bool(settings.anthropic_api_key),
            "google": bool(settings.google_api_key),
            "groq": bool(settings.groq_api_key),
            "llm": bool(settings.llm_api_key),
            "razorpay": settings.razorpay_configured,
        },
    )
