"""FastAPI application factory and entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI

from problemscout import __version__
from problemscout.api.middleware import CorrelationIdMiddleware, add_exception_handlers
from problemscout.api.routes import payments, profiles, research, system, trends
from problemscout.clients.razorpay import RazorpayClient
from problemscout.config import Settings
from problemscout.db import Database
from problemscout.logging import configure_logging
from problemscout.providers import build_research_provider
from problemscout.research import ResearchOrchestrator

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize DB, research pipeline and payment gateway on startup."""
    settings = Settings()
    settings.ensure_data_dir()

    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    db = Database(settings.db_path)
    db.init_schema()

    if not settings.dry_run and not settings.llm_api_key:
        logger.warning(
            "No API key for LLM provider, research requests will fail",
            provider=settings.llm_provider,
        )

    app.state.db = db
    app.state.settings = settings
    app.state.orchestrator = ResearchOrchestrator(
        build_research_provider(settings, dry_run=settings.dry_run)
    )
    app.state.gateway = RazorpayClient(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        base_url=settings.razorpay_base_url,
    )

    logger.info("ProblemScout API started", host=settings.api_host, port=settings.api_port)
    yield

    db.close()
    logger.info("ProblemScout API shut down")


def include_routes(app: FastAPI) -> None:
    prefix = "/api/v1"
    app.include_router(system.router, prefix=prefix)
    app.include_router(profiles.router, prefix=prefix)
    app.include_router(research.router, prefix=prefix)
    app.include_router(trends.router, prefix=prefix)
    app.include_router(payments.router, prefix=prefix)


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title="ProblemScout",
        description="Market research: ranked, evidence-backed customer problems for a topic",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationIdMiddleware)
    add_exception_handlers(app)

    # Prometheus metrics endpoint
    from prometheus_client import make_asgi_app

    app.mount("/metrics", make_asgi_app())

    include_routes(app)
    return app


def main() -> None:
    """Entry point for `problemscout-api` command."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "problemscout.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )
