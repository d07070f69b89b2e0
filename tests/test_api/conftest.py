"""FastAPI test client fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from problemscout.api.app import include_routes
from problemscout.api.middleware import CorrelationIdMiddleware, add_exception_handlers
from problemscout.clients.razorpay import RazorpayPayment
from problemscout.providers import MockResearchProvider
from problemscout.research import ResearchOrchestrator

if TYPE_CHECKING:
    from collections.abc import Callable

    from problemscout.config import Settings
    from problemscout.db import Database
    from problemscout.models.profile import UserProfile
    from problemscout.protocols import ResearchProviderPort


class StaticGateway:
    """Payment gateway that knows a single captured Pro payment."""

    is_available = True

    def fetch_payment(self, payment_id: str) -> RazorpayPayment | None:
        if payment_id != "pay_ok":
            return None
        return RazorpayPayment(id="pay_ok", status="captured", amount=9900, currency="INR")


def _create_test_app(
    db: Database, settings: Settings, provider: ResearchProviderPort
) -> FastAPI:
    """Create a FastAPI app with injected test state (no lifespan)."""
    app = FastAPI(title="ProblemScout Test")

    app.state.db = db
    app.state.settings = settings
    app.state.orchestrator = ResearchOrchestrator(provider)
    app.state.gateway = StaticGateway()

    app.add_middleware(CorrelationIdMiddleware)
    add_exception_handlers(app)
    include_routes(app)
    return app


@pytest.fixture()
def make_client(db: Database, settings: Settings) -> Callable[[ResearchProviderPort], TestClient]:
    def _make(provider: ResearchProviderPort) -> TestClient:
        return TestClient(_create_test_app(db, settings, provider))

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:
    return make_client(MockResearchProvider())


@pytest.fixture()
def user(db: Database, settings: Settings) -> UserProfile:
    return db.create_profile("agent@example.com", "Ana", "Lee", credits=settings.free_credits)
