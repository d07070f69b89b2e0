"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from problemscout.config import Settings
from problemscout.credits import ResearchService
from problemscout.db import Database
from problemscout.payments import PaymentVerifier
from problemscout.protocols import PaymentGatewayPort
from problemscout.research import ResearchOrchestrator


def _get_db(request: Request) -> Database:
    return request.app.state.db  # type: ignore[no-any-return]


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def _get_orchestrator(request: Request) -> ResearchOrchestrator:
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def _get_gateway(request: Request) -> PaymentGatewayPort:
    return request.app.state.gateway  # type: ignore[no-any-return]


DbDep = Annotated[Database, Depends(_get_db)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]
OrchestratorDep = Annotated[ResearchOrchestrator, Depends(_get_orchestrator)]
GatewayDep = Annotated[PaymentGatewayPort, Depends(_get_gateway)]


def _get_research_service(db: DbDep, orchestrator: OrchestratorDep) -> ResearchService:
    return ResearchService(db, orchestrator)


def _get_payment_verifier(
    db: DbDep, gateway: GatewayDep, settings: SettingsDep
) -> PaymentVerifier:
    return PaymentVerifier(db, gateway, settings)


ResearchServiceDep = Annotated[ResearchService, Depends(_get_research_service)]
PaymentVerifierDep = Annotated[PaymentVerifier, Depends(_get_payment_verifier)]
