"""Credit gate and the gated research service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from problemscout.errors import CreditExhaustedError, ProfileNotFoundError
from problemscout.metrics import credits_consumed_total
from problemscout.models.search import SearchRecord

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

    from problemscout.models.problem import Problem
    from problemscout.models.profile import UserProfile
    from problemscout.models.research import ResearchStage
    from problemscout.protocols import ProfileStorePort
    from problemscout.research import ResearchOrchestrator

logger = structlog.get_logger()


@dataclass(frozen=True)
class SettledRun:
    search_id: int | None
    credits_remaining: int
    is_pro: bool


@dataclass(frozen=True)
class ResearchOutcome:
    problems: list[Problem]
    search_id: int | None
    credits_remaining: int
    is_pro: bool


class CreditGate:
    """Admits research runs and charges for them once they succeed."""

    def __init__(self, store: ProfileStorePort) -> None:
        self.store = store

    def ensure_can_run(self, user_id: str) -> UserProfile:
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile with id {user_id}")
        if not profile.can_research:
            raise CreditExhaustedError("No research credits remaining")
        return profile

    def settle(self, profile: UserProfile, topic: str, results: list[Problem]) -> SettledRun:
        """Debit one credit (free tier only) and record the search.

        The debit and the search row are written in one transaction. A debit
        that finds the balance already at zero raises CreditExhaustedError
        before anything is written.
        """
        search = SearchRecord(user_id=profile.id, topic=topic, results=results)
        if profile.is_pro:
            record, remaining = self.store.save_search(search), profile.credits
        else:
            record, remaining = self.store.charge_search(search)
            credits_consumed_total.inc()
            logger.info("Credit consumed", user_id=profile.id, credits_remaining=remaining)

        return SettledRun(
            search_id=record.id, credits_remaining=remaining, is_pro=profile.is_pro
        )


class ResearchService:
    def __init__(self, store: ProfileStorePort, orchestrator: ResearchOrchestrator) -> None:
        self.store = store
        self.gate = CreditGate(store)
        self.orchestrator = orchestrator

    async def research(
        self,
        user_id: str,
        topic: str,
        on_progress: Callable[[ResearchStage], None] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ResearchOutcome:
        """Gate, run and settle one research request.

        Failed or cancelled runs propagate their error and are never charged
        or recorded.
        """
        profile = self.gate.ensure_can_run(user_id)
        problems = await self.orchestrator.run(topic, on_progress, cancel_event=cancel_event)
        settled = self.gate.settle(profile, topic.strip(), problems)
        return ResearchOutcome(
            problems=problems,
            search_id=settled.search_id,
            credits_remaining=settled.credits_remaining,
            is_pro=settled.is_pro,
        )

    def history(self, user_id: str, limit: int = 20) -> list[SearchRecord]:
        if self.store.get_profile(user_id) is None:
            raise ProfileNotFoundError(f"No profile with id {user_id}")
        return self.store.list_searches(user_id, limit=limit)
