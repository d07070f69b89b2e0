"""Research orchestrator: plan, simulate evidence, cluster, rank."""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING, TypeVar

import structlog

from problemscout.errors import InvalidInputError, ResearchCancelledError
from problemscout.metrics import research_runs_total, stage_duration_seconds
from problemscout.models.research import ResearchStage

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable, Callable, Sequence

    from problemscout.models.problem import Problem
    from problemscout.protocols import ResearchProviderPort

    ProgressCallback = Callable[[ResearchStage], None]

logger = structlog.get_logger()

R = TypeVar("R")

STAGE_LABELS: dict[ResearchStage, str] = {
    ResearchStage.PLANNING: "Intelligent Planning: Decomposing topic...",
    ResearchStage.SEARCHING: "Web Search: Scanning Reddit & Product Hunt...",
    ResearchStage.EXTRACTING: "Extracting complaints from review sites...",
    ResearchStage.ANALYZING: "Pattern Analysis: Clustering into opportunities...",
    ResearchStage.FINALIZING: "Finalizing ranked results...",
}


def rank_problems(problems: Sequence[Problem]) -> list[Problem]:
    """Order by signal score, highest first; ties keep their generated order."""
    return sorted(problems, key=lambda p: p.signal_score, reverse=True)


class ResearchOrchestrator:
    """Drives one research run per call through a ResearchProviderPort.

    Holds no per-run state, so one instance can serve any number of
    sequential or concurrent runs.
    """

    def __init__(self, provider: ResearchProviderPort) -> None:
        self.provider = provider

    async def run(
        self,
        topic: str,
        on_progress: ProgressCallback | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Problem]:
        """Run the pipeline for *topic* and return problems ranked by signal score.

        Args:
            topic: Free-text market topic. Blank topics raise InvalidInputError
                before any provider call.
            on_progress: Called once per stage, in ResearchStage order, just
                before that stage's work starts.
            cancel_event: When set, the run stops at the next stage boundary
                with ResearchCancelledError and discards any late provider result.

        Any provider failure propagates unchanged; nothing is returned partially.
        """
        if not topic or not topic.strip():
            raise InvalidInputError("Topic must not be empty")
        topic = topic.strip()

        run_id = uuid.uuid4().hex[:12]
        with structlog.contextvars.bound_contextvars(run_id=run_id, topic=topic):
            logger.info("Research run started")
            try:
                problems = await self._run_stages(topic, on_progress, cancel_event)
            except ResearchCancelledError:
                research_runs_total.labels(status="cancelled").inc()
                logger.info("Research run cancelled")
                raise
            except Exception as exc:
                research_runs_total.labels(status="error").inc()
                logger.error("Research run failed", error=str(exc), error_type=type(exc).__name__)
                raise
            research_runs_total.labels(status="success").inc()
            logger.info(
                "Research run complete",
                problems=len(problems),
                top_score=problems[0].signal_score if problems else None,
            )
            return problems

    async def _run_stages(
        self,
        topic: str,
        on_progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
    ) -> list[Problem]:
        self._enter(ResearchStage.PLANNING, on_progress, cancel_event)
        plan = await self._timed(ResearchStage.PLANNING, self.provider.generate_plan(topic))
        _checkpoint(cancel_event)

        self._enter(ResearchStage.SEARCHING, on_progress, cancel_event)
        raw_evidence = await self._timed(
            ResearchStage.SEARCHING, self.provider.generate_raw_evidence(topic, plan)
        )
        _checkpoint(cancel_event)

        # Extraction is a progress marker only; evidence arrives with the search call.
        self._enter(ResearchStage.EXTRACTING, on_progress, cancel_event)

        self._enter(ResearchStage.ANALYZING, on_progress, cancel_event)
        problems = await self._timed(
            ResearchStage.ANALYZING, self.provider.cluster_and_score(topic, raw_evidence)
        )
        _checkpoint(cancel_event)

        self._enter(ResearchStage.FINALIZING, on_progress, cancel_event)
        return rank_problems(problems)

    @staticmethod
    def _enter(
        stage: ResearchStage,
        on_progress: ProgressCallback | None,
        cancel_event: asyncio.Event | None,
    ) -> None:
        _checkpoint(cancel_event)
        logger.debug("Research stage", stage=stage)
        if on_progress is not None:
            on_progress(stage)

    @staticmethod
    async def _timed(stage: ResearchStage, call: Awaitable[R]) -> R:
        t0 = time.monotonic()
        try:
            return await call
        finally:
            stage_duration_seconds.labels(stage=stage.value).observe(time.monotonic() - t0)


def _checkpoint(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ResearchCancelledError("Research run was cancelled")
