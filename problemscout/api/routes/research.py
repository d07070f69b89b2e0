"""Research endpoints: a blocking run and an NDJSON progress stream."""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from problemscout.api.deps import ResearchServiceDep
from problemscout.api.middleware import error_body
from problemscout.api.schemas import ResearchRequest, ResearchResponse
from problemscout.errors import InvalidInputError
from problemscout.research import STAGE_LABELS

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from problemscout.credits import ResearchOutcome, ResearchService
    from problemscout.models.research import ResearchStage

router = APIRouter(prefix="/research", tags=["research"])

logger = structlog.get_logger()


def _outcome_to_response(
    topic: str, outcome: ResearchOutcome, stages: list[str]
) -> ResearchResponse:
    return ResearchResponse(
        topic=topic,
        problems=outcome.problems,
        stages=stages,
        search_id=outcome.search_id,
        credits_remaining=outcome.credits_remaining,
        is_pro=outcome.is_pro,
    )


def _validate_topic(topic: str) -> str:
    if not topic.strip():
        raise InvalidInputError("Topic must not be empty")
    return topic.strip()


@router.post("", response_model=ResearchResponse)
async def run_research(body: ResearchRequest, service: ResearchServiceDep) -> ResearchResponse:
    topic = _validate_topic(body.topic)
    stages: list[str] = []
    outcome = await service.research(body.user_id, topic, lambda s: stages.append(s.value))
    return _outcome_to_response(topic, outcome, stages)


@router.post("/stream")
async def stream_research(body: ResearchRequest, service: ResearchServiceDep) -> StreamingResponse:
    """Run research and stream one JSON line per stage, then the result or an error.

    Gate failures are reported as ordinary HTTP errors before streaming starts.
    """
    topic = _validate_topic(body.topic)
    service.gate.ensure_can_run(body.user_id)
    return StreamingResponse(
        _research_events(service, body.user_id, topic),
        media_type="application/x-ndjson",
    )


async def _research_events(
    service: ResearchService, user_id: str, topic: str
) -> AsyncIterator[str]:
    queue: asyncio.Queue[dict[str, object] | None] = asyncio.Queue()
    cancel_event = asyncio.Event()
    stages: list[str] = []

    def on_progress(stage: ResearchStage) -> None:
        stages.append(stage.value)
        queue.put_nowait({"event": "stage", "stage": stage.value, "label": STAGE_LABELS[stage]})

    async def run() -> None:
        try:
            outcome = await service.research(user_id, topic, on_progress, cancel_event=cancel_event)
        except Exception as exc:
            if error_body(exc)["error"] == "internal_server_error":
                logger.error("Streamed research crashed", error=str(exc), exc_info=exc)
            queue.put_nowait({"event": "error", **error_body(exc)})
        else:
            response = _outcome_to_response(topic, outcome, stages)
            queue.put_nowait({"event": "result", **response.model_dump(mode="json", by_alias=True)})
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(run())
    try:
        while (event := await queue.get()) is not None:
            yield json.dumps(event) + "\n"
    finally:
        # Client went away: stop the run at its next stage boundary.
        if not task.done():
            cancel_event.set()
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
