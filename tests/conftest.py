"""Shared test fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from pydantic_ai import models

from problemscout.config import Settings
from problemscout.db import Database
from problemscout.models.problem import Problem
from problemscout.models.research import ResearchPlan

if TYPE_CHECKING:
    from collections.abc import Callable

# Safety net: block all real LLM API calls during tests.
# TestModel and FunctionModel are exempt from this check.
models.ALLOW_MODEL_REQUESTS = False


def _problem_payload(signal_score: float, problem_id: str = "p", rank: int = 1) -> dict[str, Any]:
    """A camelCase Problem payload as the LLM would return it."""
    return {
        "id": problem_id,
        "rank": rank,
        "problemStatement": f"Problem {problem_id} costs users hours every week.",
        "signalScore": signal_score,
        "scores": {
            "frequency": 7,
            "painIntensity": 6,
            "monetization": 8,
            "solvability": 5,
            "competitiveGap": 4,
        },
        "evidence": [
            {
                "text": "I lose a whole afternoon to this every week.",
                "source": "r/realestate",
                "url": f"https://reddit.com/r/realestate/{problem_id}",
                "platform": "reddit",
            }
        ],
        "existingSolutions": [
            {
                "name": "Follow Up Boss",
                "url": "https://followupboss.com",
                "rating": 3.9,
                "complaintSummary": "Too expensive for solo agents",
                "reviewCount": 120,
            }
        ],
        "suggestedNextStep": "Interview five agents.",
        "metadata": {
            "mentionCount": 12,
            "sources": ["reddit", "g2"],
            "createdAt": "2026-01-05T10:00:00Z",
        },
    }


class ScriptedProvider:
    """ResearchProviderPort returning fixed data and recording every call."""

    def __init__(
        self,
        problems: list[Problem] | None = None,
        plan: ResearchPlan | None = None,
        evidence: str = "[reddit] r/realestate: CRMs are clunky.",
        fail_at: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.problems = problems if problems is not None else []
        self.plan = plan or ResearchPlan(
            subreddits=["realestate"],
            search_terms=["real estate crm frustrating"],
            product_hunt_queries=["real estate ai"],
            review_site_queries=["real estate crm reviews"],
            competitor_tools=["Follow Up Boss"],
        )
        self.evidence = evidence
        self.fail_at = fail_at
        self.error = error
        self.calls: list[str] = []
        self.seen: dict[str, object] = {}

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_at == name:
            raise self.error or RuntimeError(f"{name} failed")

    async def generate_plan(self, topic: str) -> ResearchPlan:
        self.seen["topic"] = topic
        self._maybe_fail("generate_plan")
        return self.plan

    async def generate_raw_evidence(self, topic: str, plan: ResearchPlan) -> str:
        self.seen["plan"] = plan
        self._maybe_fail("generate_raw_evidence")
        return self.evidence

    async def cluster_and_score(self, topic: str, raw_evidence: str) -> list[Problem]:
        self.seen["raw_evidence"] = raw_evidence
        self._maybe_fail("cluster_and_score")
        return list(self.problems)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        llm_provider="google",
        google_api_key="test-key",
        anthropic_api_key="",
        groq_api_key="",
        razorpay_key_id="rzp_test_key",
        razorpay_key_secret="rzp_test_secret",
        data_dir=tmp_path,
        log_level="DEBUG",
        log_format="console",
        llm_max_retries=1,
        llm_retry_base_delay=0.0,
        _env_file=None,
    )


@pytest.fixture()
def db(tmp_path) -> Database:
    db = Database(tmp_path / "test.db")
    db.init_schema()
    yield db
    db.close()


@pytest.fixture()
def make_problem() -> Callable[..., Problem]:
    def _make(signal_score: float, problem_id: str = "p", rank: int = 1) -> Problem:
        return Problem.model_validate(_problem_payload(signal_score, problem_id, rank))

    return _make


@pytest.fixture()
def problem_payload() -> Callable[..., dict[str, Any]]:
    return _problem_payload


@pytest.fixture()
def scripted_provider() -> type[ScriptedProvider]:
    return ScriptedProvider
