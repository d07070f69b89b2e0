"""Tests for the research orchestrator: ordering, progress, failures, cancellation."""

from __future__ import annotations

import asyncio

import pytest

from problemscout.errors import (
    GenerationError,
    InvalidInputError,
    ProviderError,
    ResearchCancelledError,
)
from problemscout.models.research import ResearchPlan, ResearchStage
from problemscout.providers import MockResearchProvider
from problemscout.research import STAGE_LABELS, ResearchOrchestrator, rank_problems

ALL_STAGES = [
    ResearchStage.PLANNING,
    ResearchStage.SEARCHING,
    ResearchStage.EXTRACTING,
    ResearchStage.ANALYZING,
    ResearchStage.FINALIZING,
]


class TestRankProblems:
    def test_sorted_descending(self, make_problem):
        problems = [make_problem(s, f"p{i}") for i, s in enumerate([3.0, 8.5, 6.1, 9.9, 0.5])]
        ranked = rank_problems(problems)
        scores = [p.signal_score for p in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_ties_keep_generated_order(self, make_problem):
        a = make_problem(7.5, "a")
        b = make_problem(7.5, "b")
        c = make_problem(9.0, "c")
        assert [p.id for p in rank_problems([a, b, c])] == ["c", "a", "b"]

    def test_idempotent(self, make_problem):
        problems = [make_problem(s, f"p{i}") for i, s in enumerate([7.5, 2.0, 7.5, 8.0])]
        once = rank_problems(problems)
        assert rank_problems(once) == once

    def test_rank_field_untouched(self, make_problem):
        problems = [make_problem(4.1, "low", rank=1), make_problem(9.2, "high", rank=2)]
        ranked = rank_problems(problems)
        assert [(p.id, p.rank) for p in ranked] == [("high", 2), ("low", 1)]

    def test_empty(self):
        assert rank_problems([]) == []


class TestOrchestratorRun:
    async def test_returns_sorted_problems(self, make_problem, scripted_provider):
        provider = scripted_provider(
            problems=[make_problem(s, f"p{i}") for i, s in enumerate([5.0, 9.1, 7.3])]
        )
        result = await ResearchOrchestrator(provider).run("crm for plumbers")
        assert [p.signal_score for p in result] == [9.1, 7.3, 5.0]

    async def test_calls_provider_in_order_with_chained_data(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(5.0)], evidence="raw text")
        await ResearchOrchestrator(provider).run("crm")
        assert provider.calls == ["generate_plan", "generate_raw_evidence", "cluster_and_score"]
        assert provider.seen["plan"] is provider.plan
        assert provider.seen["raw_evidence"] == "raw text"

    async def test_topic_is_trimmed(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(5.0)])
        await ResearchOrchestrator(provider).run("  crm  ")
        assert provider.seen["topic"] == "crm"

    async def test_progress_fires_each_stage_once_in_order(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(5.0)])
        stages: list[ResearchStage] = []
        await ResearchOrchestrator(provider).run("crm", stages.append)
        assert stages == ALL_STAGES

    async def test_empty_result_is_valid(self, scripted_provider):
        result = await ResearchOrchestrator(scripted_provider(problems=[])).run("crm")
        assert result == []

    @pytest.mark.parametrize("topic", ["", "   ", "\n\t"])
    async def test_blank_topic_rejected_without_calls(self, topic, scripted_provider):
        provider = scripted_provider()
        stages: list[ResearchStage] = []
        with pytest.raises(InvalidInputError):
            await ResearchOrchestrator(provider).run(topic, stages.append)
        assert provider.calls == []
        assert stages == []

    @pytest.mark.parametrize(
        ("failing_call", "stages_seen"),
        [
            ("generate_plan", ALL_STAGES[:1]),
            ("generate_raw_evidence", ALL_STAGES[:2]),
            ("cluster_and_score", ALL_STAGES[:4]),
        ],
    )
    async def test_failure_propagates_without_result(
        self, failing_call, stages_seen, make_problem, scripted_provider
    ):
        error = ProviderError("boom")
        provider = scripted_provider(
            problems=[make_problem(5.0)], fail_at=failing_call, error=error
        )
        stages: list[ResearchStage] = []
        with pytest.raises(ProviderError) as exc_info:
            await ResearchOrchestrator(provider).run("crm", stages.append)
        assert exc_info.value is error
        assert stages == stages_seen
        assert provider.calls[-1] == failing_call

    async def test_plan_failure_reports_only_planning(self, scripted_provider):
        provider = scripted_provider(fail_at="generate_plan", error=ProviderError("rate limited"))
        stages: list[ResearchStage] = []
        with pytest.raises(ProviderError, match="rate limited"):
            await ResearchOrchestrator(provider).run("crm", stages.append)
        assert stages == [ResearchStage.PLANNING]
        assert provider.calls == ["generate_plan"]

    async def test_generation_error_keeps_stage(self, scripted_provider):
        error = GenerationError("bad json", stage=ResearchStage.ANALYZING)
        provider = scripted_provider(fail_at="cluster_and_score", error=error)
        with pytest.raises(GenerationError) as exc_info:
            await ResearchOrchestrator(provider).run("crm")
        assert exc_info.value.stage == ResearchStage.ANALYZING

    async def test_orchestrator_is_reusable(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(2.0, "a"), make_problem(8.0, "b")])
        orchestrator = ResearchOrchestrator(provider)
        first = await orchestrator.run("crm")
        second = await orchestrator.run("crm")
        assert first == second

    async def test_concurrent_runs_are_independent(self, make_problem, scripted_provider):
        orchestrator_a = ResearchOrchestrator(scripted_provider(problems=[make_problem(1.0, "a")]))
        orchestrator_b = ResearchOrchestrator(scripted_provider(problems=[make_problem(2.0, "b")]))
        a, b = await asyncio.gather(orchestrator_a.run("x"), orchestrator_b.run("y"))
        assert [p.id for p in a] == ["a"]
        assert [p.id for p in b] == ["b"]


class TestRealEstateScenario:
    async def test_end_to_end(self, make_problem, scripted_provider):
        plan = ResearchPlan(
            subreddits=["realestate"],
            search_terms=["realtor crm pain"],
            product_hunt_queries=[],
            review_site_queries=[],
            competitor_tools=[],
        )
        provider = scripted_provider(
            plan=plan,
            problems=[make_problem(4.1, "follow-ups", rank=1), make_problem(9.2, "leads", rank=2)],
        )
        stages: list[ResearchStage] = []

        result = await ResearchOrchestrator(provider).run("AI for real estate agents", stages.append)

        assert [p.signal_score for p in result] == [9.2, 4.1]
        assert [p.id for p in result] == ["leads", "follow-ups"]
        assert provider.seen["plan"].subreddits == ["realestate"]
        assert stages == ALL_STAGES


class TestCancellation:
    async def test_cancelled_before_start(self, scripted_provider):
        provider = scripted_provider()
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(ResearchCancelledError):
            await ResearchOrchestrator(provider).run("crm", cancel_event=cancel)
        assert provider.calls == []

    async def test_cancel_discards_late_result(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(5.0)])
        cancel = asyncio.Event()
        stages: list[ResearchStage] = []

        def on_progress(stage: ResearchStage) -> None:
            stages.append(stage)
            if stage is ResearchStage.PLANNING:
                cancel.set()

        with pytest.raises(ResearchCancelledError):
            await ResearchOrchestrator(provider).run("crm", on_progress, cancel_event=cancel)
        assert provider.calls == ["generate_plan"]
        assert stages == [ResearchStage.PLANNING]

    async def test_unset_event_runs_normally(self, make_problem, scripted_provider):
        provider = scripted_provider(problems=[make_problem(5.0)])
        result = await ResearchOrchestrator(provider).run("crm", cancel_event=asyncio.Event())
        assert len(result) == 1


class TestWithMockProvider:
    async def test_dry_run_pipeline_ranks_canned_problems(self):
        result = await ResearchOrchestrator(MockResearchProvider()).run("dental clinics")
        assert [p.signal_score for p in result] == [8.1, 6.4, 5.2]
        assert [p.rank for p in result] == [1, 2, 3]


def test_every_stage_has_a_label():
    assert set(STAGE_LABELS) == set(ResearchStage)
