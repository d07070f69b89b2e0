"""Research provider backed by an LLM: plan, simulated evidence, clustering."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from problemscout.errors import GenerationError, InvalidInputError
from problemscout.models.problem import ProblemClusters
from problemscout.models.research import ResearchPlan, ResearchStage

if TYPE_CHECKING:
    from problemscout.config import Settings
    from problemscout.models.problem import Problem
    from problemscout.protocols import LLMPort

logger = structlog.get_logger()

# Tolerance before a generated signal score is flagged as inconsistent.
_SCORE_DRIFT_WARNING = 1.0

_PLAN_SYSTEM_PROMPT = (
    "You are a market research strategist. You decompose a market topic into "
    "concrete places where real customers complain: communities, search "
    "queries, launch sites, review sites and the competing tools they use."
)

_PLAN_PROMPT_TEMPLATE = """\
Generate a research plan for the topic: "{topic}".
Focus on finding business problems, customer complaints, and market gaps.

Return:
- subreddits: community names (without the r/ prefix), most relevant first
- searchTerms: web search queries likely to surface complaints
- productHuntQueries: queries for Product Hunt launches and comments
- reviewSiteQueries: queries for G2, Capterra and similar review sites
- competitorTools: names of existing products in this space
"""

_EVIDENCE_SYSTEM_PROMPT = (
    "You simulate raw search results: forum posts, review excerpts and "
    "comments written by frustrated users. Write them in the users' own voice."
)

_EVIDENCE_PROMPT_TEMPLATE = """\
Simulate search results for: "{topic}".
Subreddits: {subreddits}.
Search terms: {search_terms}.
Product Hunt queries: {product_hunt_queries}.
Review site queries: {review_site_queries}.
Competitor tools: {competitor_tools}.

Generate {sample_size} specific raw user complaints and forum posts with source URLs.
For each one give the platform, the source (e.g. the subreddit or the reviewed \
product), the URL and the complaint text.
"""

_CLUSTER_SYSTEM_PROMPT = (
    "You are a product opportunity analyst. You cluster raw complaints into "
    "distinct business problems and score them with calibrated judgement. "
    "Only score high when the evidence supports it."
)

_CLUSTER_PROMPT_TEMPLATE = """\
Analyze this research data for the topic "{topic}" and cluster it into the \
top {min_problems}-{max_problems} business problems.

Data:
{raw_evidence}

Score each problem cluster (0-10) on:
- frequency, painIntensity, monetization, solvability, competitiveGap.

Overall signalScore is weighted: \
(frequency*0.25) + (painIntensity*0.25) + (monetization*0.3) + \
(solvability*0.1) + (competitiveGap*0.1).

For every problem provide:
- id: a short unique slug
- rank: 1 for the strongest problem
- problemStatement: one or two sentences in plain language
- evidence: quotes from the data with text, source, url and platform \
(reddit, producthunt, g2, forum or web)
- existingSolutions: competing tools with url, rating (0-5), \
complaintSummary and reviewCount
- suggestedNextStep: the first concrete validation action
- metadata: mentionCount, sources (platform names) and createdAt (ISO-8601 timestamp)
"""


def _join(items: list[str]) -> str:
    return ", ".join(items) if items else "(none)"


class LLMResearchProvider:
    """ResearchProviderPort implementation over any LLMPort."""

    def __init__(self, llm: LLMPort, settings: Settings) -> None:
        self.llm = llm
        self.settings = settings

    async def generate_plan(self, topic: str) -> ResearchPlan:
        if not topic.strip():
            raise InvalidInputError("Topic must not be empty")

        prompt = _PLAN_PROMPT_TEMPLATE.format(topic=topic)
        try:
            plan = await self.llm.generate(prompt, ResearchPlan, system=_PLAN_SYSTEM_PROMPT)
        except GenerationError as exc:
            raise GenerationError(str(exc), stage=ResearchStage.PLANNING) from exc
        if not isinstance(plan, ResearchPlan):
            raise GenerationError(
                f"Expected ResearchPlan, got {type(plan).__name__}", stage=ResearchStage.PLANNING
            )

        logger.info(
            "Research plan generated",
            subreddits=len(plan.subreddits),
            search_terms=len(plan.search_terms),
            competitor_tools=len(plan.competitor_tools),
        )
        return plan

    async def generate_raw_evidence(self, topic: str, plan: ResearchPlan) -> str:
        prompt = _EVIDENCE_PROMPT_TEMPLATE.format(
            topic=topic,
            subreddits=_join(plan.subreddits),
            search_terms=_join(plan.search_terms),
            product_hunt_queries=_join(plan.product_hunt_queries),
            review_site_queries=_join(plan.review_site_queries),
            competitor_tools=_join(plan.competitor_tools),
            sample_size=self.settings.evidence_sample_size,
        )
        try:
            text = await self.llm.generate_text(
                prompt,
                system=_EVIDENCE_SYSTEM_PROMPT,
                temperature=self.settings.evidence_temperature,
            )
        except GenerationError as exc:
            raise GenerationError(str(exc), stage=ResearchStage.SEARCHING) from exc

        if not text.strip():
            logger.warning("Evidence simulation returned no text", topic=topic)
        return text

    async def cluster_and_score(self, topic: str, raw_evidence: str) -> list[Problem]:
        prompt = _CLUSTER_PROMPT_TEMPLATE.format(
            topic=topic,
            raw_evidence=raw_evidence.strip() or "(no evidence collected)",
            min_problems=self.settings.min_problems,
            max_problems=self.settings.max_problems,
        )
        try:
            clusters = await self.llm.generate(
                prompt, ProblemClusters, system=_CLUSTER_SYSTEM_PROMPT
            )
        except GenerationError as exc:
            raise GenerationError(str(exc), stage=ResearchStage.ANALYZING) from exc
        if not isinstance(clusters, ProblemClusters):
            raise GenerationError(
                f"Expected ProblemClusters, got {type(clusters).__name__}",
                stage=ResearchStage.ANALYZING,
            )

        problems = clusters.problems
        if not self.settings.min_problems <= len(problems) <= self.settings.max_problems:
            logger.warning(
                "Problem count outside requested range",
                count=len(problems),
                min_problems=self.settings.min_problems,
                max_problems=self.settings.max_problems,
            )
        for problem in problems:
            expected = problem.weighted_score()
            if abs(problem.signal_score - expected) > _SCORE_DRIFT_WARNING:
                logger.warning(
                    "Signal score disagrees with weighted sub-scores",
                    problem_id=problem.id,
                    signal_score=problem.signal_score,
                    weighted=expected,
                )
        return list(problems)
