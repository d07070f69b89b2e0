"""Offline research provider returning canned data for dry runs."""

from __future__ import annotations

from datetime import UTC, datetime

from problemscout.errors import InvalidInputError
from problemscout.models.problem import (
    Competitor,
    DimensionScores,
    Platform,
    Problem,
    ProblemMetadata,
    Quote,
)
from problemscout.models.research import ResearchPlan


def _slug(topic: str) -> str:
    return "-".join(topic.lower().split())[:40] or "topic"


class MockResearchProvider:
    """ResearchProviderPort implementation that never touches the network.

    Problems come back deliberately out of score order so dry runs exercise
    the orchestrator's ranking.
    """

    async def generate_plan(self, topic: str) -> ResearchPlan:
        if not topic.strip():
            raise InvalidInputError("Topic must not be empty")
        slug = _slug(topic)
        return ResearchPlan(
            subreddits=["smallbusiness", "SaaS", "Entrepreneur"],
            search_terms=[f"{topic} frustrating", f"why is there no {topic} tool"],
            product_hunt_queries=[topic],
            review_site_queries=[f"{topic} software reviews"],
            competitor_tools=[f"{slug}-suite", f"{slug}-lite"],
        )

    async def generate_raw_evidence(self, topic: str, plan: ResearchPlan) -> str:
        subreddit = plan.subreddits[0] if plan.subreddits else "smallbusiness"
        tool = plan.competitor_tools[0] if plan.competitor_tools else "the market leader"
        lines = [
            f"[reddit] r/{subreddit}: Every {topic} tool I've tried needs a week "
            "of setup before it does anything useful. https://reddit.com/r/smallbusiness/1",
            f"[g2] Review of {tool}: Pricing doubled this year and "
            "support takes days to reply. https://www.g2.com/products/example/reviews",
            f"[forum] IndieHackers: I'd pay for {topic} that just exports clean reports. "
            "https://www.indiehackers.com/post/example",
        ]
        return "\n".join(lines)

    async def cluster_and_score(self, topic: str, raw_evidence: str) -> list[Problem]:
        created_at = datetime.now(UTC).isoformat()
        slug = _slug(topic)
        return [
            Problem(
                id=f"{slug}-reporting",
                rank=2,
                problem_statement=(
                    f"Exporting usable reports from {topic} tools is manual and slow."
                ),
                signal_score=6.4,
                scores=DimensionScores(
                    frequency=7,
                    pain_intensity=6,
                    monetization=7,
                    solvability=6,
                    competitive_gap=4,
                ),
                evidence=[
                    Quote(
                        text=f"I'd pay for {topic} that just exports clean reports.",
                        source="IndieHackers",
                        url="https://www.indiehackers.com/post/example",
                        platform=Platform.FORUM,
                    ),
                ],
                existing_solutions=[],
                suggested_next_step="Interview five users about their current export workflow.",
                metadata=ProblemMetadata(
                    mention_count=9, sources=["forum"], created_at=created_at
                ),
            ),
            Problem(
                id=f"{slug}-setup",
                rank=1,
                problem_statement=(
                    f"Existing {topic} tools take days to configure before delivering value."
                ),
                signal_score=8.1,
                scores=DimensionScores(
                    frequency=9,
                    pain_intensity=8,
                    monetization=8,
                    solvability=7,
                    competitive_gap=7,
                ),
                evidence=[
                    Quote(
                        text=f"Every {topic} tool I've tried needs a week of setup.",
                        source="r/smallbusiness",
                        url="https://reddit.com/r/smallbusiness/1",
                        platform=Platform.REDDIT,
                    ),
                ],
                existing_solutions=[
                    Competitor(
                        name=f"{slug}-suite",
                        url="https://example.com/suite",
                        rating=3.4,
                        complaint_summary="Powerful but slow to onboard",
                        review_count=212,
                    ),
                ],
                suggested_next_step="Ship a one-click setup landing page and measure sign-ups.",
                metadata=ProblemMetadata(
                    mention_count=23, sources=["reddit", "g2"], created_at=created_at
                ),
            ),
            Problem(
                id=f"{slug}-pricing",
                rank=3,
                problem_statement=(
                    f"{topic.capitalize()} software pricing rises faster than its value."
                ),
                signal_score=5.2,
                scores=DimensionScores(
                    frequency=5,
                    pain_intensity=6,
                    monetization=5,
                    solvability=5,
                    competitive_gap=4,
                ),
                evidence=[
                    Quote(
                        text="Pricing doubled this year and support takes days to reply.",
                        source=f"G2 review of {slug}-suite",
                        url="https://www.g2.com/products/example/reviews",
                        platform=Platform.G2,
                    ),
                ],
                existing_solutions=[],
                suggested_next_step="Compare price points of the top three competitors.",
                metadata=ProblemMetadata(mention_count=6, sources=["g2"], created_at=created_at),
            ),
        ]
