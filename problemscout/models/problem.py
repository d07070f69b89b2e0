"""Models for scored problems: the unit of research output."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field, field_validator

from problemscout.models.base import WireModel

# Weights of the composite signal score; they sum to 1.0.
SIGNAL_WEIGHTS: dict[str, float] = {
    "frequency": 0.25,
    "pain_intensity": 0.25,
    "monetization": 0.3,
    "solvability": 0.1,
    "competitive_gap": 0.1,
}


class Platform(StrEnum):
    REDDIT = "reddit"
    PRODUCTHUNT = "producthunt"
    G2 = "g2"
    FORUM = "forum"
    WEB = "web"


class DimensionScores(WireModel):
    """Five sub-scores, nominally 0-10 each."""

    frequency: float
    pain_intensity: float
    monetization: float
    solvability: float
    competitive_gap: float

    def weighted(self) -> float:
        return sum(getattr(self, name) * weight for name, weight in SIGNAL_WEIGHTS.items())


class Quote(WireModel):
    """A quoted complaint attributed to a source."""

    text: str
    source: str = Field(description="e.g. 'r/realestate', 'G2 review of Follow Up Boss'")
    url: str
    platform: Platform
    date: str | None = None

    @field_validator("platform", mode="before")
    @classmethod
    def _normalize_platform(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        label = value.strip().lower().replace(" ", "")
        try:
            return Platform(label)
        except ValueError:
            return Platform.WEB


class Competitor(WireModel):
    """An existing solution and what its users complain about."""

    name: str
    url: str
    rating: float
    complaint_summary: str
    review_count: int


class ProblemMetadata(WireModel):
    mention_count: int
    sources: list[str]
    created_at: str = Field(description="ISO-8601 timestamp")


class Problem(WireModel):
    """One discovered market opportunity with its evidence and scores."""

    id: str
    rank: int = Field(description="Rank as assigned by the generator; not recomputed")
    problem_statement: str = Field(min_length=1)
    signal_score: float = Field(
        description="0.25*frequency + 0.25*painIntensity + 0.3*monetization "
        "+ 0.1*solvability + 0.1*competitiveGap"
    )
    scores: DimensionScores
    evidence: list[Quote]
    existing_solutions: list[Competitor]
    suggested_next_step: str = Field(min_length=1)
    metadata: ProblemMetadata

    def weighted_score(self) -> float:
        """Recompute the signal score from the sub-scores (diagnostics only)."""
        return round(self.scores.weighted(), 2)


class ProblemClusters(WireModel):
    """Envelope for the clustering call's structured output."""

    problems: list[Problem]
