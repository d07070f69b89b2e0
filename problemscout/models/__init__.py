"""Re-exports all Pydantic models."""

from problemscout.models.payment import PaymentVerification
from problemscout.models.problem import (
    SIGNAL_WEIGHTS,
    Competitor,
    DimensionScores,
    Platform,
    Problem,
    ProblemClusters,
    ProblemMetadata,
    Quote,
)
from problemscout.models.profile import UserProfile
from problemscout.models.research import ResearchPlan, ResearchStage
from problemscout.models.search import SearchRecord, TrendDirection, TrendEntry, TrendWindow

__all__ = [
    "SIGNAL_WEIGHTS",
    "Competitor",
    "DimensionScores",
    "PaymentVerification",
    "Platform",
    "Problem",
    "ProblemClusters",
    "ProblemMetadata",
    "Quote",
    "ResearchPlan",
    "ResearchStage",
    "SearchRecord",
    "TrendDirection",
    "TrendEntry",
    "TrendWindow",
    "UserProfile",
]
