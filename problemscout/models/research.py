"""Research plan and pipeline stage definitions."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from problemscout.models.base import WireModel


class ResearchStage(StrEnum):
    """Progress markers emitted by a research run, in pipeline order."""

    PLANNING = "planning"
    SEARCHING = "searching"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    FINALIZING = "finalizing"


class ResearchPlan(WireModel):
    """Where to look for complaints about a topic.

    Each list is ordered by relevance as judged by the LLM. Lists may be
    empty but every field must be present.
    """

    subreddits: list[str] = Field(description="Community names without the r/ prefix")
    search_terms: list[str] = Field(description="Web search queries surfacing complaints")
    product_hunt_queries: list[str]
    review_site_queries: list[str] = Field(description="Queries for G2, Capterra and similar")
    competitor_tools: list[str] = Field(description="Existing products in the space")
