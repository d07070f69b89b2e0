"""Research provider implementations and composition."""

from __future__ import annotations

from typing import TYPE_CHECKING

from problemscout.providers.llm_provider import LLMResearchProvider
from problemscout.providers.mock import MockResearchProvider

if TYPE_CHECKING:
    from problemscout.config import Settings
    from problemscout.protocols import ResearchProviderPort

__all__ = ["LLMResearchProvider", "MockResearchProvider", "build_research_provider"]


def build_research_provider(settings: Settings, *, dry_run: bool = False) -> ResearchProviderPort:
    """Pick the provider implementation for this process."""
    if dry_run:
        return MockResearchProvider()

    from problemscout.llm import LLMClient

    return LLMResearchProvider(LLMClient(settings), settings)
