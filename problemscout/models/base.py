"""Shared model configuration."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(UTC)


class WireModel(BaseModel):
    """Frozen model exchanged with the LLM and API clients.

    Field names are camelCase on the wire (``problemStatement``) and
    snake_case in Python; both spellings are accepted on input.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
