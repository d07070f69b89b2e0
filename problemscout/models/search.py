"""Persisted search history and market-trend aggregates."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from problemscout.models.base import utcnow
from problemscout.models.problem import Problem


class SearchRecord(BaseModel):
    """A completed research run, keyed by (user, topic, timestamp)."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    user_id: str
    topic: str
    results: list[Problem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class TrendWindow(StrEnum):
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"

    @property
    def delta(self) -> timedelta:
        return {
            TrendWindow.DAY: timedelta(days=1),
            TrendWindow.WEEK: timedelta(days=7),
            TrendWindow.MONTH: timedelta(days=30),
        }[self]


class TrendDirection(StrEnum):
    UP = "up"
    STABLE = "stable"
    DOWN = "down"


class TrendEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    search_count: int
    last_searched: datetime
    trend: TrendDirection
