"""Market trends: which topics users have been researching lately."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from problemscout.models.search import TrendDirection, TrendEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from problemscout.models.search import SearchRecord, TrendWindow
    from problemscout.protocols import ProfileStorePort


def _direction(count: int) -> TrendDirection:
    if count > 3:
        return TrendDirection.UP
    if count > 1:
        return TrendDirection.STABLE
    return TrendDirection.DOWN


def aggregate_trends(records: Iterable[SearchRecord], *, limit: int = 20) -> list[TrendEntry]:
    """Count searches per normalized topic, most searched first."""
    counts: dict[str, int] = {}
    latest: dict[str, datetime] = {}
    for record in records:
        topic = record.topic.lower().strip()
        if not topic:
            continue
        counts[topic] = counts.get(topic, 0) + 1
        if topic not in latest or record.created_at > latest[topic]:
            latest[topic] = record.created_at

    entries = [
        TrendEntry(
            topic=topic,
            search_count=count,
            last_searched=latest[topic],
            trend=_direction(count),
        )
        for topic, count in counts.items()
    ]
    entries.sort(key=lambda e: e.search_count, reverse=True)
    return entries[:limit]


def trending_topics(
    store: ProfileStorePort,
    window: TrendWindow,
    now: datetime | None = None,
    *,
    limit: int = 20,
) -> list[TrendEntry]:
    now = now or datetime.now(UTC)
    return aggregate_trends(store.list_searches_since(now - window.delta), limit=limit)
