"""Market trend endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from problemscout.api.deps import DbDep
from problemscout.api.schemas import TrendListResponse
from problemscout.models.search import TrendWindow
from problemscout.trends import trending_topics

router = APIRouter(prefix="/trends", tags=["trends"])


@router.get("", response_model=TrendListResponse)
def get_trends(db: DbDep, window: TrendWindow = TrendWindow.WEEK) -> TrendListResponse:
    return TrendListResponse(window=window.value, trends=trending_topics(db, window))
