"""API request/response schemas (separate from domain models)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from problemscout.models.problem import Problem
from problemscout.models.search import TrendEntry

# --- Responses ---


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str
    version: str
    db_connected: bool


class ConfigCheckResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    llm_provider: str
    llm_model: str
    dry_run: bool
    configured: dict[str, bool]


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str
    last_name: str
    email: str
    credits: int
    is_pro: bool
    can_research: bool
    created_at: str
    updated_at: str


class SearchResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None
    topic: str
    problems: list[Problem]
    created_at: str


class SearchListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    searches: list[SearchResponse]
    total: int


class ResearchResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic: str
    problems: list[Problem]
    stages: list[str]
    search_id: int | None
    credits_remaining: int
    is_pro: bool


class TrendListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    window: str
    trends: list[TrendEntry]


class PaymentVerificationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    error: str | None = None
    message: str | None = None
    payment_id: str | None = None


# --- Requests ---


class CreateProfileRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str = Field(min_length=3)
    first_name: str = ""
    last_name: str = ""


class ResearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    topic: str


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: str = ""
    user_id: str
