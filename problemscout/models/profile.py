"""User profile with credit balance and Pro flag."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from problemscout.models.base import utcnow


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str
    credits: int = Field(default=0, ge=0)
    is_pro: bool = False
    payment_id: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def can_research(self) -> bool:
        return self.is_pro or self.credits > 0
