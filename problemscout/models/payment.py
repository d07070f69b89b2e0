"""Payment verification envelope."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PaymentVerification(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    error: str | None = None
    message: str = ""
    payment_id: str | None = None
