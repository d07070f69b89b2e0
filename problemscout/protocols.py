"""Port interfaces (Protocols) for hexagonal architecture."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from pydantic import BaseModel

    from problemscout.clients.razorpay import RazorpayPayment
    from problemscout.db import PaymentDict
    from problemscout.models import Problem, ResearchPlan, SearchRecord, UserProfile


@runtime_checkable
class ResearchProviderPort(Protocol):
    """The three generation calls behind a research run.

    Implementations translate each request into provider-specific calls and
    return validated shared types. Malformed output raises GenerationError;
    transport failures raise ProviderError.
    """

    async def generate_plan(self, topic: str) -> ResearchPlan: ...

    async def generate_raw_evidence(self, topic: str, plan: ResearchPlan) -> str: ...

    async def cluster_and_score(self, topic: str, raw_evidence: str) -> list[Problem]: ...


@runtime_checkable
class LLMPort(Protocol):
    """Interface for LLM text/structured generation."""

    @property
    def is_available(self) -> bool: ...

    async def generate(
        self,
        prompt: str,
        response_model: type[BaseModel],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> BaseModel: ...

    async def generate_text(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str: ...


@runtime_checkable
class ProfileStorePort(Protocol):
    """Profile, credit-ledger and search-history persistence."""

    def get_profile(self, user_id: str) -> UserProfile | None: ...
    def consume_credit(self, user_id: str) -> int: ...
    def grant_pro(self, user_id: str, credits: int, payment_id: str) -> UserProfile: ...
    def save_search(self, record: SearchRecord) -> SearchRecord: ...
    def charge_search(self, record: SearchRecord) -> tuple[SearchRecord, int]: ...
    def list_searches(self, user_id: str, limit: int = 20) -> list[SearchRecord]: ...
    def list_searches_since(self, since: datetime) -> list[SearchRecord]: ...
    def redeem_payment(
        self, payment_id: str, user_id: str, amount: int, status: str, credits: int
    ) -> tuple[PaymentDict, bool]: ...
    def get_payment(self, payment_id: str) -> PaymentDict | None: ...


@runtime_checkable
class PaymentGatewayPort(Protocol):
    """Interface for looking up a payment with the gateway."""

    @property
    def is_available(self) -> bool: ...

    def fetch_payment(self, payment_id: str) -> RazorpayPayment | None: ...
