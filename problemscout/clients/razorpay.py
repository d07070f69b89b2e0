"""Client for the Razorpay payments API.

Only payment lookup is needed: the checkout happens in the browser and the
server confirms the result by fetching the payment by id.
"""

from __future__ import annotations

import httpx
import structlog
from typing_extensions import TypedDict

from problemscout.errors import PaymentGatewayError, RetryExhaustedError
from problemscout.retry import with_retry

logger = structlog.get_logger()


class RazorpayPayment(TypedDict):
    id: str
    status: str
    amount: int
    currency: str


class _GatewayServerError(Exception):
    """Razorpay answered with a 5xx status."""


class RazorpayClient:
    """Razorpay API client authenticated with HTTP Basic (key id, key secret)."""

    def __init__(
        self,
        key_id: str = "",
        key_secret: str = "",
        base_url: str = "https://api.razorpay.com/v1",
        max_retries: int = 2,
        retry_base_delay: float = 1.0,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    @property
    def is_available(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def fetch_payment(self, payment_id: str) -> RazorpayPayment | None:
        """Look up a payment by id.

        Returns None when Razorpay does not know the payment (any 4xx).
        Raises PaymentGatewayError when the gateway stays unreachable or
        keeps failing with 5xx after retries.
        """
        try:
            data = with_retry(
                lambda: self._get_payment(payment_id),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                retryable=(httpx.TransportError, _GatewayServerError),
                label="razorpay_fetch_payment",
            )
        except RetryExhaustedError as exc:
            logger.error("Razorpay unreachable", payment_id=payment_id, error=str(exc.__cause__))
            raise PaymentGatewayError("Payment gateway unavailable") from exc

        if data is None:
            return None
        try:
            return RazorpayPayment(
                id=str(data["id"]),
                status=str(data["status"]),
                amount=int(data["amount"]),
                currency=str(data.get("currency", "INR")),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Razorpay returned an unexpected payment payload", payment_id=payment_id)
            return None

    def _get_payment(self, payment_id: str) -> dict[str, object] | None:
        with httpx.Client(timeout=30.0, auth=(self.key_id, self.key_secret)) as client:
            resp = client.get(f"{self.base_url}/payments/{payment_id}")
        if resp.status_code >= 500:
            raise _GatewayServerError(f"Razorpay returned {resp.status_code}")
        if resp.status_code >= 400:
            logger.info("Razorpay rejected payment lookup", status=resp.status_code)
            return None
        data = resp.json()
        return data if isinstance(data, dict) else None
