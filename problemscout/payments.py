"""Pro-tier payment verification against the payment gateway."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from problemscout.errors import PaymentVerificationError
from problemscout.metrics import payment_verifications_total
from problemscout.models.payment import PaymentVerification

if TYPE_CHECKING:
    from problemscout.config import Settings
    from problemscout.protocols import PaymentGatewayPort, ProfileStorePort

logger = structlog.get_logger()

SUCCESS_MESSAGE = "Payment verified and Pro status activated!"


class PaymentVerifier:
    """Confirms a captured Pro payment and upgrades the paying user."""

    def __init__(
        self,
        store: ProfileStorePort,
        gateway: PaymentGatewayPort,
        settings: Settings,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.settings = settings

    def verify(self, payment_id: str, user_id: str) -> PaymentVerification:
        """Verify *payment_id* for *user_id* and grant Pro on success.

        Raises PaymentVerificationError carrying the HTTP status for every
        rejected payment. Checks run in a fixed order so the first failing
        rule decides the message.
        """
        try:
            result = self._verify(payment_id.strip(), user_id)
        except PaymentVerificationError as exc:
            payment_verifications_total.labels(outcome="rejected").inc()
            logger.warning(
                "Payment rejected",
                payment_id=payment_id,
                user_id=user_id,
                reason=str(exc),
                status_code=exc.status_code,
            )
            raise
        payment_verifications_total.labels(outcome="verified").inc()
        return result

    def _verify(self, payment_id: str, user_id: str) -> PaymentVerification:
        if not payment_id:
            raise PaymentVerificationError("Payment ID is required", 400)
        if not self.gateway.is_available:
            raise PaymentVerificationError("Razorpay credentials not configured", 500)

        payment = self.gateway.fetch_payment(payment_id)
        if payment is None:
            raise PaymentVerificationError("Payment not found or invalid", 404)
        if payment["status"] != "captured":
            raise PaymentVerificationError("Payment not completed yet", 400)
        if payment["amount"] != self.settings.pro_price_amount:
            raise PaymentVerificationError("Invalid payment amount", 400)

        profile = self.store.get_profile(user_id)
        if profile is None:
            raise PaymentVerificationError("User not found", 404)

        redeemed, created = self.store.redeem_payment(
            payment_id,
            user_id,
            payment["amount"],
            payment["status"],
            self.settings.pro_credit_grant,
        )
        if redeemed["user_id"] != user_id:
            raise PaymentVerificationError("Payment already redeemed", 409)
        if created:
            logger.info(
                "Pro status activated",
                payment_id=payment_id,
                user_id=user_id,
                credits=self.settings.pro_credit_grant,
            )
        else:
            logger.info("Payment already redeemed by this user", payment_id=payment_id)
        return PaymentVerification(success=True, message=SUCCESS_MESSAGE, payment_id=payment_id)
