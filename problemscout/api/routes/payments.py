"""Pro upgrade payment verification endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from problemscout.api.deps import PaymentVerifierDep
from problemscout.api.schemas import PaymentVerificationResponse, VerifyPaymentRequest
from problemscout.errors import PaymentGatewayError, PaymentVerificationError

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/verify", response_model=PaymentVerificationResponse)
def verify_payment(
    body: VerifyPaymentRequest,
    verifier: PaymentVerifierDep,
) -> PaymentVerificationResponse | JSONResponse:
    try:
        result = verifier.verify(body.payment_id, body.user_id)
    except PaymentVerificationError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc)},
        )
    except PaymentGatewayError as exc:
        return JSONResponse(status_code=503, content={"success": False, "error": str(exc)})
    return PaymentVerificationResponse(**result.model_dump())
