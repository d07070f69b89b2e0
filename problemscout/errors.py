"""Exception taxonomy shared by the research pipeline and its callers."""

from __future__ import annotations


class ProblemScoutError(Exception):
    """Base class for all ProblemScout errors."""


class InvalidInputError(ProblemScoutError, ValueError):
    """Caller-correctable input problem (e.g. a blank topic)."""


class GenerationError(ProblemScoutError):
    """The LLM returned content that does not parse or fails schema validation."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.stage}] {base}" if self.stage else base


class ProviderError(ProblemScoutError):
    """Transport, auth or rate-limit failure talking to the LLM provider."""


class TransientProviderError(ProviderError):
    """Provider failure worth retrying: 429, 5xx, timeouts, dropped connections."""


class RetryExhaustedError(ProviderError):
    """All retry attempts failed."""


class ResearchCancelledError(ProblemScoutError):
    """The caller abandoned the run before it finished."""


class CreditExhaustedError(ProblemScoutError):
    """The user has no research credits left and is not on the Pro tier."""


class ProfileNotFoundError(ProblemScoutError, LookupError):
    """No profile exists for the given user id."""


class PaymentVerificationError(ProblemScoutError):
    """A payment could not be verified; carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaymentGatewayError(ProblemScoutError):
    """The payment gateway could not be reached or answered with a server error."""
