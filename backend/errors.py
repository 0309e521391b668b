"""Domain errors and the HTTP status each one maps to."""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Domain error codes."""

    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    DJ_NOT_FOUND = "DJ_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    PAYMENT_ACCOUNT_MISSING = "PAYMENT_ACCOUNT_MISSING"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"


class DJTunezError(Exception):
    """Base domain error with code, HTTP status and a user-safe message."""

    status_code: int = 500

    def __init__(self, code: ErrorCode, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.detail:
            payload["message"] = self.detail
        return payload


class NotFoundError(DJTunezError):
    status_code = 404


class EventNotFoundError(NotFoundError):
    """Raised when an event subtree does not exist."""

    def __init__(self, event_path: str) -> None:
        super().__init__(ErrorCode.EVENT_NOT_FOUND, "Event not found")
        self.event_path = event_path


class DJNotFoundError(NotFoundError):
    """Raised when a DJ profile does not exist."""

    def __init__(self, dj_id: str) -> None:
        super().__init__(ErrorCode.DJ_NOT_FOUND, "DJ not found")
        self.dj_id = dj_id


class RequestValidationFailed(DJTunezError):
    status_code = 400

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(ErrorCode.VALIDATION_FAILED, "Validation failed", detail)


class PaymentAccountMissingError(DJTunezError):
    """The DJ has no connected Stripe account to receive funds."""

    status_code = 400

    def __init__(self, dj_id: str) -> None:
        super().__init__(
            ErrorCode.PAYMENT_ACCOUNT_MISSING,
            "DJ has not connected a Stripe account",
        )
        self.dj_id = dj_id


class UnauthorizedError(DJTunezError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(ErrorCode.UNAUTHORIZED, message)


class ForbiddenError(DJTunezError):
    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(ErrorCode.FORBIDDEN, message)


class WebhookSignatureError(DJTunezError):
    """Bad signature. Permanent, so never a 5xx."""

    status_code = 400

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(
            ErrorCode.WEBHOOK_SIGNATURE_INVALID,
            "Webhook signature invalid",
            detail,
        )


class UpstreamError(DJTunezError):
    """A store or provider call failed or timed out."""

    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None) -> None:
        super().__init__(ErrorCode.UPSTREAM_FAILURE, message, detail)
