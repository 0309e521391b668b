from schemas.models import (
    CamelModel,
    Event,
    EventStatus,
    DJProfile,
    SongRequestFields,
    SongRequestStatus,
    QueueEntry,
    PaymentMetadata,
    SongCheckoutRequest,
    PaymentIntentRequest,
    CreateAccountRequest,
    CreateAccountLinkRequest,
    CreateProductRequest,
    RequestPayoutRequest,
    ConnectCheckoutRequest,
    HealthResponse,
    SuccessResponse,
    ErrorResponse,
    EventResponse,
    DJResponse,
    QueueSubmissionResponse,
    CheckoutSessionResponse,
    PaymentIntentResponse,
    WebhookAck,
)

__all__ = [
    "CamelModel",
    "Event",
    "EventStatus",
    "DJProfile",
    "SongRequestFields",
    "SongRequestStatus",
    "QueueEntry",
    "PaymentMetadata",
    "SongCheckoutRequest",
    "PaymentIntentRequest",
    "CreateAccountRequest",
    "CreateAccountLinkRequest",
    "CreateProductRequest",
    "RequestPayoutRequest",
    "ConnectCheckoutRequest",
    "HealthResponse",
    "SuccessResponse",
    "ErrorResponse",
    "EventResponse",
    "DJResponse",
    "QueueSubmissionResponse",
    "CheckoutSessionResponse",
    "PaymentIntentResponse",
    "WebhookAck",
]
