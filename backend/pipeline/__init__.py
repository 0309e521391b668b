# Song Request Pipeline
# =====================
# Queue writes, payment confirmation, intake and account deletion

from .queue_writer import QueueWriter
from .webhook_dispatcher import (
    HandledEventType,
    IProcessedEventStore,
    InMemoryProcessedEventStore,
    PaymentConfirmationDispatcher,
    WebhookRouter,
)
from .intake import RequestIntake
from .account_deletion import AccountDeletionOrchestrator

__all__ = [
    "QueueWriter",
    "HandledEventType",
    "IProcessedEventStore",
    "InMemoryProcessedEventStore",
    "PaymentConfirmationDispatcher",
    "WebhookRouter",
    "RequestIntake",
    "AccountDeletionOrchestrator",
]
