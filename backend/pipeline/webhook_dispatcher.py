"""
Payment Confirmation Dispatcher
===============================
Single entry point for Stripe webhooks:

- Signature verification over the raw body (400 on failure, never retried)
- Closed set of handled event types, routed through WebhookRouter
- Unhandled types acknowledged without action
- Handler exceptions propagate so the endpoint answers 5xx and Stripe retries

Stripe delivers at least once. Without a processed-event store a redelivered
payment event writes a second queue entry; inject an IProcessedEventStore to
skip event ids that already completed.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from errors import EventNotFoundError
from pipeline.queue_writer import QueueWriter
from schemas.models import PaymentMetadata
from services.payment_provider import PaymentProvider
from storage import IDocumentStore

logger = structlog.get_logger(component="webhook_dispatcher")


class HandledEventType(str, Enum):
    ACCOUNT_UPDATED = "account.updated"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

    @classmethod
    def classify(cls, event_type: Optional[str]) -> Optional["HandledEventType"]:
        """None for any type this service does not handle."""
        try:
            return cls(event_type)
        except ValueError:
            return None


def dj_event_path(dj_id: str, event_id: str) -> str:
    return f"/users/{dj_id}/events/{event_id}"


# =============================================================================
# PROCESSED EVENT STORE (optional de-duplication)
# =============================================================================

class IProcessedEventStore(ABC):
    """Stripe event ids whose handler already completed."""

    @abstractmethod
    async def is_processed(self, event_id: str) -> bool:
        pass

    @abstractmethod
    async def mark_processed(self, event_id: str) -> None:
        pass


class InMemoryProcessedEventStore(IProcessedEventStore):
    """Processed ids with bounded retention."""

    def __init__(self, ttl_seconds: int = 86400 * 3, clock: Callable[[], float] = time.monotonic):
        self._seen: Dict[str, float] = {}
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        expired = [k for k, at in self._seen.items() if now - at > self._ttl]
        for k in expired:
            del self._seen[k]

    async def is_processed(self, event_id: str) -> bool:
        async with self._lock:
            self._evict(self._clock())
            return event_id in self._seen

    async def mark_processed(self, event_id: str) -> None:
        async with self._lock:
            self._seen[event_id] = self._clock()


# =============================================================================
# WEBHOOK ROUTER
# =============================================================================

WebhookHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class WebhookRouter:
    """Maps handled event types to handlers."""

    def __init__(self):
        self._handlers: Dict[HandledEventType, WebhookHandler] = {}

    def register(self, event_type: HandledEventType):
        """Decorator to register handler for event type"""
        def decorator(handler: WebhookHandler):
            self._handlers[event_type] = handler
            return handler
        return decorator

    async def route(self, event: Dict[str, Any]) -> bool:
        """Run the handler for ``event``; False when the type is unhandled."""
        event_type = HandledEventType.classify(event.get("type"))
        handler = self._handlers.get(event_type) if event_type else None
        if handler is None:
            logger.info("webhook_unhandled", event_type=event.get("type"))
            return False

        await handler(event.get("data", {}).get("object") or {})
        return True

    @property
    def supported_events(self) -> list:
        return [t.value for t in self._handlers]


# =============================================================================
# DISPATCHER
# =============================================================================

class PaymentConfirmationDispatcher:
    """
    Verifies, classifies and routes Stripe webhook events.

    Example:
        dispatcher = PaymentConfirmationDispatcher(payments, store, QueueWriter(store))
        ack = await dispatcher.handle_webhook(await request.body(), signature)
    """

    def __init__(
        self,
        payments: PaymentProvider,
        store: IDocumentStore,
        queue_writer: QueueWriter,
        processed_events: Optional[IProcessedEventStore] = None,
    ):
        self.payments = payments
        self.store = store
        self.queue_writer = queue_writer
        self.processed_events = processed_events

        self.router = WebhookRouter()
        self._register_handlers()

    def _register_handlers(self):
        @self.router.register(HandledEventType.ACCOUNT_UPDATED)
        async def handle_account_updated(account: Dict[str, Any]):
            await self._on_account_updated(account)

        @self.router.register(HandledEventType.PAYMENT_INTENT_SUCCEEDED)
        async def handle_payment_intent_succeeded(intent: Dict[str, Any]):
            await self._on_payment_intent_succeeded(intent)

        @self.router.register(HandledEventType.CHECKOUT_SESSION_COMPLETED)
        async def handle_checkout_completed(session: Dict[str, Any]):
            await self._on_checkout_completed(session)

    async def handle_webhook(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, bool]:
        """
        Acknowledge once the signature verifies and the handler (if any)
        finished. WebhookSignatureError and handler exceptions propagate.
        """
        event = self.payments.verify_webhook(raw_body, signature_header)
        event_id = event.get("id")
        log = logger.bind(stripe_event_id=event_id, event_type=event.get("type"))
        log.info("webhook_received")

        if self.processed_events and event_id and await self.processed_events.is_processed(event_id):
            log.info("webhook_duplicate_skipped")
            return {"received": True}

        handled = await self.router.route(event)

        if handled and self.processed_events and event_id:
            await self.processed_events.mark_processed(event_id)

        log.info("webhook_processed", handled=handled)
        return {"received": True}

    # =========================================================================
    # HANDLERS
    # =========================================================================

    async def _on_account_updated(self, account: Dict[str, Any]):
        """Sync onboarding status onto every user linked to this account."""
        account_id = account.get("id")
        if not account_id:
            return

        users = await self.store.query_by_child("/users", "stripe/accountId", account_id)
        if not users:
            # Account may belong to another deployment
            logger.info("account_not_linked", account_id=account_id)
            return

        onboarded = account.get("details_submitted") is True
        await asyncio.gather(*(
            self.store.set(f"/users/{uid}/stripe/isOnboarded", onboarded)
            for uid in users
        ))
        logger.info("onboarding_synced", account_id=account_id,
                    users=len(users), onboarded=onboarded)

    async def _on_payment_intent_succeeded(self, intent: Dict[str, Any]):
        await self._write_to_queue(intent.get("metadata"), source=intent.get("id"))

    async def _on_checkout_completed(self, session: Dict[str, Any]):
        # Delayed payment methods complete the session before funds arrive
        if session.get("payment_status") != "paid":
            logger.info("checkout_not_paid", session_id=session.get("id"),
                        payment_status=session.get("payment_status"))
            return
        await self._write_to_queue(session.get("metadata"), source=session.get("id"))

    async def _write_to_queue(self, raw_metadata: Optional[Dict[str, Any]], source: Optional[str]):
        metadata = PaymentMetadata.from_stripe(raw_metadata)
        if metadata is None:
            logger.info("queue_metadata_missing", source=source)
            return

        try:
            fields = metadata.to_song_request()
        except ValueError:
            logger.warning("queue_metadata_invalid", source=source, amount=metadata.amount)
            return

        try:
            await self.queue_writer.append_to_queue(
                dj_event_path(metadata.dj_id, metadata.event_id), fields
            )
        except EventNotFoundError:
            logger.warning("queue_event_missing", source=source,
                           dj_id=metadata.dj_id, event_id=metadata.event_id)
