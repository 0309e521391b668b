"""
Request / Checkout Intake
=========================
Fan-facing entry points that feed the queue:

- submit_song_request: payment already confirmed client-side, write now
- create_song_checkout: hosted Stripe Checkout; the webhook writes later
- create_payment_intent: embedded Stripe form; the webhook writes later

Price and currency always come from the DJ's profile, never the client.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict

import structlog

from errors import DJNotFoundError, PaymentAccountMissingError, RequestValidationFailed
from pipeline.queue_writer import QueueWriter
from schemas.models import (
    PaymentIntentRequest,
    PaymentMetadata,
    SongCheckoutRequest,
    SongRequestFields,
)
from services.payment_provider import PaymentProvider
from storage import IDocumentStore

logger = structlog.get_logger(component="intake")

DEFAULT_CURRENCY = "eur"


def public_event_path(event_id: str) -> str:
    return f"/events/{event_id}"


@dataclass(frozen=True)
class DJPricing:
    price: float
    currency: str
    account_id: str


class RequestIntake:
    def __init__(self, store: IDocumentStore, payments: PaymentProvider, queue_writer: QueueWriter):
        self.store = store
        self.payments = payments
        self.queue_writer = queue_writer

    async def submit_song_request(self, event_id: str, fields: SongRequestFields) -> str:
        """Direct queue write. Raises EventNotFoundError for unknown events."""
        request_id = await self.queue_writer.append_to_queue(public_event_path(event_id), fields)
        logger.info("song_request_submitted", event_id=event_id, request_id=request_id)
        return request_id

    async def lookup_pricing(self, dj_id: str) -> DJPricing:
        """Profile and payment linkage for a DJ, read concurrently."""
        profile, stripe_link = await asyncio.gather(
            self.store.get(f"/users/{dj_id}/profile"),
            self.store.get(f"/users/{dj_id}/stripe"),
        )

        if not isinstance(profile, dict):
            raise DJNotFoundError(dj_id)

        account_id = stripe_link.get("accountId") if isinstance(stripe_link, dict) else None
        if not account_id:
            logger.info("dj_without_payment_account", dj_id=dj_id)
            raise PaymentAccountMissingError(dj_id)

        price = float(profile.get("price") or 0)
        if price <= 0:
            raise RequestValidationFailed("DJ has no request price configured")

        return DJPricing(
            price=price,
            currency=profile.get("currency") or DEFAULT_CURRENCY,
            account_id=account_id,
        )

    def _metadata(self, body: Any, pricing: DJPricing) -> PaymentMetadata:
        return PaymentMetadata(
            dj_id=body.dj_id,
            event_id=body.event_id,
            title=body.title,
            artist=body.artist,
            cover=body.cover,
            requester_email=body.requester_email,
            amount=str(pricing.price),
            currency=pricing.currency,
        )

    async def create_song_checkout(self, body: SongCheckoutRequest) -> Dict[str, str]:
        """Hosted checkout carrying full payment metadata. Never writes the queue."""
        pricing = await self.lookup_pricing(body.dj_id)

        return await self.payments.create_checkout_session(
            amount=pricing.price,
            currency=pricing.currency,
            destination_account=pricing.account_id,
            metadata=self._metadata(body, pricing),
            success_url=body.success_url,
            cancel_url=body.cancel_url,
        )

    async def create_payment_intent(self, body: PaymentIntentRequest) -> str:
        """Embedded-form PaymentIntent; returns the client secret."""
        pricing = await self.lookup_pricing(body.dj_id)

        if body.amount != pricing.price or body.currency.lower() != pricing.currency.lower():
            logger.warning("client_price_ignored", dj_id=body.dj_id,
                           client_amount=body.amount, price=pricing.price)

        return await self.payments.create_payment_intent(
            amount=pricing.price,
            currency=pricing.currency,
            destination_account=pricing.account_id,
            metadata=self._metadata(body, pricing),
        )
