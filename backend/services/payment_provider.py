# services/payment_provider.py
# ============================================================================
# DJTUNEZ BACKEND: PAYMENT PROVIDER CLIENT (STRIPE)
# ============================================================================
# Checkout sessions, payment intents, webhook signature verification and the
# Stripe Connect calls used by DJ account management
# ============================================================================

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, TypeVar

import stripe
import structlog

from config import config
from errors import UpstreamError, WebhookSignatureError
from schemas.models import PaymentMetadata

logger = structlog.get_logger(component="payment_provider")

T = TypeVar("T")


def to_minor_units(amount: float) -> int:
    """2.99 -> 299"""
    return int(round(amount * 100))


def to_major_units(amount: int) -> float:
    return amount / 100


def to_plain(obj: Any) -> Any:
    """StripeObject -> JSON-compatible dict."""
    if obj is None or isinstance(obj, (dict, list, str, int, float, bool)):
        return obj
    return json.loads(str(obj))


class PaymentProvider:
    """
    Stripe client.

    Stripe SDK calls are blocking; each one runs in the default executor
    under a timeout budget. Stripe errors surface as UpstreamError carrying
    the provider's message.

    Example:
        payments = PaymentProvider(api_key="sk_test_...", webhook_secret="whsec_...")
        session = await payments.create_checkout_session(...)
        event = payments.verify_webhook(raw_body, signature)
    """

    def __init__(
        self,
        api_key: Optional[str] = config.STRIPE_SECRET_KEY,
        webhook_secret: Optional[str] = config.STRIPE_WEBHOOK_SECRET,
        stripe_client=stripe,
        timeout_seconds: float = config.EXTERNAL_CALL_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self._stripe = stripe_client
        self.timeout_seconds = timeout_seconds

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, fn), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error("stripe_timeout", operation=operation)
            raise UpstreamError("Payment provider timed out")
        except stripe.StripeError as e:
            logger.error("stripe_error", operation=operation,
                         error=str(e), error_type=type(e).__name__)
            raise UpstreamError(e.user_message or f"Failed to {operation.replace('_', ' ')}")

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    def verify_webhook(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        """
        Verify the Stripe-Signature header over the exact raw body, then
        parse it. Never re-serialize the body before calling this.
        """
        if not signature_header:
            raise WebhookSignatureError("Missing Stripe-Signature header")
        if not self.webhook_secret:
            logger.error("webhook_secret_missing")
            raise UpstreamError("Webhook secret not configured")

        try:
            payload = raw_body.decode("utf-8")
            # Signatures older than the tolerance window are replays
            self._stripe.WebhookSignature.verify_header(
                payload, signature_header, self.webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
            return json.loads(payload)
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise WebhookSignatureError(str(e))
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning("webhook_payload_invalid", error=str(e))
            raise WebhookSignatureError("Malformed webhook payload")

    # =========================================================================
    # SONG REQUEST PAYMENTS
    # =========================================================================

    async def create_checkout_session(
        self,
        *,
        amount: float,
        currency: str,
        destination_account: str,
        metadata: PaymentMetadata,
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, str]:
        """Hosted checkout with a destination charge to the DJ's account."""
        session = await self._call(
            "create_checkout_session",
            lambda: self._stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=[{
                    "price_data": {
                        "currency": currency,
                        "unit_amount": to_minor_units(amount),
                        "product_data": {"name": f"Song Request - {metadata.title}"},
                    },
                    "quantity": 1,
                }],
                customer_email=metadata.requester_email,
                metadata=metadata.to_stripe(),
                payment_intent_data={"transfer_data": {"destination": destination_account}},
                success_url=success_url,
                cancel_url=cancel_url,
            ),
        )
        logger.info("checkout_session_created", session_id=session.id,
                    event_id=metadata.event_id)
        return {"url": session.url, "session_id": session.id}

    async def create_payment_intent(
        self,
        *,
        amount: float,
        currency: str,
        destination_account: str,
        metadata: PaymentMetadata,
    ) -> str:
        """Embedded-form PaymentIntent; returns its client secret."""
        intent = await self._call(
            "create_payment_intent",
            lambda: self._stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=to_minor_units(amount),
                currency=currency,
                receipt_email=metadata.requester_email,
                metadata=metadata.to_stripe(),
                transfer_data={"destination": destination_account},
            ),
        )
        logger.info("payment_intent_created", payment_intent_id=intent.id,
                    event_id=metadata.event_id)
        return intent.client_secret

    # =========================================================================
    # CONNECT ACCOUNTS
    # =========================================================================

    async def create_account(self, *, display_name: str, country: str, email: str) -> Dict[str, Any]:
        account = await self._call(
            "create_account",
            lambda: self._stripe.Account.create(
                api_key=self.api_key,
                type="express",
                country=country,
                email=email,
                business_profile={"name": display_name},
                capabilities={
                    "card_payments": {"requested": True},
                    "transfers": {"requested": True},
                },
            ),
        )
        return {"id": account.id, "display_name": display_name}

    async def retrieve_account(self, account_id: str) -> Dict[str, Any]:
        account = await self._call(
            "retrieve_account",
            lambda: self._stripe.Account.retrieve(account_id, api_key=self.api_key),
        )
        return to_plain(account)

    async def delete_account(self, account_id: str) -> None:
        await self._call(
            "delete_account",
            lambda: self._stripe.Account.delete(account_id, api_key=self.api_key),
        )
        logger.info("stripe_account_deleted", account_id=account_id)

    async def create_account_link(self, *, account_id: str, return_url: str, refresh_url: str) -> str:
        link = await self._call(
            "create_account_link",
            lambda: self._stripe.AccountLink.create(
                api_key=self.api_key,
                account=account_id,
                type="account_onboarding",
                return_url=return_url,
                refresh_url=refresh_url,
            ),
        )
        return link.url

    # =========================================================================
    # PRODUCTS, BALANCE, PAYOUTS
    # =========================================================================

    async def create_product(
        self,
        *,
        name: str,
        description: str,
        amount: float,
        currency: str,
        connected_account_id: str,
    ) -> Dict[str, Any]:
        product = await self._call(
            "create_product",
            lambda: self._stripe.Product.create(
                api_key=self.api_key,
                name=name,
                description=description or None,
                active=True,
                metadata={"dj_product": "true", "connected_account_id": connected_account_id},
            ),
        )
        price = await self._call(
            "create_price",
            lambda: self._stripe.Price.create(
                api_key=self.api_key,
                product=product.id,
                unit_amount=to_minor_units(amount),
                currency=currency,
            ),
        )
        price_data = to_plain(price)
        return {"product": {**to_plain(product), "default_price": price_data}, "price": price_data}

    async def list_products(self, connected_account_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Active DJ products; Stripe cannot filter by metadata, so filter here."""
        result = await self._call(
            "list_products",
            lambda: self._stripe.Product.list(
                api_key=self.api_key, active=True, expand=["data.default_price"]
            ),
        )
        products = to_plain(result).get("data", [])
        if connected_account_id:
            products = [
                p for p in products
                if (p.get("metadata") or {}).get("connected_account_id") == connected_account_id
            ]
        return products

    async def retrieve_balance(self, account_id: str) -> Dict[str, List[Dict[str, Any]]]:
        balance = to_plain(await self._call(
            "retrieve_balance",
            lambda: self._stripe.Balance.retrieve(api_key=self.api_key, stripe_account=account_id),
        ))

        def major(entries):
            return [
                {"amount": to_major_units(b["amount"]), "currency": b["currency"]}
                for b in entries or []
            ]

        return {"available": major(balance.get("available")), "pending": major(balance.get("pending"))}

    async def create_payout(self, *, account_id: str, amount: float, currency: str) -> Dict[str, Any]:
        payout = await self._call(
            "create_payout",
            lambda: self._stripe.Payout.create(
                api_key=self.api_key,
                amount=to_minor_units(amount),
                currency=currency,
                stripe_account=account_id,
            ),
        )
        return {"id": payout.id, "status": payout.status, "amount": to_major_units(payout.amount)}

    async def create_connect_checkout(
        self,
        *,
        price_id: str,
        connected_account_id: str,
        success_url: str,
        cancel_url: str,
        application_fee_percent: Optional[float] = None,
    ) -> Dict[str, str]:
        """Checkout for a catalogue price, destination charge with optional platform fee."""
        application_fee_amount = None
        if application_fee_percent:
            price = await self._call(
                "retrieve_price",
                lambda: self._stripe.Price.retrieve(price_id, api_key=self.api_key),
            )
            application_fee_amount = int(round(
                application_fee_percent / 100 * (price.unit_amount or 0)
            ))

        payment_intent_data: Dict[str, Any] = {
            "transfer_data": {"destination": connected_account_id},
        }
        if application_fee_amount is not None:
            payment_intent_data["application_fee_amount"] = application_fee_amount

        session = await self._call(
            "create_checkout_session",
            lambda: self._stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=[{"price": price_id, "quantity": 1}],
                payment_intent_data=payment_intent_data,
                success_url=success_url,
                cancel_url=cancel_url,
            ),
        )
        return {"url": session.url, "session_id": session.id}
