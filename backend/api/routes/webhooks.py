# api/routes/webhooks.py

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from api.container import ServiceContainer
from api.dependencies import get_services
from api.errors import upstream_boundary
from schemas import WebhookAck

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    services: ServiceContainer = Depends(get_services),
):
    """
    Stripe webhook receiver. The signature is checked against the raw body
    bytes, so the body is read before any parsing.
    """
    payload = await request.body()
    with upstream_boundary("Webhook handler failed"):
        return await services.dispatcher.handle_webhook(payload, stripe_signature)
