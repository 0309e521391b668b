# api/routes/stripe_connect.py
# ============================================================================
# DJTUNEZ BACKEND: STRIPE CONNECT MANAGEMENT
# ============================================================================
# DJ-only: connected account onboarding, product tiers, balance and payouts
# ============================================================================

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from api.container import ServiceContainer
from api.dependencies import get_services, require_dj
from api.errors import upstream_boundary
from errors import ForbiddenError
from schemas import (
    CheckoutSessionResponse,
    ConnectCheckoutRequest,
    CreateAccountLinkRequest,
    CreateAccountRequest,
    CreateProductRequest,
    RequestPayoutRequest,
)
from services import VerifiedSession

logger = structlog.get_logger(component="stripe_routes")

router = APIRouter(prefix="/stripe", tags=["stripe"])


async def _require_linked_account(
    services: ServiceContainer, session: VerifiedSession, account_id: str
) -> None:
    """Account-scoped operations only act on the caller's own linked account."""
    linked = await services.store.get(f"/users/{session.uid}/stripe/accountId")
    if linked != account_id:
        logger.warning("foreign_account_rejected", uid=session.uid, account_id=account_id)
        raise ForbiddenError("Stripe account is not linked to this user")


@router.post("/accounts", status_code=201)
async def create_account(
    body: CreateAccountRequest,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    with upstream_boundary("Failed to create account"):
        account = await services.payments.create_account(
            display_name=body.display_name, country=body.country, email=body.email
        )
        await services.store.set(
            f"/users/{session.uid}/stripe",
            {"accountId": account["id"], "isOnboarded": False},
        )
    logger.info("connected_account_linked", uid=session.uid, account_id=account["id"])
    return {"account": account}


@router.get("/accounts/{account_id}")
async def get_account_status(
    account_id: str,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    await _require_linked_account(services, session, account_id)
    with upstream_boundary("Failed to retrieve account"):
        account = await services.payments.retrieve_account(account_id)
    capabilities = account.get("capabilities") or {}
    return {
        "account": account,
        "onboardingComplete": account.get("details_submitted") is True,
        "readyToReceivePayments": capabilities.get("transfers") == "active",
    }


@router.post("/account-links")
async def create_account_link(
    body: CreateAccountLinkRequest,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    await _require_linked_account(services, session, body.account_id)
    with upstream_boundary("Failed to create onboarding link"):
        url = await services.payments.create_account_link(
            account_id=body.account_id, return_url=body.return_url, refresh_url=body.refresh_url
        )
    return {"url": url}


@router.post("/products", status_code=201)
async def create_product(
    body: CreateProductRequest,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    """Product plus price tier; amount is in major units."""
    await _require_linked_account(services, session, body.connected_account_id)
    with upstream_boundary("Failed to create product"):
        return await services.payments.create_product(
            name=body.name,
            description=body.description,
            amount=body.amount,
            currency=body.currency,
            connected_account_id=body.connected_account_id,
        )


@router.get("/products")
async def list_products(
    connected_account_id: Optional[str] = Query(default=None, alias="connectedAccountId"),
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    with upstream_boundary("Failed to list products"):
        products = await services.payments.list_products(connected_account_id)
    return {"products": products}


@router.get("/balance/{account_id}")
async def get_balance(
    account_id: str,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    await _require_linked_account(services, session, account_id)
    with upstream_boundary("Failed to retrieve balance"):
        return await services.payments.retrieve_balance(account_id)


@router.post("/payout", status_code=201)
async def request_payout(
    body: RequestPayoutRequest,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    await _require_linked_account(services, session, body.account_id)
    with upstream_boundary("Failed to create payout"):
        payout = await services.payments.create_payout(
            account_id=body.account_id, amount=body.amount, currency=body.currency
        )
    logger.info("payout_requested", uid=session.uid, payout_id=payout["id"])
    return {"payout": payout}


@router.post(
    "/checkout",
    status_code=201,
    response_model=CheckoutSessionResponse,
    response_model_by_alias=True,
)
async def create_connect_checkout(
    body: ConnectCheckoutRequest,
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    with upstream_boundary("Failed to create checkout session"):
        result = await services.payments.create_connect_checkout(
            price_id=body.price_id,
            connected_account_id=body.connected_account_id,
            success_url=body.success_url,
            cancel_url=body.cancel_url,
            application_fee_percent=body.application_fee_percent,
        )
    return CheckoutSessionResponse(**result)
