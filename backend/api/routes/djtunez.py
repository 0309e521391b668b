# api/routes/djtunez.py
# ============================================================================
# DJTUNEZ BACKEND: FAN + DJ ENDPOINTS
# ============================================================================
# Event / DJ lookups, DJ registration, queue submission and song checkout
# ============================================================================

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header

from api.container import ServiceContainer
from api.dependencies import get_services
from api.errors import upstream_boundary
from errors import UnauthorizedError
from schemas import (
    CheckoutSessionResponse,
    DJResponse,
    EventResponse,
    QueueSubmissionResponse,
    SongCheckoutRequest,
    SongRequestFields,
    SuccessResponse,
)
from services import parse_bearer

router = APIRouter(prefix="/djtunez", tags=["djtunez"])

logger = structlog.get_logger(component="djtunez_routes")


@router.post("/register", response_model=SuccessResponse)
async def register_dj(
    authorization: Optional[str] = Header(default=None),
    services: ServiceContainer = Depends(get_services),
):
    """Grant the dj role to the caller's own account."""
    decoded = await services.identity.verify_token(parse_bearer(authorization))
    try:
        await services.identity.set_dj_role(decoded["uid"])
    except Exception as e:
        # Any failure after verification is an auth failure for the caller
        logger.warning("dj_registration_failed", uid=decoded["uid"], error=str(e))
        raise UnauthorizedError("Failed to register DJ") from e
    return SuccessResponse()


@router.get("/event/{event_id}", response_model=EventResponse, response_model_by_alias=True)
async def get_event(event_id: str, services: ServiceContainer = Depends(get_services)):
    with upstream_boundary("Failed to fetch event"):
        event = await services.catalog.get_event(event_id)
    return EventResponse(event=event)


@router.get("/dj/{dj_id}", response_model=DJResponse, response_model_by_alias=True)
async def get_dj(dj_id: str, services: ServiceContainer = Depends(get_services)):
    with upstream_boundary("Failed to fetch DJ"):
        dj = await services.catalog.get_dj(dj_id)
    return DJResponse(dj=dj)


@router.get("/dj/{dj_id}/live-event", response_model=EventResponse, response_model_by_alias=True)
async def get_live_event(dj_id: str, services: ServiceContainer = Depends(get_services)):
    with upstream_boundary("Failed to fetch live event"):
        event = await services.catalog.get_live_event(dj_id)
    return EventResponse(event=event)


@router.post(
    "/queue/{event_id}",
    status_code=201,
    response_model=QueueSubmissionResponse,
    response_model_by_alias=True,
)
async def submit_to_queue(
    event_id: str,
    body: SongRequestFields,
    services: ServiceContainer = Depends(get_services),
):
    with upstream_boundary("Failed to submit song request"):
        request_id = await services.intake.submit_song_request(event_id, body)
    return QueueSubmissionResponse(request_id=request_id)


@router.post(
    "/checkout",
    status_code=201,
    response_model=CheckoutSessionResponse,
    response_model_by_alias=True,
)
async def create_checkout(body: SongCheckoutRequest, services: ServiceContainer = Depends(get_services)):
    """Hosted checkout; the queue entry is written when the payment webhook arrives."""
    with upstream_boundary("Failed to create checkout session"):
        session = await services.intake.create_song_checkout(body)
    return CheckoutSessionResponse(**session)
