# api/routes/user.py

from fastapi import APIRouter, Depends

from api.container import ServiceContainer
from api.dependencies import get_services, require_dj
from api.errors import upstream_boundary
from schemas import SuccessResponse
from services import VerifiedSession

router = APIRouter(prefix="/user", tags=["user"])


async def _delete_own_account(session: VerifiedSession, services: ServiceContainer) -> SuccessResponse:
    with upstream_boundary("Failed to delete account"):
        await services.deletion.delete_account(session.uid)
    return SuccessResponse()


@router.delete("", response_model=SuccessResponse)
async def delete_account(
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    """Erase the caller's DJ account everywhere."""
    return await _delete_own_account(session, services)


@router.delete("/me", response_model=SuccessResponse)
async def delete_me(
    session: VerifiedSession = Depends(require_dj),
    services: ServiceContainer = Depends(get_services),
):
    return await _delete_own_account(session, services)
