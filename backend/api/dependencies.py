# api/dependencies.py

from typing import Optional

from fastapi import Depends, Header, Request

from api.container import ServiceContainer
from services import Role, VerifiedSession


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


async def require_dj(
    authorization: Optional[str] = Header(default=None),
    services: ServiceContainer = Depends(get_services),
) -> VerifiedSession:
    """Verified session for a caller holding the dj role claim."""
    return await services.identity.authenticate(authorization, allowed_roles=[Role.DJ])
