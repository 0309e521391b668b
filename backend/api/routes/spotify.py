# api/routes/spotify.py

from fastapi import APIRouter, Depends

from api.container import ServiceContainer
from api.dependencies import get_services
from api.errors import upstream_boundary

router = APIRouter(prefix="/spotify", tags=["spotify"])


@router.get("/token")
async def get_spotify_token(services: ServiceContainer = Depends(get_services)):
    """Client-credentials token for catalogue search in the fan UI."""
    with upstream_boundary("Failed to get Spotify token"):
        return await services.spotify.get_token()
