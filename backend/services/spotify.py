# services/spotify.py
# ============================================================================
# DJTUNEZ BACKEND: SPOTIFY TOKEN EXCHANGE
# ============================================================================
# Client-credentials grant so the fan web-ui can search the catalogue
# ============================================================================

import base64
from typing import Any, Dict, Optional

import httpx
import structlog

from config import config
from errors import UpstreamError

logger = structlog.get_logger(component="spotify")


class SpotifyTokenClient:
    """Exchanges the app's client credentials for a Spotify access token."""

    def __init__(
        self,
        client_id: Optional[str] = config.SPOTIFY_CLIENT_ID,
        client_secret: Optional[str] = config.SPOTIFY_CLIENT_SECRET,
        token_url: str = config.SPOTIFY_TOKEN_URL,
        timeout_seconds: float = config.EXTERNAL_CALL_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def close(self):
        await self._client.aclose()

    async def get_token(self) -> Dict[str, Any]:
        if not self.client_id or not self.client_secret:
            raise UpstreamError("Spotify credentials not configured")

        credentials = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode()
        ).decode()

        try:
            response = await self._client.post(
                self.token_url,
                headers={"Authorization": f"Basic {credentials}"},
                data={"grant_type": "client_credentials"},
            )
        except httpx.TimeoutException:
            logger.error("spotify_timeout")
            raise UpstreamError("Spotify token request timed out")
        except httpx.HTTPError as e:
            logger.error("spotify_request_failed", error=str(e))
            raise UpstreamError("Failed to get Spotify token", str(e))

        if response.is_error:
            try:
                description = response.json().get("error_description")
            except ValueError:
                description = None
            logger.warning("spotify_token_refused", status=response.status_code)
            raise UpstreamError(description or "Failed to get Spotify token")

        return response.json()
