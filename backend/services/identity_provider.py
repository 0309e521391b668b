# services/identity_provider.py
# ============================================================================
# DJTUNEZ BACKEND: IDENTITY PROVIDER CLIENT
# ============================================================================
# Firebase Auth: bearer token verification, role claims, account deletion
# ============================================================================

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

import structlog
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from config import config
from errors import ForbiddenError, UnauthorizedError, UpstreamError

logger = structlog.get_logger(component="identity_provider")

T = TypeVar("T")


class Role(str, Enum):
    FAN = "fan"
    DJ = "dj"
    ADMIN = "admin"

    @classmethod
    def from_claims(cls, claims: Optional[Dict[str, Any]]) -> "Role":
        """Unknown or missing role claims are treated as a fan."""
        try:
            return cls((claims or {}).get("role"))
        except ValueError:
            return cls.FAN


@dataclass(frozen=True)
class VerifiedSession:
    """Identity resolved once per request from a verified bearer token."""
    uid: str
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class IdentityRecord:
    uid: str
    email: Optional[str]
    display_name: Optional[str]
    custom_claims: Dict[str, Any]


def parse_bearer(authorization: Optional[str]) -> str:
    """Token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        raise UnauthorizedError("Malformed Authorization header")
    return parts[1]


# =============================================================================
# INTERFACE
# =============================================================================

class IIdentityProvider(ABC):
    """Identity provider capability used by the HTTP layer and deletion cascade."""

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Decoded token claims. Raises UnauthorizedError when invalid."""
        pass

    @abstractmethod
    async def get_user(self, uid: str) -> IdentityRecord:
        pass

    @abstractmethod
    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def delete_user(self, uid: str) -> None:
        pass

    async def set_dj_role(self, uid: str) -> None:
        """Merge role=dj into whatever claims the account already carries."""
        user = await self.get_user(uid)
        await self.set_custom_claims(uid, {**user.custom_claims, "role": Role.DJ.value})
        logger.info("dj_role_assigned", uid=uid)

    async def authenticate(
        self,
        authorization: Optional[str],
        allowed_roles: Optional[Iterable[Role]] = None,
    ) -> VerifiedSession:
        """
        Verify the bearer token and, when allowed_roles is given, the role
        claim stored on the account.
        """
        token = parse_bearer(authorization)
        decoded = await self.verify_token(token)

        try:
            user = await self.get_user(decoded["uid"])
        except UpstreamError:
            raise
        except Exception as e:
            logger.warning("identity_lookup_failed", error=str(e))
            raise UnauthorizedError()

        session = VerifiedSession(
            uid=user.uid,
            role=Role.from_claims(user.custom_claims),
            email=user.email,
            name=user.display_name,
        )

        if allowed_roles is not None and session.role not in set(allowed_roles):
            logger.info("role_rejected", uid=session.uid, role=session.role.value)
            raise ForbiddenError()
        return session


# =============================================================================
# FIREBASE AUTH
# =============================================================================

class FirebaseIdentityProvider(IIdentityProvider):
    """Firebase Admin Auth client; blocking SDK calls run in the executor."""

    def __init__(self, app=None, timeout_seconds: float = config.EXTERNAL_CALL_TIMEOUT_SECONDS):
        self._app = app
        self.timeout_seconds = timeout_seconds

    async def _run(self, operation: str, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, fn), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error("identity_timeout", operation=operation)
            raise UpstreamError("Identity provider timed out")

    async def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return await self._run(
                "verify_token",
                lambda: firebase_auth.verify_id_token(token, app=self._app),
            )
        except (ValueError, firebase_exceptions.FirebaseError) as e:
            logger.info("token_rejected", error=str(e))
            raise UnauthorizedError(str(e) or "Invalid token")

    async def get_user(self, uid: str) -> IdentityRecord:
        user = await self._run("get_user", lambda: firebase_auth.get_user(uid, app=self._app))
        return IdentityRecord(
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            custom_claims=dict(user.custom_claims or {}),
        )

    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        await self._run(
            "set_custom_claims",
            lambda: firebase_auth.set_custom_user_claims(uid, claims, app=self._app),
        )

    async def delete_user(self, uid: str) -> None:
        await self._run("delete_user", lambda: firebase_auth.delete_user(uid, app=self._app))
        logger.info("identity_deleted", uid=uid)
