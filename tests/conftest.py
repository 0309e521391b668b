"""Shared fixtures: in-memory store, fake identity, Stripe double, test client."""
import dataclasses
import hashlib
import hmac
import json
import time
from types import SimpleNamespace
from typing import Any, Dict, Optional

import httpx
import pytest
import stripe
from fastapi.testclient import TestClient

from api import ServiceContainer, create_app
from errors import UnauthorizedError
from services import IIdentityProvider, IdentityRecord, PaymentProvider, SpotifyTokenClient
from storage import InMemoryDocumentStore

WEBHOOK_SECRET = "whsec_test_secret"
DJ_ID = "dj1"
EVENT_ID = "ev1"
DJ_ACCOUNT = "acct_dj1"
DJ_TOKEN = "dj-token"
FAN_TOKEN = "fan-token"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.test/api/token"


def seed_data() -> Dict[str, Any]:
    return {
        "users": {
            DJ_ID: {
                "profile": {
                    "stageName": "DJ Nova",
                    "bio": "House all night",
                    "avatar": "https://img.djtunez.test/nova.png",
                    "price": 2.99,
                    "currency": "eur",
                    "currencySymbol": "€",
                },
                "stripe": {"accountId": DJ_ACCOUNT, "isOnboarded": True},
                "events": {
                    EVENT_ID: {"name": "Friday Night", "venue": "Tresor", "live": True},
                    "ev0": {"name": "Warm-up", "venue": "Tresor", "live": False},
                },
            },
            "dj2": {"profile": {"stageName": "DJ Unlinked", "price": 3, "currency": "eur"}},
        },
        "events": {
            EVENT_ID: {
                "djId": DJ_ID,
                "name": "Friday Night",
                "venue": "Tresor",
                "city": "Berlin",
                "genres": ["house", "techno"],
                "live": True,
                "price": 2.99,
                "currency": "eur",
            },
            "ev0": {"djId": DJ_ID, "name": "Warm-up", "venue": "Tresor", "live": False},
        },
    }


def song_request_body(**overrides) -> Dict[str, Any]:
    body = {
        "title": "Strobe",
        "artist": "deadmau5",
        "cover": "https://img.djtunez.test/strobe.png",
        "requesterEmail": "fan@example.com",
        "amount": 2.99,
        "currency": "eur",
    }
    body.update(overrides)
    return body


def payment_metadata(**overrides) -> Dict[str, str]:
    metadata = {
        "djId": DJ_ID,
        "eventId": EVENT_ID,
        "title": "Strobe",
        "artist": "deadmau5",
        "cover": "https://img.djtunez.test/strobe.png",
        "requesterEmail": "fan@example.com",
        "amount": "2.99",
        "currency": "eur",
    }
    metadata.update(overrides)
    return metadata


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Stripe-Signature header value for payload."""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_1") -> str:
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": obj}})


def queue_at(store: InMemoryDocumentStore, path: str) -> Dict[str, Any]:
    node = store.snapshot()
    for segment in path.strip("/").split("/"):
        node = (node or {}).get(segment)
    return (node or {}).get("queue") or {}


# =============================================================================
# FAKES
# =============================================================================

class AttrDict(dict):
    """Dict with attribute access, standing in for a StripeObject."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)


class _Resource:
    def __init__(self, owner: "FakeStripe", name: str):
        self._owner = owner
        self._name = name

    def __getattr__(self, method):
        def call(*args, **kwargs):
            return self._owner.invoke(f"{self._name}.{method}", args, kwargs)
        return call


class FakeStripe:
    """Records every SDK call; responses and failures are set per call name."""

    WebhookSignature = stripe.WebhookSignature

    def __init__(self):
        self.calls = []
        self.failures: Dict[str, Exception] = {}
        self.responses: Dict[str, Dict[str, Any]] = {
            "checkout.Session.create": {
                "id": "cs_test_1", "url": "https://checkout.stripe.test/c/pay/cs_test_1",
            },
            "PaymentIntent.create": {"id": "pi_1", "client_secret": "pi_1_secret_abc"},
            "Account.create": {"id": "acct_new"},
            "Account.retrieve": {
                "id": DJ_ACCOUNT,
                "details_submitted": True,
                "capabilities": {"transfers": "active"},
            },
            "Account.delete": {"id": DJ_ACCOUNT, "deleted": True},
            "AccountLink.create": {"url": "https://connect.stripe.test/setup/abc"},
            "Product.create": {"id": "prod_1", "name": "1 Song Request"},
            "Price.create": {"id": "price_1", "unit_amount": 299, "currency": "eur"},
            "Price.retrieve": {"id": "price_1", "unit_amount": 299, "currency": "eur"},
            "Product.list": {"data": [
                {"id": "prod_1", "metadata": {"connected_account_id": DJ_ACCOUNT}},
                {"id": "prod_2", "metadata": {"connected_account_id": "acct_other"}},
            ]},
            "Balance.retrieve": {
                "available": [{"amount": 1250, "currency": "eur"}],
                "pending": [{"amount": 299, "currency": "eur"}],
            },
            "Payout.create": {"id": "po_1", "status": "pending", "amount": 1000},
        }
        self.checkout = SimpleNamespace(Session=_Resource(self, "checkout.Session"))
        for name in ("PaymentIntent", "Account", "AccountLink", "Product", "Price", "Balance", "Payout"):
            setattr(self, name, _Resource(self, name))

    def invoke(self, key: str, args, kwargs):
        self.calls.append((key, args, kwargs))
        if key in self.failures:
            raise self.failures[key]
        return AttrDict(self.responses.get(key) or {"id": key})

    def calls_to(self, key: str):
        return [(args, kwargs) for name, args, kwargs in self.calls if name == key]


class FakeIdentityProvider(IIdentityProvider):
    def __init__(self):
        self.tokens: Dict[str, str] = {}
        self.users: Dict[str, IdentityRecord] = {}
        self.deleted = []

    def add_user(self, uid: str, token: str, role: Optional[str] = None):
        claims = {"role": role} if role else {}
        self.users[uid] = IdentityRecord(uid, f"{uid}@example.com", uid.upper(), claims)
        self.tokens[token] = uid

    async def verify_token(self, token: str) -> Dict[str, Any]:
        if token not in self.tokens:
            raise UnauthorizedError("Invalid token")
        return {"uid": self.tokens[token]}

    async def get_user(self, uid: str) -> IdentityRecord:
        if uid not in self.users:
            raise LookupError(uid)
        return self.users[uid]

    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        self.users[uid] = dataclasses.replace(self.users[uid], custom_claims=dict(claims))

    async def delete_user(self, uid: str) -> None:
        self.deleted.append(uid)
        self.users.pop(uid, None)


def spotify_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200, json={"access_token": "spotify-abc", "token_type": "Bearer", "expires_in": 3600}
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def store():
    return InMemoryDocumentStore(seed_data())


@pytest.fixture
def fake_stripe():
    return FakeStripe()


@pytest.fixture
def payments(fake_stripe):
    return PaymentProvider(
        api_key="sk_test_123",
        webhook_secret=WEBHOOK_SECRET,
        stripe_client=fake_stripe,
        timeout_seconds=5,
    )


@pytest.fixture
def identity():
    provider = FakeIdentityProvider()
    provider.add_user(DJ_ID, DJ_TOKEN, role="dj")
    provider.add_user("fan1", FAN_TOKEN)
    return provider


@pytest.fixture
def spotify():
    return SpotifyTokenClient(
        client_id="client-id",
        client_secret="client-secret",
        token_url=SPOTIFY_TOKEN_URL,
        transport=httpx.MockTransport(spotify_handler),
    )


@pytest.fixture
def services(store, identity, payments, spotify):
    return ServiceContainer.from_clients(
        store=store, identity=identity, payments=payments, spotify=spotify
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as test_client:
        yield test_client


@pytest.fixture
def dj_headers():
    return {"Authorization": f"Bearer {DJ_TOKEN}"}


@pytest.fixture
def fan_headers():
    return {"Authorization": f"Bearer {FAN_TOKEN}"}
