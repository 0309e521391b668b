# schemas/models.py
# ============================================================================
# DJTUNEZ BACKEND: DOMAIN + WIRE SCHEMAS
# ============================================================================
# Events, DJ profiles, song requests, payment metadata and the request /
# response bodies of the HTTP surface. Wire names are camelCase.
# ============================================================================

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
)
from pydantic.alias_generators import to_camel


_url_adapter = TypeAdapter(AnyUrl)


def _check_uri(value: str) -> str:
    # Validate, but keep the caller's exact string
    _url_adapter.validate_python(value)
    return value


UriStr = Annotated[str, AfterValidator(_check_uri)]


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestBody(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


# ============================================================================
# SECTION 1: ENUMS
# ============================================================================

class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class SongRequestStatus(str, Enum):
    PENDING = "pending"
    PLAYED = "played"
    SKIPPED = "skipped"


# ============================================================================
# SECTION 2: EVENTS + DJS
# ============================================================================

class Event(CamelModel):
    """Public view of an event node."""
    id: str
    dj_id: str = ""
    name: str = ""
    venue: str = ""
    city: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    start_time: str = ""
    end_time: str = ""
    status: Optional[EventStatus] = None
    live: bool = False
    genres: List[str] = Field(default_factory=list)
    tracks: List[str] = Field(default_factory=list)
    price: float = 0
    currency: str = ""
    currency_symbol: str = ""

    @classmethod
    def from_store(cls, event_id: str, raw: Dict[str, Any]) -> "Event":
        return cls(
            id=event_id,
            dj_id=raw.get("djId") or "",
            name=raw.get("name") or "",
            venue=raw.get("venue") or "",
            city=raw.get("city") or "",
            start_date=raw.get("startDate") or raw.get("date") or "",
            end_date=raw.get("endDate"),
            start_time=raw.get("startTime") or "",
            end_time=raw.get("endTime") or "",
            status=_event_status(raw.get("status")),
            live=raw.get("live") is True,
            genres=_as_list(raw.get("genres")),
            tracks=_as_list(raw.get("tracks")),
            price=raw.get("price") or 0,
            currency=raw.get("currency") or "",
            currency_symbol=raw.get("currencySymbol") or "",
        )


class DJProfile(CamelModel):
    """Public view of /users/{id}/profile."""
    id: str
    stage_name: str = ""
    bio: str = ""
    cover: str = ""
    ratings: float = 0
    price: float = 0
    currency: str = ""
    currency_symbol: str = ""

    @classmethod
    def from_store(cls, dj_id: str, raw: Dict[str, Any]) -> "DJProfile":
        return cls(
            id=dj_id,
            stage_name=raw.get("stageName") or "",
            bio=raw.get("bio") or "",
            cover=raw.get("wallpaper") or raw.get("avatar") or "",
            ratings=raw.get("ratings") or 0,
            price=raw.get("price") or 0,
            currency=raw.get("currency") or "",
            currency_symbol=raw.get("currencySymbol") or "",
        )


def _event_status(value: Any) -> Optional[EventStatus]:
    try:
        return EventStatus(value)
    except ValueError:
        return None


def _as_list(value: Any) -> List[str]:
    # RTDB returns arrays with holes as dicts keyed by index
    if isinstance(value, dict):
        try:
            items = sorted(value.items(), key=lambda kv: int(kv[0]))
        except ValueError:
            # Push keys or hand-written maps keep insertion order
            items = list(value.items())
        return [v for _, v in items if v is not None]
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return []


# ============================================================================
# SECTION 3: SONG REQUESTS + PAYMENT METADATA
# ============================================================================

class SongRequestFields(RequestBody):
    """Fan-supplied fields of a song request."""
    title: str = Field(min_length=1, max_length=200)
    artist: str = Field(min_length=1, max_length=200)
    cover: UriStr
    requester_email: EmailStr
    amount: float = Field(gt=0)
    currency: str = Field(min_length=2, max_length=5)

    def to_store(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "cover": self.cover,
            "requesterEmail": self.requester_email,
            "amount": self.amount,
            "currency": self.currency,
        }


class QueueEntry(CamelModel):
    """A stored song request as read back from {event}/queue/{id}."""
    id: str
    title: str
    artist: str
    cover: str = ""
    requester_email: str
    amount: float
    currency: str
    status: SongRequestStatus = SongRequestStatus.PENDING
    timestamp: int
    position: int


class PaymentMetadata(CamelModel):
    """
    Key-value bag carried on a Stripe PaymentIntent / Checkout Session.

    Holds everything needed to rebuild the queue entry when the confirming
    webhook fires. Stripe metadata values are strings.
    """
    dj_id: str
    event_id: str
    title: str
    artist: str
    cover: str = ""
    requester_email: str
    amount: str
    currency: str

    @classmethod
    def from_stripe(cls, metadata: Optional[Dict[str, Any]]) -> Optional["PaymentMetadata"]:
        """None when the bag cannot locate an event."""
        if not metadata or not metadata.get("eventId") or not metadata.get("djId"):
            return None
        return cls(
            dj_id=metadata["djId"],
            event_id=metadata["eventId"],
            title=metadata.get("title") or "",
            artist=metadata.get("artist") or "",
            cover=metadata.get("cover") or "",
            requester_email=metadata.get("requesterEmail") or "",
            amount=str(metadata.get("amount") or "0"),
            currency=metadata.get("currency") or "",
        )

    def to_stripe(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)

    def to_song_request(self) -> SongRequestFields:
        # Already paid for; store what the provider replays without re-validating
        return SongRequestFields.model_construct(
            title=self.title,
            artist=self.artist,
            cover=self.cover,
            requester_email=self.requester_email,
            amount=float(self.amount),
            currency=self.currency,
        )


# ============================================================================
# SECTION 4: INTAKE BODIES
# ============================================================================

class SongCheckoutRequest(RequestBody):
    dj_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    artist: str = Field(min_length=1, max_length=200)
    cover: UriStr
    requester_email: EmailStr
    success_url: UriStr
    cancel_url: UriStr


class PaymentIntentRequest(RequestBody):
    dj_id: str = Field(min_length=1)
    event_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    artist: str = Field(min_length=1, max_length=200)
    cover: UriStr
    requester_email: EmailStr
    amount: float = Field(gt=0)
    currency: str = Field(min_length=2, max_length=5)


# ============================================================================
# SECTION 5: STRIPE CONNECT BODIES
# ============================================================================

class CreateAccountRequest(RequestBody):
    display_name: str = Field(min_length=1)
    country: str = Field(min_length=2, max_length=2)
    email: EmailStr


class CreateAccountLinkRequest(RequestBody):
    account_id: str = Field(min_length=1)
    return_url: UriStr
    refresh_url: UriStr


class CreateProductRequest(RequestBody):
    name: str = Field(min_length=1)
    description: str = ""
    amount: float = Field(gt=0)
    currency: str = Field(min_length=2, max_length=5)
    connected_account_id: str = Field(min_length=1)


class RequestPayoutRequest(RequestBody):
    account_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    currency: str = Field(min_length=2, max_length=5)


class ConnectCheckoutRequest(RequestBody):
    price_id: str = Field(min_length=1)
    connected_account_id: str = Field(min_length=1)
    application_fee_percent: Optional[float] = Field(default=None, ge=0, le=100)
    success_url: UriStr
    cancel_url: UriStr


# ============================================================================
# SECTION 6: RESPONSES
# ============================================================================

class HealthResponse(BaseModel):
    status: str


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class EventResponse(CamelModel):
    message: str = "Successful"
    event: Event


class DJResponse(CamelModel):
    message: str = "Successful"
    dj: DJProfile


class QueueSubmissionResponse(CamelModel):
    message: str = "Song request submitted"
    request_id: str


class CheckoutSessionResponse(CamelModel):
    url: str
    session_id: str


class PaymentIntentResponse(CamelModel):
    client_secret: str


class WebhookAck(BaseModel):
    received: bool = True
