"""Wire models: payment metadata round trip, store views, error payloads."""
import pytest
from pydantic import ValidationError

from conftest import payment_metadata
from errors import EventNotFoundError, RequestValidationFailed, UpstreamError
from schemas import DJProfile, Event, EventStatus, PaymentMetadata, SongRequestFields


class TestPaymentMetadata:
    def test_from_stripe_requires_event_and_dj(self):
        assert PaymentMetadata.from_stripe(None) is None
        assert PaymentMetadata.from_stripe(payment_metadata(eventId="")) is None
        assert PaymentMetadata.from_stripe(payment_metadata(djId="")) is None

    def test_stripe_bag_rebuilds_song_request(self):
        fields = PaymentMetadata.from_stripe(payment_metadata()).to_song_request()
        assert fields.to_store() == {
            "title": "Strobe",
            "artist": "deadmau5",
            "cover": "https://img.djtunez.test/strobe.png",
            "requesterEmail": "fan@example.com",
            "amount": 2.99,
            "currency": "eur",
        }

    def test_non_numeric_amount(self):
        metadata = PaymentMetadata.from_stripe(payment_metadata(amount="abc"))
        with pytest.raises(ValueError):
            metadata.to_song_request()

    def test_to_stripe_uses_wire_names(self):
        bag = PaymentMetadata.from_stripe(payment_metadata()).to_stripe()
        assert bag == payment_metadata()


class TestStoreViews:
    def test_event_defaults(self):
        event = Event.from_store("ev9", {"name": "Sunday"})
        assert event.id == "ev9"
        assert event.genres == []
        assert event.live is False

    def test_event_genres_from_index_map(self):
        event = Event.from_store("ev9", {"genres": {"10": "disco", "2": "house", "5": None}})
        assert event.genres == ["house", "disco"]

    def test_event_genres_from_keyed_map(self):
        event = Event.from_store("ev9", {"genres": {"-Nx1": "house", "-Nx0": "disco"}})
        assert event.genres == ["house", "disco"]

    def test_event_live_must_be_true(self):
        assert Event.from_store("ev9", {"live": "yes"}).live is False

    def test_event_status(self):
        assert Event.from_store("ev9", {"status": "active"}).status is EventStatus.ACTIVE
        assert Event.from_store("ev9", {"status": "cancelled"}).status is None

    def test_dj_cover_prefers_wallpaper(self):
        dj = DJProfile.from_store("dj9", {"wallpaper": "https://w", "avatar": "https://a"})
        assert dj.cover == "https://w"


def test_song_request_strips_whitespace():
    fields = SongRequestFields.model_validate({
        "title": "  Strobe ",
        "artist": "deadmau5",
        "cover": "https://img.djtunez.test/strobe.png",
        "requesterEmail": "fan@example.com",
        "amount": 1,
        "currency": "eur",
    })
    assert fields.title == "Strobe"


def test_song_request_rejects_missing_fields():
    with pytest.raises(ValidationError):
        SongRequestFields.model_validate({"title": "Strobe"})


class TestErrorPayloads:
    def test_not_found(self):
        error = EventNotFoundError("/events/x")
        assert error.status_code == 404
        assert error.to_payload() == {"error": "Event not found"}

    def test_validation_detail(self):
        assert RequestValidationFailed("price missing").to_payload() == {
            "error": "Validation failed", "message": "price missing",
        }

    def test_upstream(self):
        assert UpstreamError("Failed to fetch event").status_code == 500
