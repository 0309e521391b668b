"""Queue writer: positions, missing events, stored fields."""
import pytest

from conftest import EVENT_ID, queue_at, song_request_body
from errors import EventNotFoundError
from pipeline import QueueWriter
from schemas import QueueEntry, SongRequestFields

EVENT_PATH = f"/events/{EVENT_ID}"


@pytest.fixture
def writer(store):
    return QueueWriter(store, clock=lambda: 1_700_000_000_000)


@pytest.fixture
def fields():
    return SongRequestFields.model_validate(song_request_body())


class TestQueueWriter:
    async def test_first_entry_gets_position_zero(self, writer, store, fields):
        request_id = await writer.append_to_queue(EVENT_PATH, fields)
        entry = queue_at(store, EVENT_PATH)[request_id]
        assert entry["position"] == 0
        assert entry["status"] == "pending"
        assert entry["timestamp"] == 1_700_000_000_000

    async def test_positions_follow_existing_count(self, writer, store, fields):
        for _ in range(3):
            await writer.append_to_queue(EVENT_PATH, fields)
        fourth = await writer.append_to_queue(EVENT_PATH, fields)
        positions = sorted(e["position"] for e in queue_at(store, EVENT_PATH).values())
        assert positions == [0, 1, 2, 3]
        assert queue_at(store, EVENT_PATH)[fourth]["position"] == 3

    async def test_missing_event_raises_without_writing(self, writer, store, fields):
        before = store.snapshot()
        with pytest.raises(EventNotFoundError):
            await writer.append_to_queue("/events/nope", fields)
        assert store.writes == []
        assert store.snapshot() == before

    async def test_stored_entry_reads_back_as_queue_entry(self, writer, store, fields):
        request_id = await writer.append_to_queue(EVENT_PATH, fields)
        raw = queue_at(store, EVENT_PATH)[request_id]
        entry = QueueEntry.model_validate({"id": request_id, **raw})
        assert entry.title == "Strobe"
        assert entry.artist == "deadmau5"
        assert entry.requester_email == "fan@example.com"
        assert entry.amount == 2.99
        assert entry.currency == "eur"
        assert entry.cover == "https://img.djtunez.test/strobe.png"

    async def test_default_clock_is_epoch_millis(self, store, fields):
        request_id = await QueueWriter(store).append_to_queue(EVENT_PATH, fields)
        assert queue_at(store, EVENT_PATH)[request_id]["timestamp"] > 1_600_000_000_000
