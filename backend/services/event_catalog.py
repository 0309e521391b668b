# services/event_catalog.py
# ============================================================================
# DJTUNEZ BACKEND: PUBLIC EVENT + DJ READS
# ============================================================================

import structlog

from errors import DJNotFoundError, EventNotFoundError
from schemas.models import DJProfile, Event
from storage import IDocumentStore

logger = structlog.get_logger(component="event_catalog")


class EventCatalog:
    """Read-only fan-facing views over events and DJ profiles."""

    def __init__(self, store: IDocumentStore):
        self.store = store

    async def get_event(self, event_id: str) -> Event:
        raw = await self.store.get(f"/events/{event_id}")
        if not isinstance(raw, dict):
            raise EventNotFoundError(f"/events/{event_id}")
        return Event.from_store(event_id, raw)

    async def get_dj(self, dj_id: str) -> DJProfile:
        raw = await self.store.get(f"/users/{dj_id}/profile")
        if not isinstance(raw, dict):
            raise DJNotFoundError(dj_id)
        return DJProfile.from_store(dj_id, raw)

    async def get_live_event(self, dj_id: str) -> Event:
        """
        The DJ's event flagged live. At most one should be; if several are,
        the first by key wins.
        """
        events = await self.store.get(f"/users/{dj_id}/events")
        for event_id, raw in sorted((events or {}).items()):
            if isinstance(raw, dict) and raw.get("live") is True:
                return Event.from_store(event_id, {"djId": dj_id, **raw})

        logger.info("no_live_event", dj_id=dj_id)
        raise EventNotFoundError(f"/users/{dj_id}/events")
