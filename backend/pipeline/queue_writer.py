"""
Queue Writer
============
Appends a song request to an event's queue.

Position is the child count of ``{event_path}/queue`` read immediately
before the push. There is no transaction around the read and the write, so
two concurrent appends can read the same count and store the same position.
Ordering is eventually monotonic, not strictly unique; consumers that need a
total order break ties on ``timestamp`` and the push key.
"""

import time
from typing import Callable, Optional

import structlog

from errors import EventNotFoundError
from schemas.models import SongRequestFields, SongRequestStatus
from storage import IDocumentStore

logger = structlog.get_logger(component="queue_writer")


def now_ms() -> int:
    return int(time.time() * 1000)


class QueueWriter:
    """Single append-write of a ranked queue entry."""

    def __init__(self, store: IDocumentStore, clock: Optional[Callable[[], int]] = None):
        self.store = store
        self._clock = clock or now_ms

    async def next_position(self, event_path: str) -> int:
        queue = await self.store.get(f"{event_path}/queue")
        return len(queue) if isinstance(queue, dict) else 0

    async def append_to_queue(self, event_path: str, fields: SongRequestFields) -> str:
        """
        Write ``fields`` as a new pending entry under ``{event_path}/queue``.

        Raises EventNotFoundError, without writing, when the event is absent.
        Returns the store-generated request id.
        """
        if not await self.store.exists(event_path):
            logger.info("queue_event_missing", event_path=event_path)
            raise EventNotFoundError(event_path)

        position = await self.next_position(event_path)

        request_id = await self.store.push(f"{event_path}/queue", {
            **fields.to_store(),
            "status": SongRequestStatus.PENDING.value,
            "timestamp": self._clock(),
            "position": position,
        })

        logger.info("song_request_queued",
                    event_path=event_path,
                    request_id=request_id,
                    position=position)
        return request_id
