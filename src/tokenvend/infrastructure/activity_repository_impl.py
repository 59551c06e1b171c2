"""Recent activity feed implementation over a storage abstraction."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from ..domain.events import TokenRequestEvent
from ..domain.repositories import ActivityRepository
from .scripts import parse_script_result
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


class ActivityRepositoryImpl(ActivityRepository):
    """Per-vendor sorted set of serialized events, scored by event time.

    ``record`` has the listener signature, so the bound method can be handed
    straight to the token request service.
    """

    def __init__(self, store: KeyValueStore, capacity: int = 20):
        if capacity < 1:
            raise ValueError("Activity feed capacity must be at least 1")
        self.store = store
        self.capacity = capacity

    @staticmethod
    def _feed_key(vendor_id: UUID) -> str:
        return f"vendor:{vendor_id}:activity"

    async def record(self, event: TokenRequestEvent) -> None:
        result = await self.store.run_script(
            "record_activity",
            keys=[self._feed_key(event.vendor_id)],
            args=[
                str(event.created_at.timestamp()),
                event.model_dump_json(),
                str(self.capacity),
            ],
        )
        _, size = parse_script_result(result)
        logger.debug(
            "Recorded %s for vendor %s (feed size %s)",
            event.event,
            event.vendor_id,
            size,
        )

    async def recent(
        self, vendor_id: UUID, limit: Optional[int] = None
    ) -> List[TokenRequestEvent]:
        count = min(limit or self.capacity, self.capacity)
        entries = await self.store.zrevrange(self._feed_key(vendor_id), 0, count - 1)
        return [TokenRequestEvent.model_validate_json(entry) for entry in entries]
