"""Redis pub/sub publisher for token request lifecycle events."""

from __future__ import annotations

import logging

from ..domain.events import TokenRequestEvent
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


class RedisEventPublisher:
    """Listener that publishes each committed transition on a channel."""

    def __init__(self, store: KeyValueStore, channel: str):
        self.store = store
        self.channel = channel

    async def __call__(self, event: TokenRequestEvent) -> None:
        receivers = await self.store.publish(self.channel, event.model_dump_json())
        logger.debug(
            "Published %s for %s to %d subscriber(s)",
            event.event,
            event.request_id,
            receivers,
        )
