"""Unit tests for the capped per-vendor activity feed."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from tokenvend.domain.entities import TokenRequestStatus
from tokenvend.domain.events import TokenRequestEvent
from tests.fixtures import InMemoryActivityRepository, InMemoryKeyValueStore

START = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def event_at(vendor_id: UUID, minute: int) -> TokenRequestEvent:
    return TokenRequestEvent(
        event="create_request",
        request_id=uuid4(),
        vendor_id=vendor_id,
        to_status=TokenRequestStatus.INITIATED,
        version=0,
        created_at=START + timedelta(minutes=minute),
    )


async def test_keeps_only_newest_entries(store: InMemoryKeyValueStore) -> None:
    feed = InMemoryActivityRepository(store, capacity=3)
    vendor_id = uuid4()
    events = [event_at(vendor_id, minute) for minute in range(5)]
    # Arrival order differs from event time
    for event in (events[3], events[0], events[4], events[1], events[2]):
        await feed.record(event)

    recent = await feed.recent(vendor_id)

    assert [e.request_id for e in recent] == [
        events[4].request_id,
        events[3].request_id,
        events[2].request_id,
    ]
    assert await store.zcard(f"vendor:{vendor_id}:activity") == 3
    assert [e.request_id for e in await feed.recent(vendor_id, limit=1)] == [
        events[4].request_id
    ]


async def test_feeds_are_per_vendor(store: InMemoryKeyValueStore) -> None:
    feed = InMemoryActivityRepository(store)
    shop, kiosk = uuid4(), uuid4()
    await feed.record(event_at(shop, 0))

    assert len(await feed.recent(shop)) == 1
    assert await feed.recent(kiosk) == []


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        InMemoryActivityRepository(capacity=0)
