"""Shared pytest fixtures for token vending tests."""

from __future__ import annotations

import os
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio

from tokenvend.domain.entities import Caller, CallerRole
from tokenvend.infrastructure.database import DatabaseClient
from tokenvend.infrastructure.scripts import ALL_SCRIPTS
from tokenvend.infrastructure.storage import RedisKeyValueStore
from tests.fixtures import (
    InMemoryKeyValueStore,
    StubPaymentGateway,
    VendingWorld,
    build_world,
    register_all_scripts,
)


@pytest.fixture
def admin() -> Caller:
    return Caller(id=uuid4(), role=CallerRole.ADMIN)


@pytest.fixture
async def store() -> AsyncGenerator[InMemoryKeyValueStore, None]:
    """Create an in-memory store with every script registered."""
    store = InMemoryKeyValueStore()
    await register_all_scripts(store)
    yield store
    store.clear()


@pytest.fixture
def payment_gateway() -> StubPaymentGateway:
    return StubPaymentGateway()


@pytest.fixture
def world(
    store: InMemoryKeyValueStore, payment_gateway: StubPaymentGateway, admin: Caller
) -> VendingWorld:
    """Every service wired over the in-memory store."""
    return build_world(store, payment_gateway, admin)


class TestDatabaseSettings:
    """Test settings for Redis connection."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url


@pytest_asyncio.fixture
async def redis_db_client() -> AsyncGenerator[DatabaseClient, None]:
    """Create a Redis database client for testing.

    Uses database 15 by default, or TEST_REDIS_URL if set.
    """
    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    client = DatabaseClient(TestDatabaseSettings(database_url=test_redis_url))
    client.initialize_database()

    if not await client.ping():
        await client.close()
        pytest.skip(f"Redis not available at {test_redis_url}")

    yield client

    async with client.get_connection() as conn:
        await conn.flushdb()
    await client.close()


@pytest_asyncio.fixture
async def redis_store(redis_db_client: DatabaseClient) -> RedisKeyValueStore:
    """Create a Redis-backed key-value store with every script registered."""
    store = RedisKeyValueStore(redis_db_client)
    for name, script in ALL_SCRIPTS.items():
        await store.register_script(name, script)
    return store
