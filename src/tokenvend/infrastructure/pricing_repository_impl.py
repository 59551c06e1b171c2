"""Disco pricing repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import List, Optional

from ..domain.entities import DiscoPricing
from ..domain.repositories import PricingRepository
from .storage import KeyValueStore


class PricingRepositoryImpl(PricingRepository):
    """Pricing table using a KeyValueStore. Last write wins."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def upsert(self, pricing: DiscoPricing) -> DiscoPricing:
        await self.store.set(f"pricing:{pricing.disco}", pricing.model_dump_json())
        await self.store.zadd("pricing:all", {pricing.disco: 0})
        return pricing

    async def get(self, disco: str) -> Optional[DiscoPricing]:
        data = await self.store.get(f"pricing:{disco}")
        if not data:
            return None
        return DiscoPricing.model_validate_json(data)

    async def get_all(self) -> List[DiscoPricing]:
        discos = await self.store.zrevrange("pricing:all", 0, -1)
        raw = await self.store.mget([f"pricing:{disco}" for disco in discos])
        prices = [DiscoPricing.model_validate_json(data) for data in raw if data]
        return sorted(prices, key=lambda p: p.disco)
