"""Disco pricing table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from ...domain.entities import Caller, DiscoPricing
from ...domain.errors import NotFound
from ...domain.repositories import PricingRepository
from ..dtos import PricingResponseDTO
from .access import require_admin
from .validators import validate_disco

logger = logging.getLogger(__name__)


class PricingService:
    """Service for reading and setting per-disco unit prices."""

    def __init__(self, pricing_repository: PricingRepository, discos: List[str]):
        self.pricing_repository = pricing_repository
        self.discos = discos

    async def set_price(
        self, caller: Caller, disco: str, price_per_unit: int
    ) -> PricingResponseDTO:
        """Set the price for a disco. Existing requests keep their snapshot."""
        require_admin(caller)
        pricing = DiscoPricing(
            disco=validate_disco(disco, self.discos),
            price_per_unit=price_per_unit,
            updated_at=datetime.now(timezone.utc),
            updated_by=caller.id,
        )
        saved = await self.pricing_repository.upsert(pricing)
        logger.info("Price for %s set to %d by %s", saved.disco, price_per_unit, caller.id)
        return PricingResponseDTO(**saved.model_dump())

    async def current_price(self, disco: str) -> DiscoPricing:
        disco = validate_disco(disco, self.discos)
        pricing = await self.pricing_repository.get(disco)
        if pricing is None:
            raise NotFound(f"No price has been set for {disco}")
        return pricing

    async def get_price(self, disco: str) -> PricingResponseDTO:
        return PricingResponseDTO(**(await self.current_price(disco)).model_dump())

    async def list_prices(self) -> List[PricingResponseDTO]:
        prices = await self.pricing_repository.get_all()
        return [PricingResponseDTO(**p.model_dump()) for p in prices]
