"""Disco pricing API routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ...application.dtos import PricingResponseDTO, SetPriceDTO
from ...application.use_cases.pricing import PricingService
from ...domain.entities import Caller
from ..dependencies import get_caller, get_pricing_service

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.put("/{disco}", response_model=PricingResponseDTO)
async def set_price(
    disco: str,
    payload: SetPriceDTO,
    caller: Caller = Depends(get_caller),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PricingResponseDTO:
    """Set the price per unit for a disco (admin)."""
    return await pricing_service.set_price(caller, disco, payload.price_per_unit)


@router.get("", response_model=List[PricingResponseDTO])
async def list_prices(
    caller: Caller = Depends(get_caller),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> List[PricingResponseDTO]:
    return await pricing_service.list_prices()


@router.get("/{disco}", response_model=PricingResponseDTO)
async def get_price(
    disco: str,
    caller: Caller = Depends(get_caller),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PricingResponseDTO:
    return await pricing_service.get_price(disco)
