"""Issued token API routes (read only)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ...application.dtos import TokenPageDTO, TokenResponseDTO
from ...application.use_cases.ledger import TokenLedgerService
from ...domain.entities import Caller
from ..dependencies import get_caller, get_ledger_service

router = APIRouter(tags=["tokens"])


@router.get("/tokens", response_model=TokenPageDTO)
async def list_tokens_by_meter(
    meter_number: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    ledger_service: TokenLedgerService = Depends(get_ledger_service),
) -> TokenPageDTO:
    """Tokens issued for a meter, newest first."""
    return await ledger_service.list_by_meter(caller, meter_number, page, page_size)


@router.get("/vendors/{vendor_id}/tokens", response_model=TokenPageDTO)
async def list_tokens_by_vendor(
    vendor_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    caller: Caller = Depends(get_caller),
    ledger_service: TokenLedgerService = Depends(get_ledger_service),
) -> TokenPageDTO:
    return await ledger_service.list_by_vendor(caller, vendor_id, page, page_size)


@router.get("/token-requests/{request_id}/token", response_model=TokenResponseDTO)
async def get_token_for_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    ledger_service: TokenLedgerService = Depends(get_ledger_service),
) -> TokenResponseDTO:
    return await ledger_service.get_by_request(caller, request_id)
