"""Dashboard counter API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from ...application.dtos import AdminDashboardDTO, VendorDashboardDTO
from ...application.use_cases.vendor import VendorService
from ...domain.entities import Caller
from ..dependencies import get_caller, get_vendor_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/vendor/{vendor_id}", response_model=VendorDashboardDTO)
async def vendor_dashboard(
    vendor_id: UUID,
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorDashboardDTO:
    return await vendor_service.vendor_dashboard(caller, vendor_id)


@router.get("/admin", response_model=AdminDashboardDTO)
async def admin_dashboard(
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> AdminDashboardDTO:
    return await vendor_service.admin_dashboard(caller)
