"""Vendor API routes: onboarding, quota usage, upgrades and customers."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ...application.dtos import (
    CreateVendorDTO,
    CustomerResponseDTO,
    RegisterCustomerDTO,
    UpgradeIntentDTO,
    UpgradeSlotsDTO,
    VendorResponseDTO,
    VendorUsageDTO,
)
from ...application.use_cases.quota import VendorQuotaService
from ...application.use_cases.vendor import VendorService
from ...domain.entities import Caller
from ..dependencies import get_caller, get_quota_service, get_vendor_service

router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.post(
    "", response_model=VendorResponseDTO, status_code=status.HTTP_201_CREATED
)
async def create_vendor(
    vendor_data: CreateVendorDTO,
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponseDTO:
    """Create a vendor account (admin)."""
    return await vendor_service.create_vendor(caller, vendor_data)


@router.get("", response_model=List[VendorResponseDTO])
async def list_vendors(
    approved: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> List[VendorResponseDTO]:
    """List vendors, newest first (admin)."""
    return await vendor_service.list_vendors(
        caller, approved=approved, skip=skip, limit=limit
    )


@router.get("/{vendor_id}", response_model=VendorResponseDTO)
async def get_vendor(
    vendor_id: UUID,
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponseDTO:
    return await vendor_service.get_vendor(caller, vendor_id)


@router.post("/{vendor_id}/approve", response_model=VendorResponseDTO)
async def approve_vendor(
    vendor_id: UUID,
    caller: Caller = Depends(get_caller),
    vendor_service: VendorService = Depends(get_vendor_service),
) -> VendorResponseDTO:
    """Approve a vendor to trade (admin)."""
    return await vendor_service.approve_vendor(caller, vendor_id)


@router.get("/{vendor_id}/usage", response_model=VendorUsageDTO)
async def get_usage(
    vendor_id: UUID,
    caller: Caller = Depends(get_caller),
    quota_service: VendorQuotaService = Depends(get_quota_service),
) -> VendorUsageDTO:
    """Customer slots used and remaining."""
    return await quota_service.get_usage(caller, vendor_id)


@router.post(
    "/{vendor_id}/upgrades",
    response_model=UpgradeIntentDTO,
    status_code=status.HTTP_201_CREATED,
)
async def request_upgrade(
    vendor_id: UUID,
    payload: UpgradeSlotsDTO,
    caller: Caller = Depends(get_caller),
    quota_service: VendorQuotaService = Depends(get_quota_service),
) -> UpgradeIntentDTO:
    """Price extra customer slots; the limit changes once the upgrade is applied."""
    return await quota_service.request_upgrade(
        caller, vendor_id, payload.additional_slots
    )


@router.post("/{vendor_id}/upgrades/apply", response_model=VendorResponseDTO)
async def apply_upgrade(
    vendor_id: UUID,
    payload: UpgradeSlotsDTO,
    caller: Caller = Depends(get_caller),
    quota_service: VendorQuotaService = Depends(get_quota_service),
) -> VendorResponseDTO:
    """Apply a paid upgrade (admin)."""
    return await quota_service.apply_upgrade(
        caller, vendor_id, payload.additional_slots
    )


@router.post(
    "/{vendor_id}/customers",
    response_model=CustomerResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def register_customer(
    vendor_id: UUID,
    customer_data: RegisterCustomerDTO,
    caller: Caller = Depends(get_caller),
    quota_service: VendorQuotaService = Depends(get_quota_service),
) -> CustomerResponseDTO:
    """Register a customer, consuming one slot of the vendor's quota."""
    return await quota_service.register_customer(caller, vendor_id, customer_data)


@router.get("/{vendor_id}/customers", response_model=List[CustomerResponseDTO])
async def list_vendor_customers(
    vendor_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    caller: Caller = Depends(get_caller),
    quota_service: VendorQuotaService = Depends(get_quota_service),
) -> List[CustomerResponseDTO]:
    return await quota_service.list_customers(
        caller, vendor_id, skip=skip, limit=limit
    )
