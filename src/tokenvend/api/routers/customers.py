"""Customer and meter verification API routes."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ...application.dtos import (
    CustomerResponseDTO,
    RejectionDTO,
    SubmitVerificationDTO,
    VerificationResponseDTO,
)
from ...application.use_cases.verification import VerificationService
from ...domain.entities import Caller
from ..dependencies import get_caller, get_verification_service

router = APIRouter(tags=["customers"])


@router.get("/customers", response_model=List[CustomerResponseDTO])
async def list_customers(
    verified: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    caller: Caller = Depends(get_caller),
    verification_service: VerificationService = Depends(get_verification_service),
) -> List[CustomerResponseDTO]:
    """List customers; ``verified=false`` is the verification queue (admin)."""
    return await verification_service.list_customers(
        caller, verified=verified, skip=skip, limit=limit
    )


@router.get("/customers/{customer_id}", response_model=CustomerResponseDTO)
async def get_customer(
    customer_id: UUID,
    caller: Caller = Depends(get_caller),
    verification_service: VerificationService = Depends(get_verification_service),
) -> CustomerResponseDTO:
    return await verification_service.get_customer(caller, customer_id)


@router.get("/verifications/{meter_number}", response_model=VerificationResponseDTO)
async def get_verification(
    meter_number: str,
    disco: Optional[str] = None,
    caller: Caller = Depends(get_caller),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationResponseDTO:
    """Verification status for a meter. Key fields are hidden until verified."""
    return await verification_service.get_verification(caller, meter_number, disco)


@router.put(
    "/customers/{customer_id}/verification", response_model=VerificationResponseDTO
)
async def submit_verification(
    customer_id: UUID,
    payload: SubmitVerificationDTO,
    caller: Caller = Depends(get_caller),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationResponseDTO:
    """Record the eight key fields and mark the meter verified (admin)."""
    return await verification_service.submit_verification(caller, customer_id, payload)


@router.post(
    "/customers/{customer_id}/verification/rejection",
    response_model=VerificationResponseDTO,
)
async def reject_verification(
    customer_id: UUID,
    payload: RejectionDTO,
    caller: Caller = Depends(get_caller),
    verification_service: VerificationService = Depends(get_verification_service),
) -> VerificationResponseDTO:
    """Reject a meter's verification with a reason (admin)."""
    return await verification_service.reject_verification(
        caller, customer_id, payload.reason
    )
