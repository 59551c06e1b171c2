"""Token request lifecycle API routes."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ...application.dtos import (
    ConfirmPaymentDTO,
    CreateTokenRequestDTO,
    GatewayCancellationDTO,
    IssuanceResultDTO,
    IssueTokenDTO,
    PaymentInstructionsDTO,
    RejectionDTO,
    SelectPaymentMethodDTO,
    TokenRequestResponseDTO,
    TokenResponseDTO,
)
from ...application.use_cases.token_request import TokenRequestService
from ...domain.entities import Caller, TokenRequestStatus
from ...domain.errors import AlreadyIssued
from ..dependencies import get_caller, get_token_request_service
from ..metrics import track_transition

router = APIRouter(tags=["token-requests"])


@router.post(
    "/token-requests",
    response_model=TokenRequestResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_token_request(
    payload: CreateTokenRequestDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    """Create a request; the amount is priced now and never recomputed."""
    async with track_transition("create_request"):
        return await service.create_request(caller, payload)


@router.get("/token-requests", response_model=List[TokenRequestResponseDTO])
async def list_token_requests(
    vendor_id: Optional[UUID] = None,
    status_filter: Optional[TokenRequestStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> List[TokenRequestResponseDTO]:
    return await service.list_requests(
        caller, vendor_id=vendor_id, status=status_filter, skip=skip, limit=limit
    )


@router.get("/token-requests/counts", response_model=Dict[TokenRequestStatus, int])
async def count_token_requests(
    vendor_id: Optional[UUID] = None,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> Dict[TokenRequestStatus, int]:
    return await service.count_by_status(caller, vendor_id)


@router.get("/token-requests/{request_id}", response_model=TokenRequestResponseDTO)
async def get_token_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    return await service.get_request(caller, request_id)


@router.post(
    "/token-requests/{request_id}/payment-method",
    response_model=PaymentInstructionsDTO,
)
async def select_payment_method(
    request_id: UUID,
    payload: SelectPaymentMethodDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> PaymentInstructionsDTO:
    async with track_transition("select_payment_method"):
        return await service.select_payment_method(caller, request_id, payload.method)


@router.post(
    "/token-requests/{request_id}/payment-confirmation",
    response_model=TokenRequestResponseDTO,
)
async def confirm_payment(
    request_id: UUID,
    payload: ConfirmPaymentDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    async with track_transition("confirm_payment"):
        return await service.confirm_payment(caller, request_id, payload.reference)


@router.post(
    "/token-requests/{request_id}/cancellation",
    response_model=TokenRequestResponseDTO,
)
async def cancel_token_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    async with track_transition("cancel"):
        return await service.cancel(caller, request_id)


@router.post(
    "/token-requests/{request_id}/approval", response_model=TokenRequestResponseDTO
)
async def approve_token_request(
    request_id: UUID,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    async with track_transition("admin_approve"):
        return await service.admin_approve(caller, request_id)


@router.post(
    "/token-requests/{request_id}/rejection", response_model=TokenRequestResponseDTO
)
async def reject_token_request(
    request_id: UUID,
    payload: RejectionDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    async with track_transition("admin_reject"):
        return await service.admin_reject(caller, request_id, payload.reason)


@router.post(
    "/token-requests/{request_id}/issuance",
    response_model=IssuanceResultDTO,
    status_code=status.HTTP_201_CREATED,
)
async def issue_token(
    request_id: UUID,
    payload: IssueTokenDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> IssuanceResultDTO:
    """Issue the token. A repeat returns the existing token with ``already_issued``."""
    try:
        async with track_transition("issue"):
            token = await service.issue(caller, request_id, payload.token_value)
    except AlreadyIssued as e:
        result = IssuanceResultDTO(
            token=TokenResponseDTO(**e.token.model_dump()), already_issued=True
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK, content=result.model_dump(mode="json")
        )
    return IssuanceResultDTO(token=token)


@router.post(
    "/payments/gateway-cancellations", response_model=TokenRequestResponseDTO
)
async def gateway_cancelled(
    payload: GatewayCancellationDTO,
    caller: Caller = Depends(get_caller),
    service: TokenRequestService = Depends(get_token_request_service),
) -> TokenRequestResponseDTO:
    """The payment widget reported that the payer abandoned the payment."""
    async with track_transition("cancel"):
        return await service.handle_gateway_cancelled(caller, payload.reference)
