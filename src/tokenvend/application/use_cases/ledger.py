"""Token issuance ledger."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from ...domain.entities import Caller, Token, TokenRequest
from ...domain.errors import NotFound
from ...domain.repositories import CustomerRepository, TokenRepository
from ..dtos import TokenPageDTO, TokenResponseDTO
from .access import meter_registrations_for, require_vendor_access
from .validators import validate_meter_number, validate_pagination, validate_token_value

logger = logging.getLogger(__name__)


class TokenLedgerService:
    """Append-only record of issued tokens, unique per token request."""

    def __init__(
        self,
        token_repository: TokenRepository,
        customer_repository: CustomerRepository,
    ):
        self.token_repository = token_repository
        self.customer_repository = customer_repository

    async def record(
        self,
        request: TokenRequest,
        token_value: str,
        meter_serial: Optional[str],
        issued_by: UUID,
    ) -> Token:
        """Insert the token for ``request`` if it has none yet.

        The request must be loaded fresh; its version is used to reject a
        concurrent transition. Raises AlreadyIssued when a token exists.
        """
        value = validate_token_value(token_value)
        issued_at = datetime.now(timezone.utc)
        token = Token(
            token_request_id=request.id,
            vendor_id=request.vendor_id,
            meter_number=request.meter_number,
            disco=request.disco,
            units=request.units,
            amount=request.amount,
            value=value,
            meter_serial=meter_serial,
            issued_at=issued_at,
            issued_by=issued_by,
        )
        expected_version = request.version
        previous_status = request.status
        issued = request.model_copy(deep=True)
        issued.mark_issued(token.id, issued_at)
        return await self.token_repository.record(
            token, issued, expected_version, previous_status
        )

    async def find_by_request(self, request_id: UUID) -> Optional[Token]:
        return await self.token_repository.get_by_request(request_id)

    async def get_by_request(
        self, caller: Caller, request_id: UUID
    ) -> TokenResponseDTO:
        token = await self.token_repository.get_by_request(request_id)
        if token is None:
            raise NotFound(f"No token has been issued for request {request_id}")
        require_vendor_access(caller, token.vendor_id)
        return TokenResponseDTO(**token.model_dump())

    async def list_by_meter(
        self, caller: Caller, meter_number: str, page: int = 1, page_size: int = 20
    ) -> TokenPageDTO:
        """Tokens issued for a meter, newest first.

        Vendors only see tokens they issued for their own registrations of
        the meter.
        """
        meter_number = validate_meter_number(meter_number)
        validate_pagination(page, page_size)
        await meter_registrations_for(caller, self.customer_repository, meter_number)
        skip = (page - 1) * page_size
        total = await self.token_repository.count_by_meter(meter_number)
        if caller.is_admin:
            tokens = await self.token_repository.list_by_meter(
                meter_number, skip=skip, limit=page_size
            )
        else:
            # A meter registered with several discos can carry other vendors' tokens
            everything = await self.token_repository.list_by_meter(
                meter_number, skip=0, limit=max(total, 1)
            )
            owned = [t for t in everything if t.vendor_id == caller.id]
            tokens = owned[skip : skip + page_size]
            total = len(owned)
        return TokenPageDTO(
            items=[TokenResponseDTO(**t.model_dump()) for t in tokens],
            page=page,
            page_size=page_size,
            total=total,
        )

    async def list_by_vendor(
        self, caller: Caller, vendor_id: UUID, page: int = 1, page_size: int = 20
    ) -> TokenPageDTO:
        require_vendor_access(caller, vendor_id)
        validate_pagination(page, page_size)
        skip = (page - 1) * page_size
        tokens = await self.token_repository.list_by_vendor(
            vendor_id, skip=skip, limit=page_size
        )
        total = await self.token_repository.count_by_vendor(vendor_id)
        return TokenPageDTO(
            items=[TokenResponseDTO(**t.model_dump()) for t in tokens],
            page=page,
            page_size=page_size,
            total=total,
        )

    async def count_by_vendor(self, vendor_id: UUID) -> int:
        return await self.token_repository.count_by_vendor(vendor_id)
