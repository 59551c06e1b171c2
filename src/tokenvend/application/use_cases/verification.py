"""Verification registry: key material and verification status per customer."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from ...domain.entities import Caller, Customer, Verification
from ...domain.errors import NotFound, ValidationError
from ...domain.repositories import CustomerRepository
from ..dtos import (
    CustomerResponseDTO,
    SubmitVerificationDTO,
    VerificationResponseDTO,
)
from .access import meter_registrations_for, require_admin, require_vendor_access
from .validators import (
    validate_disco,
    validate_key_material,
    validate_meter_number,
    validate_reason,
)

logger = logging.getLogger(__name__)


class VerificationService:
    """Service for meter verification. Never touches token request state."""

    def __init__(self, customer_repository: CustomerRepository, discos: List[str]):
        self.customer_repository = customer_repository
        self.discos = discos

    async def _get_customer(self, customer_id: UUID) -> Customer:
        customer = await self.customer_repository.get_by_id(customer_id)
        if customer is None:
            raise NotFound(f"Customer {customer_id} not found")
        return customer

    async def get_verification(
        self, caller: Caller, meter_number: str, disco: Optional[str] = None
    ) -> VerificationResponseDTO:
        """Look a meter up by number, optionally narrowed to one disco.

        Vendors may only read meters they registered themselves.
        """
        meter_number = validate_meter_number(meter_number)
        if disco:
            customer = await self.customer_repository.get_by_meter(
                meter_number, validate_disco(disco, self.discos)
            )
            if customer is None:
                raise NotFound(f"Meter {meter_number} is not registered with {disco}")
            require_vendor_access(caller, customer.vendor_id)
        else:
            matches = await meter_registrations_for(
                caller, self.customer_repository, meter_number
            )
            if not matches:
                raise NotFound(f"Meter {meter_number} is not registered")
            if len(matches) > 1:
                raise ValidationError(
                    f"Meter {meter_number} is registered with several discos; "
                    "specify which one"
                )
            customer = matches[0]
        return VerificationResponseDTO.from_entity(customer.verification)

    async def get_customer_verification(self, customer_id: UUID) -> Verification:
        return (await self._get_customer(customer_id)).verification

    async def get_customer(
        self, caller: Caller, customer_id: UUID
    ) -> CustomerResponseDTO:
        customer = await self._get_customer(customer_id)
        require_vendor_access(caller, customer.vendor_id)
        return CustomerResponseDTO.from_entity(customer)

    async def submit_verification(
        self, caller: Caller, customer_id: UUID, dto: SubmitVerificationDTO
    ) -> VerificationResponseDTO:
        require_admin(caller)
        fields = validate_key_material(dto.model_dump())
        customer = await self._get_customer(customer_id)
        expected_version = customer.version
        customer.submit_verification(fields)
        saved = await self.customer_repository.update(customer, expected_version)
        logger.info("Customer %s verified by %s", customer_id, caller.id)
        return VerificationResponseDTO.from_entity(saved.verification)

    async def reject_verification(
        self, caller: Caller, customer_id: UUID, reason: Optional[str]
    ) -> VerificationResponseDTO:
        require_admin(caller)
        reason = validate_reason(reason)
        customer = await self._get_customer(customer_id)
        expected_version = customer.version
        customer.reject_verification(reason)
        saved = await self.customer_repository.update(customer, expected_version)
        logger.info("Verification for customer %s rejected: %s", customer_id, reason)
        return VerificationResponseDTO.from_entity(saved.verification)

    async def list_customers(
        self,
        caller: Caller,
        verified: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[CustomerResponseDTO]:
        """All customers for the admin; ``verified=False`` lists the pending queue."""
        require_admin(caller)
        customers = await self.customer_repository.get_all(
            verified=verified, skip=skip, limit=limit
        )
        return [CustomerResponseDTO.from_entity(c) for c in customers]

    async def count_pending_verifications(self) -> int:
        return await self.customer_repository.count_pending_verification()
