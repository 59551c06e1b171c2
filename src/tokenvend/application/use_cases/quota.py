"""Vendor quota manager: customer slots, registration and upgrades."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4

from ...domain.entities import Caller, Customer, UpgradeIntent, Vendor
from ...domain.errors import NotFound
from ...domain.repositories import CustomerRepository, VendorRepository
from ..dtos import (
    CustomerResponseDTO,
    RegisterCustomerDTO,
    UpgradeIntentDTO,
    VendorResponseDTO,
    VendorUsageDTO,
)
from .access import require_admin, require_vendor_access
from .validators import (
    validate_disco,
    validate_last_token,
    validate_meter_number,
    validate_slots,
)

logger = logging.getLogger(__name__)


class VendorQuotaService:
    """Service for customer-slot quotas.

    Registration is a single atomic check-and-increment in the store, so
    concurrent registrations can never push ``customer_count`` past
    ``customer_limit``.
    """

    def __init__(
        self,
        vendor_repository: VendorRepository,
        customer_repository: CustomerRepository,
        discos: List[str],
        upgrade_slot_price: int,
    ):
        self.vendor_repository = vendor_repository
        self.customer_repository = customer_repository
        self.discos = discos
        self.upgrade_slot_price = upgrade_slot_price

    async def _get_vendor(self, vendor_id: UUID) -> Vendor:
        vendor = await self.vendor_repository.get_by_id(vendor_id)
        if vendor is None:
            raise NotFound(f"Vendor {vendor_id} not found")
        return vendor

    async def can_add_customer(self, vendor_id: UUID) -> bool:
        return (await self._get_vendor(vendor_id)).can_add_customer()

    async def get_usage(self, caller: Caller, vendor_id: UUID) -> VendorUsageDTO:
        require_vendor_access(caller, vendor_id)
        vendor = await self._get_vendor(vendor_id)
        return VendorUsageDTO(
            vendor_id=vendor.id,
            customer_limit=vendor.customer_limit,
            customer_count=vendor.customer_count,
            remaining=vendor.remaining_slots,
            can_add_customer=vendor.can_add_customer(),
            pending_upgrade=vendor.pending_upgrade,
            pending_upgrade_slots=vendor.pending_upgrade_slots,
            pending_upgrade_amount=vendor.pending_upgrade_amount,
            pending_upgrade_reference=vendor.pending_upgrade_reference,
        )

    async def register_customer(
        self, caller: Caller, vendor_id: UUID, dto: RegisterCustomerDTO
    ) -> CustomerResponseDTO:
        require_vendor_access(caller, vendor_id)
        customer = Customer(
            vendor_id=vendor_id,
            meter_number=validate_meter_number(dto.meter_number),
            disco=validate_disco(dto.disco, self.discos),
            name=dto.name,
            address=dto.address,
            phone=dto.phone,
            last_token=validate_last_token(dto.last_token),
        )
        vendor = await self.customer_repository.register(customer)
        logger.info(
            "Vendor %s registered customer %s (%d/%d slots used)",
            vendor_id,
            customer.id,
            vendor.customer_count,
            vendor.customer_limit,
        )
        return CustomerResponseDTO.from_entity(customer)

    async def list_customers(
        self, caller: Caller, vendor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[CustomerResponseDTO]:
        require_vendor_access(caller, vendor_id)
        customers = await self.customer_repository.list_by_vendor(
            vendor_id, skip=skip, limit=limit
        )
        return [CustomerResponseDTO.from_entity(c) for c in customers]

    async def request_upgrade(
        self, caller: Caller, vendor_id: UUID, additional_slots: int
    ) -> UpgradeIntentDTO:
        """Price an upgrade and mark it pending. The limit is unchanged until applied."""
        require_vendor_access(caller, vendor_id)
        slots = validate_slots(additional_slots)
        intent = UpgradeIntent(
            vendor_id=vendor_id,
            additional_slots=slots,
            unit_price=self.upgrade_slot_price,
            amount=slots * self.upgrade_slot_price,
            reference=f"UPG-{uuid4().hex}",
            created_at=datetime.now(timezone.utc),
        )
        await self.vendor_repository.begin_upgrade(
            vendor_id, slots, intent.amount, intent.reference
        )
        logger.info(
            "Vendor %s requested %d extra slots (%s)",
            vendor_id,
            slots,
            intent.reference,
        )
        return UpgradeIntentDTO(**intent.model_dump())

    async def apply_upgrade(
        self, caller: Caller, vendor_id: UUID, additional_slots: int
    ) -> VendorResponseDTO:
        """Raise the limit once the upgrade payment has been reconciled."""
        require_admin(caller)
        slots = validate_slots(additional_slots)
        vendor = await self.vendor_repository.apply_upgrade(vendor_id, slots)
        logger.info(
            "Upgrade applied to vendor %s: limit now %d",
            vendor_id,
            vendor.customer_limit,
        )
        return VendorResponseDTO(**vendor.model_dump())
