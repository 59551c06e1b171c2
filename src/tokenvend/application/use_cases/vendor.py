"""Vendor administration and dashboard counters."""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from ...domain.entities import Caller, TERMINAL_STATUSES, TokenRequestStatus, Vendor
from ...domain.errors import NotFound
from ...domain.repositories import (
    ActivityRepository,
    CustomerRepository,
    TokenRepository,
    TokenRequestRepository,
    VendorRepository,
)
from ..dtos import (
    ActivityDTO,
    AdminDashboardDTO,
    CreateVendorDTO,
    VendorDashboardDTO,
    VendorResponseDTO,
)
from .access import require_admin, require_vendor_access

logger = logging.getLogger(__name__)


class VendorService:
    """Service for vendor onboarding and dashboards."""

    def __init__(
        self,
        vendor_repository: VendorRepository,
        customer_repository: CustomerRepository,
        token_request_repository: TokenRequestRepository,
        token_repository: TokenRepository,
        activity_repository: ActivityRepository,
        default_customer_limit: int,
    ):
        self.vendor_repository = vendor_repository
        self.customer_repository = customer_repository
        self.token_request_repository = token_request_repository
        self.token_repository = token_repository
        self.activity_repository = activity_repository
        self.default_customer_limit = default_customer_limit

    async def _get_vendor(self, vendor_id: UUID) -> Vendor:
        vendor = await self.vendor_repository.get_by_id(vendor_id)
        if vendor is None:
            raise NotFound(f"Vendor {vendor_id} not found")
        return vendor

    async def create_vendor(
        self, caller: Caller, dto: CreateVendorDTO
    ) -> VendorResponseDTO:
        require_admin(caller)
        vendor = Vendor(
            name=dto.name.strip(),
            email=dto.email.lower(),
            customer_limit=self.default_customer_limit,
        )
        created = await self.vendor_repository.create(vendor)
        logger.info("Vendor %s created (%s)", created.id, created.email)
        return VendorResponseDTO(**created.model_dump())

    async def approve_vendor(
        self, caller: Caller, vendor_id: UUID
    ) -> VendorResponseDTO:
        require_admin(caller)
        vendor = await self.vendor_repository.approve(vendor_id)
        logger.info("Vendor %s approved by %s", vendor_id, caller.id)
        return VendorResponseDTO(**vendor.model_dump())

    async def get_vendor(self, caller: Caller, vendor_id: UUID) -> VendorResponseDTO:
        require_vendor_access(caller, vendor_id)
        return VendorResponseDTO(**(await self._get_vendor(vendor_id)).model_dump())

    async def list_vendors(
        self,
        caller: Caller,
        approved: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[VendorResponseDTO]:
        require_admin(caller)
        vendors = await self.vendor_repository.get_all(
            approved=approved, skip=skip, limit=limit
        )
        return [VendorResponseDTO(**v.model_dump()) for v in vendors]

    async def vendor_dashboard(
        self, caller: Caller, vendor_id: UUID
    ) -> VendorDashboardDTO:
        require_vendor_access(caller, vendor_id)
        vendor = await self._get_vendor(vendor_id)
        counts = await self.token_request_repository.count_by_status(vendor_id)
        activities = await self.activity_repository.recent(vendor_id)
        return VendorDashboardDTO(
            vendor_id=vendor.id,
            customer_count=vendor.customer_count,
            customer_limit=vendor.customer_limit,
            issued_tokens=await self.token_repository.count_by_vendor(vendor_id),
            pending_requests=sum(
                n for status, n in counts.items() if status not in TERMINAL_STATUSES
            ),
            recent_activities=[
                ActivityDTO(**event.model_dump(exclude={"vendor_id", "version"}))
                for event in activities
            ],
        )

    async def admin_dashboard(self, caller: Caller) -> AdminDashboardDTO:
        require_admin(caller)
        counts = await self.token_request_repository.count_by_status()
        return AdminDashboardDTO(
            pending_vendors=await self.vendor_repository.count(approved=False),
            pending_verifications=(
                await self.customer_repository.count_pending_verification()
            ),
            awaiting_decision=counts[TokenRequestStatus.PAYMENT_CONFIRMED]
            + counts[TokenRequestStatus.ADMIN_APPROVED],
            requests_by_status=counts,
        )
