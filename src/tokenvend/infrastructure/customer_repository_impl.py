"""Customer repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from ..domain.entities import Customer, Vendor
from ..domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFound,
    PermissionDeniedError,
    QuotaExceeded,
)
from ..domain.repositories import CustomerRepository
from .scripts import parse_script_result
from .storage import KeyValueStore


def verification_state(customer: Customer) -> str:
    if customer.verification.is_verified:
        return "verified"
    if customer.verification.rejected:
        return "rejected"
    return "pending"


class CustomerRepositoryImpl(CustomerRepository):
    """Customer repository using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _customer_key(customer_id: UUID) -> str:
        return f"customer:{customer_id}"

    @staticmethod
    def _meter_key(meter_number: str, disco: str) -> str:
        return f"customer:disco:{disco}:meter:{meter_number}"

    @staticmethod
    def _verification_index(state: str) -> str:
        return f"customers:verification:{state}"

    async def _load_many(self, ids: List[str]) -> List[Customer]:
        raw = await self.store.mget([f"customer:{customer_id}" for customer_id in ids])
        return [Customer.model_validate_json(data) for data in raw if data]

    async def register(self, customer: Customer) -> Vendor:
        result = await self.store.run_script(
            "register_customer",
            keys=[
                f"vendor:{customer.vendor_id}",
                self._meter_key(customer.meter_number, customer.disco),
                self._customer_key(customer.id),
                f"vendor:{customer.vendor_id}:customers",
                "customers:all",
                self._verification_index("pending"),
                f"customers:meter:{customer.meter_number}",
            ],
            args=[
                customer.model_dump_json(),
                str(customer.id),
                str(customer.created_at.timestamp()),
                customer.created_at.isoformat(),
            ],
        )
        code, payload = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Vendor {customer.vendor_id} not found")
        if code == 5:
            raise PermissionDeniedError(
                f"Vendor {customer.vendor_id} is not approved to register customers"
            )
        if code == 4:
            raise ConflictError(
                f"Meter {customer.meter_number} is already registered with "
                f"{customer.disco}"
            )
        assert payload is not None
        vendor = Vendor.model_validate_json(payload)
        if code == 3:
            raise QuotaExceeded(vendor.id, vendor.customer_count, vendor.customer_limit)
        return vendor

    async def get_by_id(self, customer_id: UUID) -> Optional[Customer]:
        data = await self.store.get(self._customer_key(customer_id))
        if not data:
            return None
        return Customer.model_validate_json(data)

    async def get_by_meter(self, meter_number: str, disco: str) -> Optional[Customer]:
        customer_id = await self.store.get(self._meter_key(meter_number, disco))
        if not customer_id:
            return None
        return await self.get_by_id(UUID(customer_id))

    async def find_by_meter(self, meter_number: str) -> List[Customer]:
        ids = await self.store.zrevrange(f"customers:meter:{meter_number}", 0, -1)
        return await self._load_many(ids)

    async def list_by_vendor(
        self, vendor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[Customer]:
        ids = await self.store.zrevrange(
            f"vendor:{vendor_id}:customers", skip, skip + limit - 1
        )
        return await self._load_many(ids)

    async def get_all(
        self, verified: Optional[bool] = None, skip: int = 0, limit: int = 100
    ) -> List[Customer]:
        if verified is None:
            index = "customers:all"
        elif verified:
            index = self._verification_index("verified")
        else:
            index = self._verification_index("pending")
        ids = await self.store.zrevrange(index, skip, skip + limit - 1)
        return await self._load_many(ids)

    async def count_pending_verification(self) -> int:
        return await self.store.zcard(self._verification_index("pending"))

    async def update(self, customer: Customer, expected_version: int) -> Customer:
        current = await self.get_by_id(customer.id)
        if current is None:
            raise NotFound(f"Customer {customer.id} not found")
        updated = customer.model_copy(update={"version": expected_version + 1})
        result = await self.store.run_script(
            "update_customer",
            keys=[
                self._customer_key(customer.id),
                self._verification_index(verification_state(current)),
                self._verification_index(verification_state(updated)),
            ],
            args=[
                str(expected_version),
                updated.model_dump_json(),
                str(customer.id),
                str(customer.created_at.timestamp()),
            ],
        )
        code, _ = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Customer {customer.id} not found")
        if code == 0:
            raise InvalidStateError(
                f"Customer {customer.id} was modified concurrently; reload and retry"
            )
        return updated
