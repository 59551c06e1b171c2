"""Vendor repository implementation over a storage abstraction."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from ..domain.entities import Vendor
from ..domain.errors import ConflictError, InvalidStateError, NotFound, ValidationError
from ..domain.repositories import VendorRepository
from .scripts import parse_script_result
from .storage import KeyValueStore


class VendorRepositoryImpl(VendorRepository):
    """Vendor repository using a KeyValueStore.

    Mutations go through Lua scripts that patch the stored document in place,
    since ``customer_count`` is incremented server-side by customer
    registration.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _vendor_key(vendor_id: UUID) -> str:
        return f"vendor:{vendor_id}"

    @staticmethod
    def _email_key(email: str) -> str:
        return f"vendor:email:{email.lower()}"

    @staticmethod
    def _index_key(approved: Optional[bool]) -> str:
        if approved is None:
            return "vendors:all"
        return "vendors:approved" if approved else "vendors:pending"

    async def create(self, vendor: Vendor) -> Vendor:
        result = await self.store.run_script(
            "create_vendor",
            keys=[
                self._vendor_key(vendor.id),
                self._email_key(str(vendor.email)),
                self._index_key(None),
                self._index_key(False),
            ],
            args=[
                vendor.model_dump_json(),
                str(vendor.id),
                str(vendor.created_at.timestamp()),
            ],
        )
        code, _ = parse_script_result(result)
        if code == 4:
            raise ConflictError(f"A vendor with email {vendor.email} already exists")
        return vendor

    async def get_by_id(self, vendor_id: UUID) -> Optional[Vendor]:
        data = await self.store.get(self._vendor_key(vendor_id))
        if not data:
            return None
        return Vendor.model_validate_json(data)

    async def get_all(
        self, approved: Optional[bool] = None, skip: int = 0, limit: int = 100
    ) -> List[Vendor]:
        ids: list[str] = await self.store.zrevrange(
            self._index_key(approved), skip, skip + limit - 1
        )
        raw = await self.store.mget([f"vendor:{vendor_id}" for vendor_id in ids])
        return [Vendor.model_validate_json(data) for data in raw if data]

    async def count(self, approved: Optional[bool] = None) -> int:
        return await self.store.zcard(self._index_key(approved))

    async def approve(self, vendor_id: UUID) -> Vendor:
        vendor = await self.get_by_id(vendor_id)
        if vendor is None:
            raise NotFound(f"Vendor {vendor_id} not found")
        result = await self.store.run_script(
            "approve_vendor",
            keys=[
                self._vendor_key(vendor_id),
                self._index_key(False),
                self._index_key(True),
            ],
            args=[
                datetime.now(timezone.utc).isoformat(),
                str(vendor_id),
                str(vendor.created_at.timestamp()),
            ],
        )
        code, payload = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Vendor {vendor_id} not found")
        if code == 4:
            raise InvalidStateError(f"Vendor {vendor_id} is already approved")
        assert payload is not None
        return Vendor.model_validate_json(payload)

    async def begin_upgrade(
        self, vendor_id: UUID, slots: int, amount: int, reference: str
    ) -> Vendor:
        result = await self.store.run_script(
            "begin_vendor_upgrade",
            keys=[self._vendor_key(vendor_id)],
            args=[
                str(slots),
                str(amount),
                reference,
                datetime.now(timezone.utc).isoformat(),
            ],
        )
        code, payload = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Vendor {vendor_id} not found")
        if code == 4:
            raise InvalidStateError(
                f"Vendor {vendor_id} already has an upgrade awaiting payment"
            )
        assert payload is not None
        return Vendor.model_validate_json(payload)

    async def apply_upgrade(self, vendor_id: UUID, slots: int) -> Vendor:
        result = await self.store.run_script(
            "apply_vendor_upgrade",
            keys=[self._vendor_key(vendor_id)],
            args=[str(slots), datetime.now(timezone.utc).isoformat()],
        )
        code, payload = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Vendor {vendor_id} not found")
        if code == 5:
            raise InvalidStateError(f"Vendor {vendor_id} has no pending upgrade")
        if code == 6:
            assert payload is not None
            pending = Vendor.model_validate_json(payload).pending_upgrade_slots
            raise ValidationError(
                f"Upgrade is for {pending} slots, not {slots}"
            )
        assert payload is not None
        return Vendor.model_validate_json(payload)
