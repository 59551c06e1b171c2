"""Role and ownership checks shared by the services."""

from __future__ import annotations

from typing import List
from uuid import UUID

from ...domain.entities import Caller, Customer
from ...domain.errors import PermissionDeniedError
from ...domain.repositories import CustomerRepository


def require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise PermissionDeniedError("This operation is restricted to administrators")


def require_vendor_access(caller: Caller, vendor_id: UUID) -> None:
    """Admins may act on any vendor; vendors only on themselves."""
    if caller.is_admin:
        return
    if caller.id != vendor_id:
        raise PermissionDeniedError("Vendors may only act on their own records")


async def meter_registrations_for(
    caller: Caller, customer_repository: CustomerRepository, meter_number: str
) -> List[Customer]:
    """Registrations of ``meter_number`` the caller may read.

    Admins see every registration. A vendor sees only its own and is refused
    outright when the meter is registered solely by other vendors.
    """
    registrations = await customer_repository.find_by_meter(meter_number)
    if caller.is_admin:
        return registrations
    owned = [c for c in registrations if c.vendor_id == caller.id]
    if registrations and not owned:
        raise PermissionDeniedError("Vendors may only act on their own records")
    return owned
