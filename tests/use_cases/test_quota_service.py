"""Use case tests for vendor quotas, registration and upgrades."""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from tokenvend.application.dtos import CreateVendorDTO, RegisterCustomerDTO
from tokenvend.domain.entities import Caller, CallerRole
from tokenvend.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFound,
    PermissionDeniedError,
    QuotaExceeded,
    ValidationError,
)
from tests.fixtures import VendingWorld


def registration(meter_number: str, disco: str = "IKEDC") -> RegisterCustomerDTO:
    return RegisterCustomerDTO(
        meter_number=meter_number, disco=disco, last_token="1234-5678-9012"
    )


async def test_registration_stops_at_limit(world: VendingWorld) -> None:
    vendor = await world.approved_vendor(customer_limit=10)
    for i in range(10):
        await world.quota.register_customer(
            vendor, vendor.id, registration(f"4507000000{i:02d}")
        )

    with pytest.raises(QuotaExceeded) as exc_info:
        await world.quota.register_customer(
            vendor, vendor.id, registration("45071111111")
        )

    assert exc_info.value.customer_count == 10
    assert exc_info.value.customer_limit == 10
    usage = await world.quota.get_usage(vendor, vendor.id)
    assert usage.customer_count == 10
    assert usage.remaining == 0
    assert usage.can_add_customer is False
    assert await world.quota.can_add_customer(vendor.id) is False


async def test_concurrent_registrations_never_exceed_limit(
    world: VendingWorld,
) -> None:
    vendor = await world.approved_vendor(customer_limit=5)

    results = await asyncio.gather(
        *(
            world.quota.register_customer(
                vendor, vendor.id, registration(f"550000000{i:02d}")
            )
            for i in range(12)
        ),
        return_exceptions=True,
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, QuotaExceeded)]
    assert len(succeeded) == 5
    assert len(rejected) == 7
    usage = await world.quota.get_usage(vendor, vendor.id)
    assert usage.customer_count == 5


async def test_duplicate_meter_consumes_no_slot(world: VendingWorld) -> None:
    vendor = await world.approved_vendor()
    other = await world.approved_vendor(email="other@example.com")
    await world.quota.register_customer(vendor, vendor.id, registration("45071234567"))

    with pytest.raises(ConflictError):
        await world.quota.register_customer(
            other, other.id, registration("45071234567")
        )

    assert (await world.quota.get_usage(other, other.id)).customer_count == 0
    # Same meter under a different disco is a different customer
    await world.quota.register_customer(
        other, other.id, registration("45071234567", disco="AEDC")
    )


async def test_unapproved_vendor_cannot_register(world: VendingWorld) -> None:
    vendor = await world.vendors.create_vendor(
        world.admin, CreateVendorDTO(name="New Shop", email="new@example.com")
    )
    caller = Caller(id=vendor.id, role=CallerRole.VENDOR)

    with pytest.raises(PermissionDeniedError, match="not approved"):
        await world.quota.register_customer(caller, vendor.id, registration("45071234567"))


async def test_vendor_cannot_register_for_another_vendor(
    world: VendingWorld,
) -> None:
    vendor = await world.approved_vendor()
    other = await world.approved_vendor(email="other@example.com")
    with pytest.raises(PermissionDeniedError):
        await world.quota.register_customer(vendor, other.id, registration("45071234567"))


async def test_registration_validates_input(world: VendingWorld) -> None:
    vendor = await world.approved_vendor()
    with pytest.raises(ValidationError):
        await world.quota.register_customer(vendor, vendor.id, registration("12"))
    with pytest.raises(ValidationError):
        await world.quota.register_customer(
            vendor, vendor.id, registration("45071234567", disco="NOPE")
        )


async def test_upgrade_round_trip(world: VendingWorld) -> None:
    vendor = await world.approved_vendor(customer_limit=1)
    await world.quota.register_customer(vendor, vendor.id, registration("45071234567"))

    intent = await world.quota.request_upgrade(vendor, vendor.id, 3)

    assert intent.amount == 3 * 5000
    assert intent.reference.startswith("UPG-")
    usage = await world.quota.get_usage(vendor, vendor.id)
    assert usage.customer_limit == 1
    assert usage.pending_upgrade is True
    assert usage.pending_upgrade_reference == intent.reference

    with pytest.raises(InvalidStateError):
        await world.quota.request_upgrade(vendor, vendor.id, 2)

    with pytest.raises(PermissionDeniedError):
        await world.quota.apply_upgrade(vendor, vendor.id, 3)
    with pytest.raises(ValidationError):
        await world.quota.apply_upgrade(world.admin, vendor.id, 4)

    upgraded = await world.quota.apply_upgrade(world.admin, vendor.id, 3)

    assert upgraded.customer_limit == 4
    assert upgraded.pending_upgrade is False
    assert upgraded.pending_upgrade_reference is None
    await world.quota.register_customer(vendor, vendor.id, registration("45079999999"))


async def test_apply_upgrade_without_intent(world: VendingWorld) -> None:
    vendor = await world.approved_vendor()
    with pytest.raises(InvalidStateError, match="no pending upgrade"):
        await world.quota.apply_upgrade(world.admin, vendor.id, 5)
    with pytest.raises(NotFound):
        await world.quota.apply_upgrade(world.admin, uuid4(), 5)


async def test_list_customers_masks_unverified_keys(world: VendingWorld) -> None:
    vendor = await world.approved_vendor()
    first = await world.quota.register_customer(
        vendor, vendor.id, registration("45071234567")
    )
    second = await world.quota.register_customer(
        vendor, vendor.id, registration("45071234568")
    )

    customers = await world.quota.list_customers(vendor, vendor.id)

    assert {c.id for c in customers} == {first.id, second.id}
    assert customers[0].verification.is_verified is False
    assert customers[0].verification.MSN is None
