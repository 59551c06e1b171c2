"""Test fixtures for in-memory implementations."""

from .in_memory_storage import InMemoryKeyValueStore
from .in_memory_repositories import (
    InMemoryActivityRepository,
    InMemoryCustomerRepository,
    InMemoryPricingRepository,
    InMemoryTokenRepository,
    InMemoryTokenRequestRepository,
    InMemoryVendorRepository,
    register_all_scripts,
)
from .stub_payment_gateway import StubPaymentGateway
from .vending_world import VALID_KEYS, VALID_TOKEN, VendingWorld, build_world

__all__ = [
    "InMemoryActivityRepository",
    "InMemoryCustomerRepository",
    "InMemoryKeyValueStore",
    "InMemoryPricingRepository",
    "InMemoryTokenRepository",
    "InMemoryTokenRequestRepository",
    "InMemoryVendorRepository",
    "StubPaymentGateway",
    "VALID_KEYS",
    "VALID_TOKEN",
    "VendingWorld",
    "build_world",
    "register_all_scripts",
]
