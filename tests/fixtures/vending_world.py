"""Every service wired over one in-memory store, for use case tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from tokenvend.application.dtos import (
    CreateVendorDTO,
    CustomerResponseDTO,
    RegisterCustomerDTO,
    SubmitVerificationDTO,
)
from tokenvend.application.use_cases.ledger import TokenLedgerService
from tokenvend.application.use_cases.pricing import PricingService
from tokenvend.application.use_cases.quota import VendorQuotaService
from tokenvend.application.use_cases.token_request import (
    BankDetails,
    TokenRequestService,
)
from tokenvend.application.use_cases.vendor import VendorService
from tokenvend.application.use_cases.verification import VerificationService
from tokenvend.domain.entities import Caller, CallerRole
from tokenvend.domain.events import TokenRequestEvent

from .in_memory_repositories import (
    InMemoryActivityRepository,
    InMemoryCustomerRepository,
    InMemoryPricingRepository,
    InMemoryTokenRepository,
    InMemoryTokenRequestRepository,
    InMemoryVendorRepository,
)
from .in_memory_storage import InMemoryKeyValueStore
from .stub_payment_gateway import StubPaymentGateway

DISCOS = ["ABA", "IKEDC", "IBEDC", "AEDC", "BEDC", "EEDC"]

VALID_KEYS = {
    "KRN": "1",
    "SGC": "600675",
    "TI": "01",
    "MSN": "45071234567",
    "MTK1": "0123456789ABCDEF",
    "MTK2": "FEDCBA9876543210",
    "RTK1": "00112233",
    "RTK2": "44556677",
}

VALID_TOKEN = "1234-5678-9012-3456-7890"


@dataclass
class VendingWorld:
    store: InMemoryKeyValueStore
    gateway: StubPaymentGateway
    vendors: VendorService
    quota: VendorQuotaService
    verification: VerificationService
    pricing: PricingService
    ledger: TokenLedgerService
    requests: TokenRequestService
    activity: InMemoryActivityRepository
    admin: Caller
    events: List[TokenRequestEvent] = field(default_factory=list)

    async def approved_vendor(
        self, email: str = "shop@example.com", customer_limit: int = 1000
    ) -> Caller:
        self.vendors.default_customer_limit = customer_limit
        vendor = await self.vendors.create_vendor(
            self.admin, CreateVendorDTO(name="Power Shop", email=email)
        )
        await self.vendors.approve_vendor(self.admin, vendor.id)
        return Caller(id=vendor.id, role=CallerRole.VENDOR)

    async def customer(
        self,
        vendor: Caller,
        meter_number: str = "45071234567",
        disco: str = "IKEDC",
        verified: bool = True,
    ) -> CustomerResponseDTO:
        customer = await self.quota.register_customer(
            vendor,
            vendor.id,
            RegisterCustomerDTO(
                meter_number=meter_number, disco=disco, last_token="12345678901234"
            ),
        )
        if verified:
            await self.verification.submit_verification(
                self.admin, customer.id, SubmitVerificationDTO(**VALID_KEYS)
            )
        return customer


def build_world(
    store: InMemoryKeyValueStore, gateway: StubPaymentGateway, admin: Caller
) -> VendingWorld:
    vendor_repository = InMemoryVendorRepository(store)
    customer_repository = InMemoryCustomerRepository(store)
    pricing_repository = InMemoryPricingRepository(store)
    token_request_repository = InMemoryTokenRequestRepository(store)
    token_repository = InMemoryTokenRepository(store)
    activity = InMemoryActivityRepository(store)

    verification = VerificationService(customer_repository, DISCOS)
    pricing = PricingService(pricing_repository, DISCOS)
    ledger = TokenLedgerService(token_repository, customer_repository)
    events: List[TokenRequestEvent] = []

    async def record_event(event: TokenRequestEvent) -> None:
        events.append(event)

    requests = TokenRequestService(
        token_request_repository=token_request_repository,
        vendor_repository=vendor_repository,
        customer_repository=customer_repository,
        pricing_service=pricing,
        verification_service=verification,
        ledger_service=ledger,
        payment_gateway=gateway,
        bank_details=BankDetails("First Bank", "3012345678", "TokenVend Ltd"),
        discos=DISCOS,
        max_units_per_request=10_000,
        listeners=[record_event, activity.record],
    )
    return VendingWorld(
        store=store,
        gateway=gateway,
        vendors=VendorService(
            vendor_repository,
            customer_repository,
            token_request_repository,
            token_repository,
            activity,
            default_customer_limit=1000,
        ),
        quota=VendorQuotaService(
            vendor_repository,
            customer_repository,
            discos=DISCOS,
            upgrade_slot_price=5000,
        ),
        verification=verification,
        pricing=pricing,
        ledger=ledger,
        requests=requests,
        activity=activity,
        admin=admin,
        events=events,
    )
