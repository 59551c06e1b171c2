"""FastAPI dependencies for the token vending API."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Depends, Header

from ..application.use_cases.ledger import TokenLedgerService
from ..application.use_cases.pricing import PricingService
from ..application.use_cases.quota import VendorQuotaService
from ..application.use_cases.token_request import BankDetails, TokenRequestService
from ..application.use_cases.vendor import VendorService
from ..application.use_cases.verification import VerificationService
from ..domain.entities import Caller, CallerRole
from ..domain.repositories import (
    ActivityRepository,
    CustomerRepository,
    PricingRepository,
    TokenRepository,
    TokenRequestRepository,
    VendorRepository,
)
from ..domain.shared.payment_gateway_protocol import PaymentGatewayProtocol
from ..env import Settings, get_settings
from ..infrastructure.activity_repository_impl import ActivityRepositoryImpl
from ..infrastructure.customer_repository_impl import CustomerRepositoryImpl
from ..infrastructure.database import DatabaseClient, get_database_client
from ..infrastructure.event_publisher import RedisEventPublisher
from ..infrastructure.payment_gateway_client import PaymentGatewayClient
from ..infrastructure.pricing_repository_impl import PricingRepositoryImpl
from ..infrastructure.storage import KeyValueStore, RedisKeyValueStore
from ..infrastructure.token_repository_impl import TokenRepositoryImpl
from ..infrastructure.token_request_repository_impl import TokenRequestRepositoryImpl
from ..infrastructure.vendor_repository_impl import VendorRepositoryImpl


def get_caller(
    x_caller_id: UUID = Header(..., description="Resolved caller identity"),
    x_caller_role: CallerRole = Header(..., description="vendor or admin"),
) -> Caller:
    """Caller identity as resolved by the authenticating transport layer."""
    return Caller(id=x_caller_id, role=x_caller_role)


def get_database_client_with_settings(
    settings: Settings = Depends(get_settings),
) -> DatabaseClient:
    """Get database client with settings."""
    return get_database_client(settings)


def get_key_value_store(
    db_client: DatabaseClient = Depends(get_database_client_with_settings),
) -> KeyValueStore:
    """Get key-value store."""
    return RedisKeyValueStore(db_client)


# Global payment gateway client instance
_payment_gateway: Optional[PaymentGatewayClient] = None


def get_payment_gateway(
    settings: Settings = Depends(get_settings),
) -> PaymentGatewayProtocol:
    """Get or create the payment gateway client singleton."""
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = PaymentGatewayClient(
            base_url=settings.payment_gateway_base_url,
            secret_key=settings.payment_gateway_secret_key,
            timeout=settings.payment_gateway_timeout,
        )
    return _payment_gateway


async def close_payment_gateway() -> None:
    global _payment_gateway
    if _payment_gateway is not None:
        await _payment_gateway.aclose()
        _payment_gateway = None


def get_vendor_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> VendorRepository:
    return VendorRepositoryImpl(store)


def get_customer_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> CustomerRepository:
    return CustomerRepositoryImpl(store)


def get_pricing_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> PricingRepository:
    return PricingRepositoryImpl(store)


def get_token_request_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> TokenRequestRepository:
    return TokenRequestRepositoryImpl(store)


def get_token_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> TokenRepository:
    return TokenRepositoryImpl(store)


def get_activity_repository(
    store: KeyValueStore = Depends(get_key_value_store),
    settings: Settings = Depends(get_settings),
) -> ActivityRepository:
    return ActivityRepositoryImpl(store, capacity=settings.activity_feed_size)


def get_verification_service(
    customer_repository: CustomerRepository = Depends(get_customer_repository),
    settings: Settings = Depends(get_settings),
) -> VerificationService:
    """Get verification service."""
    return VerificationService(customer_repository, settings.discos)


def get_pricing_service(
    pricing_repository: PricingRepository = Depends(get_pricing_repository),
    settings: Settings = Depends(get_settings),
) -> PricingService:
    """Get pricing service."""
    return PricingService(pricing_repository, settings.discos)


def get_quota_service(
    vendor_repository: VendorRepository = Depends(get_vendor_repository),
    customer_repository: CustomerRepository = Depends(get_customer_repository),
    settings: Settings = Depends(get_settings),
) -> VendorQuotaService:
    """Get vendor quota service."""
    return VendorQuotaService(
        vendor_repository,
        customer_repository,
        discos=settings.discos,
        upgrade_slot_price=settings.upgrade_slot_price,
    )


def get_ledger_service(
    token_repository: TokenRepository = Depends(get_token_repository),
    customer_repository: CustomerRepository = Depends(get_customer_repository),
) -> TokenLedgerService:
    """Get token ledger service."""
    return TokenLedgerService(token_repository, customer_repository)


def get_vendor_service(
    vendor_repository: VendorRepository = Depends(get_vendor_repository),
    customer_repository: CustomerRepository = Depends(get_customer_repository),
    token_request_repository: TokenRequestRepository = Depends(
        get_token_request_repository
    ),
    token_repository: TokenRepository = Depends(get_token_repository),
    activity_repository: ActivityRepository = Depends(get_activity_repository),
    settings: Settings = Depends(get_settings),
) -> VendorService:
    """Get vendor service."""
    return VendorService(
        vendor_repository,
        customer_repository,
        token_request_repository,
        token_repository,
        activity_repository,
        default_customer_limit=settings.default_customer_limit,
    )


def get_token_request_service(
    token_request_repository: TokenRequestRepository = Depends(
        get_token_request_repository
    ),
    vendor_repository: VendorRepository = Depends(get_vendor_repository),
    customer_repository: CustomerRepository = Depends(get_customer_repository),
    pricing_service: PricingService = Depends(get_pricing_service),
    verification_service: VerificationService = Depends(get_verification_service),
    ledger_service: TokenLedgerService = Depends(get_ledger_service),
    payment_gateway: PaymentGatewayProtocol = Depends(get_payment_gateway),
    activity_repository: ActivityRepository = Depends(get_activity_repository),
    store: KeyValueStore = Depends(get_key_value_store),
    settings: Settings = Depends(get_settings),
) -> TokenRequestService:
    """Get token request service with the pub/sub publisher and activity feed."""
    return TokenRequestService(
        token_request_repository=token_request_repository,
        vendor_repository=vendor_repository,
        customer_repository=customer_repository,
        pricing_service=pricing_service,
        verification_service=verification_service,
        ledger_service=ledger_service,
        payment_gateway=payment_gateway,
        bank_details=BankDetails(
            settings.bank_name,
            settings.bank_account_number,
            settings.bank_account_name,
        ),
        discos=settings.discos,
        max_units_per_request=settings.max_units_per_request,
        listeners=[
            RedisEventPublisher(store, settings.events_channel),
            activity_repository.record,
        ],
    )
