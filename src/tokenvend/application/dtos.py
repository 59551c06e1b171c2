"""Data Transfer Objects for the token vending application layer."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..domain.entities import (
    Customer,
    PaymentMethod,
    TokenRequestStatus,
    Verification,
)
from ..domain.shared.serializers import CommonSerializersMixin


# Vendors


class CreateVendorDTO(BaseModel):
    """DTO for creating a vendor."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Lekki Power Shop", "email": "ops@lekkipower.ng"}
        }
    )

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., max_length=100)


class VendorResponseDTO(CommonSerializersMixin, BaseModel):
    """DTO for returning vendor data."""

    id: UUID
    name: str
    email: EmailStr
    approved: bool
    approved_at: Optional[datetime]
    customer_limit: int
    customer_count: int
    pending_upgrade: bool
    pending_upgrade_slots: Optional[int]
    pending_upgrade_amount: Optional[int]
    pending_upgrade_reference: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]


class VendorUsageDTO(CommonSerializersMixin, BaseModel):
    """Customer-slot usage of one vendor."""

    vendor_id: UUID
    customer_limit: int
    customer_count: int
    remaining: int
    can_add_customer: bool
    pending_upgrade: bool
    pending_upgrade_slots: Optional[int] = None
    pending_upgrade_amount: Optional[int] = None
    pending_upgrade_reference: Optional[str] = None


class UpgradeSlotsDTO(BaseModel):
    """DTO for requesting or applying a quota upgrade."""

    additional_slots: int = Field(..., gt=0)


class UpgradeIntentDTO(CommonSerializersMixin, BaseModel):
    vendor_id: UUID
    additional_slots: int
    unit_price: int
    amount: int
    reference: str
    created_at: datetime


# Customers and verification


class RegisterCustomerDTO(BaseModel):
    """DTO for registering a customer under a vendor."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "meter_number": "45071234567",
                "disco": "IKEDC",
                "name": "Ada Obi",
                "last_token": "1234-5678-9012-3456-7890",
            }
        }
    )

    meter_number: str = Field(..., min_length=1, max_length=32)
    disco: str = Field(..., min_length=1, max_length=16)
    name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    last_token: str = Field(..., min_length=1, max_length=64)


class VerificationResponseDTO(CommonSerializersMixin, BaseModel):
    """Verification status. Key fields are only populated once verified."""

    is_verified: bool
    rejected: bool
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    KRN: Optional[str] = None
    SGC: Optional[str] = None
    TI: Optional[str] = None
    MSN: Optional[str] = None
    MTK1: Optional[str] = None
    MTK2: Optional[str] = None
    RTK1: Optional[str] = None
    RTK2: Optional[str] = None

    @classmethod
    def from_entity(cls, verification: Verification) -> "VerificationResponseDTO":
        data = verification.model_dump()
        if not verification.is_verified:
            data.update({name: None for name in verification.key_material()})
        return cls(**data)


class CustomerResponseDTO(CommonSerializersMixin, BaseModel):
    """DTO for returning customer data."""

    id: UUID
    vendor_id: UUID
    meter_number: str
    disco: str
    name: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    verification: VerificationResponseDTO
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, customer: Customer) -> "CustomerResponseDTO":
        return cls(
            id=customer.id,
            vendor_id=customer.vendor_id,
            meter_number=customer.meter_number,
            disco=customer.disco,
            name=customer.name,
            address=customer.address,
            phone=customer.phone,
            verification=VerificationResponseDTO.from_entity(customer.verification),
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )


class SubmitVerificationDTO(BaseModel):
    """The eight utility key fields for one meter."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "KRN": "1",
                "SGC": "600675",
                "TI": "01",
                "MSN": "45071234567",
                "MTK1": "0123456789ABCDEF",
                "MTK2": "FEDCBA9876543210",
                "RTK1": "00112233",
                "RTK2": "44556677",
            }
        }
    )

    KRN: str = ""
    SGC: str = ""
    TI: str = ""
    MSN: str = ""
    MTK1: str = ""
    MTK2: str = ""
    RTK1: str = ""
    RTK2: str = ""


class RejectionDTO(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# Pricing


class SetPriceDTO(BaseModel):
    """Price per unit in minor currency units (kobo)."""

    price_per_unit: int = Field(..., ge=0)


class PricingResponseDTO(CommonSerializersMixin, BaseModel):
    disco: str
    price_per_unit: int
    updated_at: Optional[datetime]
    updated_by: Optional[UUID]


# Token requests


class CreateTokenRequestDTO(BaseModel):
    """DTO for creating a token request.

    ``vendor_id`` defaults to the calling vendor; admins must set it.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"meter_number": "45071234567", "disco": "IKEDC", "units": 50}
        }
    )

    meter_number: str = Field(..., min_length=1, max_length=32)
    disco: str = Field(..., min_length=1, max_length=16)
    units: int
    vendor_id: Optional[UUID] = None


class TokenRequestResponseDTO(CommonSerializersMixin, BaseModel):
    """DTO for returning token request data."""

    id: UUID
    vendor_id: UUID
    customer_id: UUID
    meter_number: str
    disco: str
    units: int
    price_per_unit: int
    amount: int
    payment_method: Optional[PaymentMethod]
    payment_reference: Optional[str]
    status: TokenRequestStatus
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
    payment_selected_at: Optional[datetime]
    paid_at: Optional[datetime]
    decided_at: Optional[datetime]
    decided_by: Optional[UUID]
    rejection_reason: Optional[str]
    cancelled_at: Optional[datetime]
    issued_at: Optional[datetime]
    token_id: Optional[UUID]


class SelectPaymentMethodDTO(BaseModel):
    method: PaymentMethod


class PaymentInstructionsDTO(BaseModel):
    """What the vendor needs to complete payment for a request."""

    request: TokenRequestResponseDTO
    method: PaymentMethod
    reference: str
    amount: int
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_account_name: Optional[str] = None


class ConfirmPaymentDTO(BaseModel):
    reference: str = Field(..., max_length=128)


class IssueTokenDTO(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={"example": {"token_value": "1234-5678-9012-3456-7890"}}
    )

    token_value: str = Field(..., max_length=128)


class GatewayCancellationDTO(BaseModel):
    reference: str = Field(..., min_length=1, max_length=128)


# Tokens


class TokenResponseDTO(CommonSerializersMixin, BaseModel):
    """DTO for returning an issued token."""

    id: UUID
    token_request_id: UUID
    vendor_id: UUID
    meter_number: str
    disco: str
    units: int
    amount: int
    value: str
    meter_serial: Optional[str]
    issued_at: datetime
    issued_by: UUID


class IssuanceResultDTO(BaseModel):
    """Outcome of an issuance call; ``already_issued`` marks an idempotent repeat."""

    token: TokenResponseDTO
    already_issued: bool = False


class TokenPageDTO(BaseModel):
    items: List[TokenResponseDTO]
    page: int
    page_size: int
    total: int


# Dashboards


class ActivityDTO(CommonSerializersMixin, BaseModel):
    """One entry of a vendor's recent activity feed."""

    event: str
    request_id: UUID
    from_status: Optional[TokenRequestStatus] = None
    to_status: TokenRequestStatus
    token_id: Optional[UUID] = None
    created_at: datetime


class VendorDashboardDTO(CommonSerializersMixin, BaseModel):
    vendor_id: UUID
    customer_count: int
    customer_limit: int
    issued_tokens: int
    pending_requests: int
    recent_activities: List[ActivityDTO] = Field(default_factory=list)


class AdminDashboardDTO(BaseModel):
    pending_vendors: int
    pending_verifications: int
    awaiting_decision: int
    requests_by_status: Dict[TokenRequestStatus, int]
