"""Domain entities: Vendor, Customer, Verification, DiscoPricing, TokenRequest, Token."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .errors import InvalidStateError
from .shared.serializers import CommonSerializersMixin


def _now() -> datetime:
    return datetime.now(timezone.utc)


KEY_MATERIAL_FIELDS: Tuple[str, ...] = (
    "KRN",
    "SGC",
    "TI",
    "MSN",
    "MTK1",
    "MTK2",
    "RTK1",
    "RTK2",
)


class CallerRole(str, Enum):
    VENDOR = "vendor"
    ADMIN = "admin"


class Caller(BaseModel):
    """Identity and role of whoever is invoking an operation."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: CallerRole

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN


class TokenRequestStatus(str, Enum):
    INITIATED = "initiated"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_CONFIRMED = "payment_confirmed"
    ADMIN_APPROVED = "admin_approved"
    ISSUED = "issued"
    ADMIN_REJECTED = "admin_rejected"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: FrozenSet[TokenRequestStatus] = frozenset(
    {
        TokenRequestStatus.ISSUED,
        TokenRequestStatus.ADMIN_REJECTED,
        TokenRequestStatus.CANCELLED,
    }
)

# event -> (allowed source states, target state)
TRANSITIONS: Dict[str, Tuple[FrozenSet[TokenRequestStatus], TokenRequestStatus]] = {
    "select_payment_method": (
        frozenset({TokenRequestStatus.INITIATED}),
        TokenRequestStatus.PAYMENT_PENDING,
    ),
    "confirm_payment": (
        frozenset({TokenRequestStatus.PAYMENT_PENDING}),
        TokenRequestStatus.PAYMENT_CONFIRMED,
    ),
    "cancel": (
        frozenset(
            {
                TokenRequestStatus.INITIATED,
                TokenRequestStatus.PAYMENT_PENDING,
                TokenRequestStatus.PAYMENT_CONFIRMED,
            }
        ),
        TokenRequestStatus.CANCELLED,
    ),
    "admin_approve": (
        frozenset({TokenRequestStatus.PAYMENT_CONFIRMED}),
        TokenRequestStatus.ADMIN_APPROVED,
    ),
    "admin_reject": (
        frozenset(
            {
                TokenRequestStatus.PAYMENT_CONFIRMED,
                TokenRequestStatus.ADMIN_APPROVED,
            }
        ),
        TokenRequestStatus.ADMIN_REJECTED,
    ),
    "issue": (
        frozenset({TokenRequestStatus.ADMIN_APPROVED}),
        TokenRequestStatus.ISSUED,
    ),
}


class PaymentMethod(str, Enum):
    GATEWAY = "gateway"
    BANK_TRANSFER = "bank_transfer"


class Vendor(CommonSerializersMixin, BaseModel):
    """A business that sells tokens to its own customers."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., max_length=100)
    approved: bool = False
    approved_at: Optional[datetime] = None
    customer_limit: int = Field(default=1000, ge=0)
    customer_count: int = Field(default=0, ge=0)
    pending_upgrade: bool = False
    pending_upgrade_slots: Optional[int] = None
    pending_upgrade_amount: Optional[int] = None
    pending_upgrade_reference: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

    @property
    def remaining_slots(self) -> int:
        return max(self.customer_limit - self.customer_count, 0)

    def can_add_customer(self) -> bool:
        return self.customer_count < self.customer_limit


class Verification(CommonSerializersMixin, BaseModel):
    """Utility key material and verification status of one customer's meter."""

    is_verified: bool = False
    rejected: bool = False
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

    @model_validator(mode="after")
    def _check_consistency(self) -> "Verification":
        if self.is_verified and self.rejected:
            raise ValueError("A verification cannot be both verified and rejected")
        if self.is_verified:
            missing = [
                name
                for name in KEY_MATERIAL_FIELDS
                if not (getattr(self, name) or "").strip()
            ]
            if missing:
                raise ValueError(
                    f"Verified meters need all key fields; missing {', '.join(missing)}"
                )
        return self

    def key_material(self) -> Dict[str, Optional[str]]:
        return {name: getattr(self, name) for name in KEY_MATERIAL_FIELDS}


class Customer(CommonSerializersMixin, BaseModel):
    """A meter owner registered by exactly one vendor."""

    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    meter_number: str
    disco: str
    name: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    last_token: str
    verification: Verification = Field(default_factory=Verification)
    version: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None

    def submit_verification(self, fields: Dict[str, str]) -> None:
        """Attach key material and mark the meter verified.

        Clears any earlier rejection. There is no re-verification.
        """
        if self.verification.is_verified:
            raise InvalidStateError(f"Customer {self.id} is already verified")
        now = _now()
        self.verification = Verification(
            is_verified=True,
            verified_at=now,
            **{name: fields[name].strip() for name in KEY_MATERIAL_FIELDS},
        )
        self.updated_at = now

    def reject_verification(self, reason: str) -> None:
        if self.verification.is_verified:
            raise InvalidStateError(f"Customer {self.id} is already verified")
        now = _now()
        self.verification = self.verification.model_copy(
            update={
                "rejected": True,
                "rejection_reason": reason,
                "rejected_at": now,
            }
        )
        self.updated_at = now


class DiscoPricing(CommonSerializersMixin, BaseModel):
    """Price per unit, in minor currency units, for one distribution company."""

    disco: str
    price_per_unit: int = Field(..., ge=0)
    updated_at: Optional[datetime] = None
    updated_by: Optional[UUID] = None


class UpgradeIntent(CommonSerializersMixin, BaseModel):
    """A priced request for additional customer slots, awaiting payment."""

    vendor_id: UUID
    additional_slots: int = Field(..., gt=0)
    unit_price: int
    amount: int
    reference: str
    created_at: datetime = Field(default_factory=_now)


class TokenRequest(CommonSerializersMixin, BaseModel):
    """A vendor's request to purchase units for one customer's meter."""

    id: UUID = Field(default_factory=uuid4)
    vendor_id: UUID
    customer_id: UUID
    meter_number: str
    disco: str
    units: int = Field(..., gt=0)
    price_per_unit: int = Field(..., ge=0)
    amount: int = Field(..., ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = None
    status: TokenRequestStatus = TokenRequestStatus.INITIATED
    version: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: Optional[datetime] = None
    payment_selected_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    token_id: Optional[UUID] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _advance(self, event: str) -> datetime:
        allowed, target = TRANSITIONS[event]
        if self.status not in allowed:
            raise InvalidStateError(
                f"Cannot {event.replace('_', ' ')} a token request in state "
                f"'{self.status.value}'"
            )
        now = _now()
        self.status = target
        self.updated_at = now
        return now

    def select_payment_method(self, method: PaymentMethod, reference: str) -> None:
        now = self._advance("select_payment_method")
        self.payment_method = method
        self.payment_reference = reference
        self.payment_selected_at = now

    def confirm_payment(self, reference: str) -> None:
        self.paid_at = self._advance("confirm_payment")
        self.payment_reference = reference

    def cancel(self) -> None:
        self.cancelled_at = self._advance("cancel")

    def approve(self, admin_id: UUID) -> None:
        self.decided_at = self._advance("admin_approve")
        self.decided_by = admin_id

    def reject(self, admin_id: UUID, reason: Optional[str] = None) -> None:
        self.decided_at = self._advance("admin_reject")
        self.decided_by = admin_id
        self.rejection_reason = reason

    def mark_issued(self, token_id: UUID, issued_at: datetime) -> None:
        self._advance("issue")
        self.issued_at = issued_at
        self.updated_at = issued_at
        self.token_id = token_id


class Token(CommonSerializersMixin, BaseModel):
    """An issued prepaid token. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    token_request_id: UUID
    vendor_id: UUID
    meter_number: str
    disco: str
    units: int
    amount: int
    value: str = Field(..., pattern=r"^[0-9-]+$")
    meter_serial: Optional[str] = None
    issued_at: datetime = Field(default_factory=_now)
    issued_by: UUID
