"""Repository interfaces for the token vending domain."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from uuid import UUID

from .entities import (
    Customer,
    DiscoPricing,
    Token,
    TokenRequest,
    TokenRequestStatus,
    Vendor,
)
from .events import TokenRequestEvent


class VendorRepository(ABC):
    """Abstract repository interface for Vendor entities.

    Every mutation is atomic on the stored document, so concurrent customer
    registrations never lose a ``customer_count`` increment.
    """

    @abstractmethod
    async def create(self, vendor: Vendor) -> Vendor:
        """Persist a new vendor. Raises ConflictError on a duplicate email."""
        pass

    @abstractmethod
    async def get_by_id(self, vendor_id: UUID) -> Optional[Vendor]:
        pass

    @abstractmethod
    async def get_all(
        self, approved: Optional[bool] = None, skip: int = 0, limit: int = 100
    ) -> List[Vendor]:
        pass

    @abstractmethod
    async def count(self, approved: Optional[bool] = None) -> int:
        pass

    @abstractmethod
    async def approve(self, vendor_id: UUID) -> Vendor:
        pass

    @abstractmethod
    async def begin_upgrade(
        self, vendor_id: UUID, slots: int, amount: int, reference: str
    ) -> Vendor:
        pass

    @abstractmethod
    async def apply_upgrade(self, vendor_id: UUID, slots: int) -> Vendor:
        pass


class CustomerRepository(ABC):
    """Abstract repository interface for Customer entities."""

    @abstractmethod
    async def register(self, customer: Customer) -> Vendor:
        """Attach a customer to its vendor, consuming one slot.

        Returns the vendor with its incremented ``customer_count``.
        """
        pass

    @abstractmethod
    async def get_by_id(self, customer_id: UUID) -> Optional[Customer]:
        pass

    @abstractmethod
    async def get_by_meter(self, meter_number: str, disco: str) -> Optional[Customer]:
        pass

    @abstractmethod
    async def find_by_meter(self, meter_number: str) -> List[Customer]:
        """Every customer registered with this meter number, across discos."""
        pass

    @abstractmethod
    async def list_by_vendor(
        self, vendor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[Customer]:
        pass

    @abstractmethod
    async def get_all(
        self, verified: Optional[bool] = None, skip: int = 0, limit: int = 100
    ) -> List[Customer]:
        pass

    @abstractmethod
    async def count_pending_verification(self) -> int:
        pass

    @abstractmethod
    async def update(self, customer: Customer, expected_version: int) -> Customer:
        """Compare-and-set on ``version``. Raises InvalidStateError when stale."""
        pass


class PricingRepository(ABC):
    """Abstract repository interface for DiscoPricing entries."""

    @abstractmethod
    async def upsert(self, pricing: DiscoPricing) -> DiscoPricing:
        pass

    @abstractmethod
    async def get(self, disco: str) -> Optional[DiscoPricing]:
        pass

    @abstractmethod
    async def get_all(self) -> List[DiscoPricing]:
        pass


class TokenRequestRepository(ABC):
    """Abstract repository interface for TokenRequest entities."""

    @abstractmethod
    async def create(self, request: TokenRequest) -> TokenRequest:
        pass

    @abstractmethod
    async def get_by_id(self, request_id: UUID) -> Optional[TokenRequest]:
        pass

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[TokenRequest]:
        pass

    @abstractmethod
    async def list(
        self,
        vendor_id: Optional[UUID] = None,
        status: Optional[TokenRequestStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[TokenRequest]:
        pass

    @abstractmethod
    async def count_by_status(
        self, vendor_id: Optional[UUID] = None
    ) -> Dict[TokenRequestStatus, int]:
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        request: TokenRequest,
        expected_version: int,
        previous_status: TokenRequestStatus,
    ) -> TokenRequest:
        """Persist a transition if nobody else wrote the request first.

        Raises InvalidStateError when the stored version moved on.
        """
        pass


class TokenRepository(ABC):
    """Abstract repository interface for issued tokens."""

    @abstractmethod
    async def record(
        self,
        token: Token,
        request: TokenRequest,
        expected_version: int,
        previous_status: TokenRequestStatus,
    ) -> Token:
        """Insert the token and mark the request issued in one step.

        Raises AlreadyIssued when the request already has a token.
        """
        pass

    @abstractmethod
    async def get_by_id(self, token_id: UUID) -> Optional[Token]:
        pass

    @abstractmethod
    async def get_by_request(self, request_id: UUID) -> Optional[Token]:
        pass

    @abstractmethod
    async def list_by_meter(
        self, meter_number: str, skip: int = 0, limit: int = 20
    ) -> List[Token]:
        pass

    @abstractmethod
    async def count_by_meter(self, meter_number: str) -> int:
        pass

    @abstractmethod
    async def list_by_vendor(
        self, vendor_id: UUID, skip: int = 0, limit: int = 20
    ) -> List[Token]:
        pass

    @abstractmethod
    async def count_by_vendor(self, vendor_id: UUID) -> int:
        pass


class ActivityRepository(ABC):
    """Capped feed of the most recent lifecycle events per vendor."""

    @abstractmethod
    async def record(self, event: TokenRequestEvent) -> None:
        """Append ``event`` to its vendor's feed, dropping the oldest overflow."""
        pass

    @abstractmethod
    async def recent(
        self, vendor_id: UUID, limit: Optional[int] = None
    ) -> List[TokenRequestEvent]:
        """Newest first; ``limit`` defaults to the feed capacity."""
        pass
