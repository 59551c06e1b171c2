"""Token request lifecycle engine.

Moves a purchase through::

    initiated -> payment_pending -> payment_confirmed -> admin_approved -> issued

with ``cancelled`` reachable before a decision and ``admin_rejected`` reachable
from ``payment_confirmed`` or ``admin_approved``. Every transition is an
optimistic compare-and-set on the request's ``version``; a caller that loses a
race gets InvalidStateError and the request keeps the winner's state.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional
from uuid import UUID, uuid4

from ...domain.entities import (
    Caller,
    PaymentMethod,
    TokenRequest,
    TokenRequestStatus,
)
from ...domain.errors import (
    AlreadyIssued,
    InvalidStateError,
    NotFound,
    PermissionDeniedError,
    ValidationError,
    VerificationRequired,
)
from ...domain.events import TokenRequestEvent, TokenRequestListener
from ...domain.repositories import (
    CustomerRepository,
    TokenRequestRepository,
    VendorRepository,
)
from ...domain.shared.payment_gateway_protocol import PaymentGatewayProtocol
from ..dtos import (
    CreateTokenRequestDTO,
    PaymentInstructionsDTO,
    TokenRequestResponseDTO,
    TokenResponseDTO,
)
from .access import require_admin, require_vendor_access
from .ledger import TokenLedgerService
from .pricing import PricingService
from .validators import (
    validate_disco,
    validate_meter_number,
    validate_reference,
    validate_token_value,
    validate_units,
)
from .verification import VerificationService

logger = logging.getLogger(__name__)


class BankDetails:
    """Account shown to vendors who pay by manual transfer."""

    def __init__(self, bank_name: str, account_number: str, account_name: str):
        self.bank_name = bank_name
        self.account_number = account_number
        self.account_name = account_name


class TokenRequestService:
    """Service driving the token request state machine."""

    def __init__(
        self,
        token_request_repository: TokenRequestRepository,
        vendor_repository: VendorRepository,
        customer_repository: CustomerRepository,
        pricing_service: PricingService,
        verification_service: VerificationService,
        ledger_service: TokenLedgerService,
        payment_gateway: PaymentGatewayProtocol,
        bank_details: BankDetails,
        discos: List[str],
        max_units_per_request: int,
        listeners: Optional[List[TokenRequestListener]] = None,
    ):
        self.token_request_repository = token_request_repository
        self.vendor_repository = vendor_repository
        self.customer_repository = customer_repository
        self.pricing_service = pricing_service
        self.verification_service = verification_service
        self.ledger_service = ledger_service
        self.payment_gateway = payment_gateway
        self.bank_details = bank_details
        self.discos = discos
        self.max_units_per_request = max_units_per_request
        self.listeners: List[TokenRequestListener] = list(listeners or [])

    def add_listener(self, listener: TokenRequestListener) -> None:
        self.listeners.append(listener)

    async def _notify(
        self,
        event: str,
        request: TokenRequest,
        from_status: Optional[TokenRequestStatus],
    ) -> None:
        if not self.listeners:
            return
        notification = TokenRequestEvent(
            event=event,
            request_id=request.id,
            vendor_id=request.vendor_id,
            from_status=from_status,
            to_status=request.status,
            version=request.version,
            token_id=request.token_id,
        )
        for listener in self.listeners:
            # Already committed; listener errors are only logged
            try:
                await listener(notification)
            except Exception:
                logger.exception(
                    "Listener failed for %s on token request %s", event, request.id
                )

    async def _load(self, caller: Caller, request_id: UUID) -> TokenRequest:
        request = await self.token_request_repository.get_by_id(request_id)
        if request is None:
            raise NotFound(f"Token request {request_id} not found")
        require_vendor_access(caller, request.vendor_id)
        return request

    async def _commit(
        self,
        event: str,
        request: TokenRequest,
        apply: Callable[[TokenRequest], None],
    ) -> TokenRequest:
        """Apply a transition to a copy and compare-and-set it."""
        previous_status = request.status
        updated = request.model_copy(deep=True)
        try:
            apply(updated)
        except InvalidStateError:
            logger.debug(
                "Rejected %s on token request %s in state %s",
                event,
                request.id,
                previous_status.value,
            )
            raise
        saved = await self.token_request_repository.compare_and_set(
            updated, request.version, previous_status
        )
        logger.info(
            "Token request %s: %s -> %s (%s)",
            saved.id,
            previous_status.value,
            saved.status.value,
            event,
        )
        await self._notify(event, saved, previous_status)
        return saved

    @staticmethod
    def _to_dto(request: TokenRequest) -> TokenRequestResponseDTO:
        return TokenRequestResponseDTO(**request.model_dump())

    async def create_request(
        self, caller: Caller, dto: CreateTokenRequestDTO
    ) -> TokenRequestResponseDTO:
        """Create a request for a registered customer of an approved vendor.

        The amount is computed from the current disco price and frozen.
        """
        if caller.is_admin:
            if dto.vendor_id is None:
                raise ValidationError("vendor_id is required when an admin creates a request")
            vendor_id = dto.vendor_id
        else:
            vendor_id = dto.vendor_id or caller.id
            require_vendor_access(caller, vendor_id)

        units = validate_units(dto.units, self.max_units_per_request)
        meter_number = validate_meter_number(dto.meter_number)
        disco = validate_disco(dto.disco, self.discos)
        pricing = await self.pricing_service.current_price(disco)

        vendor = await self.vendor_repository.get_by_id(vendor_id)
        if vendor is None:
            raise NotFound(f"Vendor {vendor_id} not found")
        if not vendor.approved:
            raise PermissionDeniedError(
                f"Vendor {vendor_id} is not approved to request tokens"
            )
        customer = await self.customer_repository.get_by_meter(meter_number, disco)
        if customer is None:
            raise NotFound(f"Meter {meter_number} is not registered with {disco}")
        if customer.vendor_id != vendor_id:
            raise PermissionDeniedError(
                f"Meter {meter_number} is registered to a different vendor"
            )

        request = TokenRequest(
            vendor_id=vendor_id,
            customer_id=customer.id,
            meter_number=meter_number,
            disco=disco,
            units=units,
            price_per_unit=pricing.price_per_unit,
            amount=units * pricing.price_per_unit,
        )
        created = await self.token_request_repository.create(request)
        logger.info(
            "Token request %s created by vendor %s: %d units on %s/%s for %d",
            created.id,
            vendor_id,
            units,
            disco,
            meter_number,
            created.amount,
        )
        await self._notify("create_request", created, None)
        return self._to_dto(created)

    async def select_payment_method(
        self, caller: Caller, request_id: UUID, method: PaymentMethod
    ) -> PaymentInstructionsDTO:
        request = await self._load(caller, request_id)
        reference = f"TV-{uuid4().hex}"
        saved = await self._commit(
            "select_payment_method",
            request,
            lambda r: r.select_payment_method(method, reference),
        )
        instructions = PaymentInstructionsDTO(
            request=self._to_dto(saved),
            method=method,
            reference=reference,
            amount=saved.amount,
        )
        if method == PaymentMethod.BANK_TRANSFER:
            instructions.bank_name = self.bank_details.bank_name
            instructions.bank_account_number = self.bank_details.account_number
            instructions.bank_account_name = self.bank_details.account_name
        return instructions

    async def confirm_payment(
        self, caller: Caller, request_id: UUID, reference: str
    ) -> TokenRequestResponseDTO:
        """Record payment.

        Gateway payments must quote the reference issued for this request and
        are checked with the gateway. Bank transfers take the vendor's own
        transfer reference; the admin reconciles funds before approving.
        """
        reference = validate_reference(reference)
        request = await self._load(caller, request_id)
        if request.status != TokenRequestStatus.PAYMENT_PENDING:
            raise InvalidStateError(
                f"Cannot confirm payment for a token request in state "
                f"'{request.status.value}'"
            )
        if request.payment_method == PaymentMethod.GATEWAY:
            if reference != request.payment_reference:
                raise ValidationError(
                    f"Reference {reference} does not belong to token request {request.id}"
                )
            await self.payment_gateway.verify(reference, request.amount)
        saved = await self._commit(
            "confirm_payment", request, lambda r: r.confirm_payment(reference)
        )
        return self._to_dto(saved)

    async def cancel(self, caller: Caller, request_id: UUID) -> TokenRequestResponseDTO:
        request = await self._load(caller, request_id)
        saved = await self._commit("cancel", request, lambda r: r.cancel())
        return self._to_dto(saved)

    async def handle_gateway_cancelled(
        self, caller: Caller, reference: str
    ) -> TokenRequestResponseDTO:
        """Cancel the request owning ``reference`` after the payer abandoned it."""
        reference = validate_reference(reference)
        request = await self.token_request_repository.get_by_reference(reference)
        if request is None:
            raise NotFound(f"No token request uses reference {reference}")
        require_vendor_access(caller, request.vendor_id)
        if request.payment_method != PaymentMethod.GATEWAY:
            raise InvalidStateError(
                f"Token request {request.id} is not paid through the gateway"
            )
        saved = await self._commit("cancel", request, lambda r: r.cancel())
        return self._to_dto(saved)

    async def admin_approve(
        self, caller: Caller, request_id: UUID
    ) -> TokenRequestResponseDTO:
        require_admin(caller)
        request = await self._load(caller, request_id)
        saved = await self._commit(
            "admin_approve", request, lambda r: r.approve(caller.id)
        )
        return self._to_dto(saved)

    async def admin_reject(
        self, caller: Caller, request_id: UUID, reason: Optional[str] = None
    ) -> TokenRequestResponseDTO:
        require_admin(caller)
        request = await self._load(caller, request_id)
        reason = (reason or "").strip() or None
        saved = await self._commit(
            "admin_reject", request, lambda r: r.reject(caller.id, reason)
        )
        return self._to_dto(saved)

    async def issue(
        self, caller: Caller, request_id: UUID, token_value: str
    ) -> TokenResponseDTO:
        """Issue the token for an approved request of a verified customer.

        Raises AlreadyIssued, carrying the existing token, when repeated.
        """
        require_admin(caller)
        request = await self._load(caller, request_id)
        if request.status == TokenRequestStatus.ISSUED:
            existing = await self.ledger_service.find_by_request(request.id)
            if existing is not None:
                raise AlreadyIssued(existing)
        if request.status != TokenRequestStatus.ADMIN_APPROVED:
            raise InvalidStateError(
                f"Cannot issue a token for a request in state '{request.status.value}'"
            )
        validate_token_value(token_value)
        verification = await self.verification_service.get_customer_verification(
            request.customer_id
        )
        if not verification.is_verified:
            raise VerificationRequired(
                f"Meter {request.meter_number} must be verified before a token is issued"
            )

        previous_status = request.status
        token = await self.ledger_service.record(
            request, token_value, verification.MSN, caller.id
        )
        issued = request.model_copy(deep=True)
        issued.mark_issued(token.id, token.issued_at)
        issued.version = request.version + 1
        logger.info(
            "Token request %s: %s -> issued (token %s)",
            request.id,
            previous_status.value,
            token.id,
        )
        await self._notify("issue", issued, previous_status)
        return TokenResponseDTO(**token.model_dump())

    async def get_request(
        self, caller: Caller, request_id: UUID
    ) -> TokenRequestResponseDTO:
        return self._to_dto(await self._load(caller, request_id))

    async def list_requests(
        self,
        caller: Caller,
        vendor_id: Optional[UUID] = None,
        status: Optional[TokenRequestStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[TokenRequestResponseDTO]:
        """Newest first. Vendors only ever see their own requests."""
        if not caller.is_admin:
            vendor_id = vendor_id or caller.id
            require_vendor_access(caller, vendor_id)
        requests = await self.token_request_repository.list(
            vendor_id=vendor_id, status=status, skip=skip, limit=limit
        )
        return [self._to_dto(r) for r in requests]

    async def count_by_status(
        self, caller: Caller, vendor_id: Optional[UUID] = None
    ) -> Dict[TokenRequestStatus, int]:
        if not caller.is_admin:
            vendor_id = vendor_id or caller.id
            require_vendor_access(caller, vendor_id)
        return await self.token_request_repository.count_by_status(vendor_id)
