"""Domain-specific exceptions.

Every guard violation in the core surfaces as one of these typed errors. The
API layer maps ``code`` to a response; nothing here is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .entities import Token


class TokenVendError(Exception):
    """Base class for all domain errors."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def extra(self) -> Dict[str, Any]:
        """Additional fields to expose alongside the message."""
        return {}


class ValidationError(TokenVendError):
    """Raised for malformed input (bad meter number, token value, units...)."""

    code = "validation_error"


class NotFound(TokenVendError):
    """Raised when a vendor, customer, request or price lookup fails."""

    code = "not_found"


class ConflictError(TokenVendError):
    """Raised when a unique key (vendor email, disco + meter) is already taken."""

    code = "conflict"


class PermissionDeniedError(TokenVendError):
    """Raised when the caller's role or ownership does not allow the operation."""

    code = "permission_denied"


class InvalidStateError(TokenVendError):
    """Raised when a transition is attempted from an incompatible state.

    The target keeps its prior state.
    """

    code = "invalid_state"


class QuotaExceeded(TokenVendError):
    """Raised when a vendor has used every customer slot."""

    code = "quota_exceeded"

    def __init__(self, vendor_id: Any, customer_count: int, customer_limit: int):
        super().__init__(
            f"Vendor {vendor_id} has used {customer_count} of {customer_limit} "
            "customer slots; an upgrade is required"
        )
        self.vendor_id = vendor_id
        self.customer_count = customer_count
        self.customer_limit = customer_limit

    def extra(self) -> Dict[str, Any]:
        return {
            "customer_count": self.customer_count,
            "customer_limit": self.customer_limit,
        }


class VerificationRequired(TokenVendError):
    """Raised when issuance is blocked because the meter is not verified."""

    code = "verification_required"


class AlreadyIssued(TokenVendError):
    """Idempotent signal: the request already has its token."""

    code = "already_issued"

    def __init__(self, token: "Token"):
        super().__init__(f"Token request {token.token_request_id} was already issued")
        self.token = token

    def extra(self) -> Dict[str, Any]:
        return {"token": self.token.model_dump(mode="json")}


class PaymentVerificationError(TokenVendError):
    """Raised when the payment gateway does not confirm a reference."""

    code = "payment_not_confirmed"


class PaymentGatewayUnavailable(TokenVendError):
    """Raised when the payment gateway cannot be reached."""

    code = "payment_gateway_unavailable"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
