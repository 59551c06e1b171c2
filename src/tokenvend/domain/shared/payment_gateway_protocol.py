"""Protocol interface for payment gateway implementations.

This protocol defines the contract the token request engine relies on when a
vendor pays through the online gateway. It enables dependency injection and
makes services testable by allowing stub implementations.
"""

from __future__ import annotations

from typing import Protocol, Type, Optional
from types import TracebackType


class PaymentGatewayProtocol(Protocol):
    """Protocol defining the interface for payment gateway clients.

    Implementations should:
    - Return normally when the gateway reports the reference as paid in full
    - Raise PaymentVerificationError when the gateway answers but does not
      confirm the payment (unknown reference, failed, or wrong amount)
    - Raise PaymentGatewayUnavailable on transport errors
    """

    async def verify(self, reference: str, amount: int) -> None:
        """Confirm ``reference`` was paid for exactly ``amount`` minor units."""
        ...

    async def aclose(self) -> None:
        ...

    async def __aenter__(self) -> "PaymentGatewayProtocol":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        ...
