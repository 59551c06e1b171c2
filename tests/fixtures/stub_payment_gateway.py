"""Scriptable payment gateway double implementing PaymentGatewayProtocol."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Type
from types import TracebackType

from tokenvend.domain.errors import PaymentVerificationError


class StubPaymentGateway:
    """Accepts a reference once it has been marked paid with a given amount."""

    def __init__(self) -> None:
        self.paid: Dict[str, int] = {}
        self.calls: List[Tuple[str, int]] = []
        self.failure: Optional[Exception] = None

    def mark_paid(self, reference: str, amount: int) -> None:
        self.paid[reference] = amount

    async def verify(self, reference: str, amount: int) -> None:
        self.calls.append((reference, amount))
        if self.failure is not None:
            raise self.failure
        if reference not in self.paid:
            raise PaymentVerificationError(f"Payment {reference} was not successful")
        if self.paid[reference] != amount:
            raise PaymentVerificationError(
                f"Payment {reference} was for {self.paid[reference]}, expected {amount}"
            )

    async def aclose(self) -> None:
        pass

    async def __aenter__(self) -> "StubPaymentGateway":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
