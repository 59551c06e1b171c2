"""HTTP adapter for the online payment gateway."""

from __future__ import annotations

import logging
from typing import Optional, Type
from types import TracebackType

import httpx

from ..domain.errors import PaymentGatewayUnavailable, PaymentVerificationError
from .http.http_client import AsyncHttpClient, HttpRequestError, HttpResponseError

logger = logging.getLogger(__name__)


class PaymentGatewayClient:
    """Verifies gateway references against a Paystack-style REST API.

    ``GET /transaction/verify/{reference}`` is expected to answer with
    ``{"status": true, "data": {"status": "success", "amount": <minor units>}}``.
    """

    def __init__(
        self,
        base_url: str,
        secret_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(
            base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {secret_key}"},
            transport=transport,
        )

    async def verify(self, reference: str, amount: int) -> None:
        try:
            resp = await self._http.get(f"/transaction/verify/{reference}")
        except HttpRequestError as e:
            logger.warning("Payment gateway unreachable for %s: %s", reference, e)
            raise PaymentGatewayUnavailable(
                "Payment gateway is unavailable", cause=e
            ) from e
        except HttpResponseError as e:
            if e.status_code >= 500:
                raise PaymentGatewayUnavailable(
                    f"Payment gateway returned {e.status_code}", cause=e
                ) from e
            raise PaymentVerificationError(
                f"Payment reference {reference} was not recognised by the gateway"
            ) from e

        payload = resp.json()
        data = payload.get("data") or {}
        if not payload.get("status") or data.get("status") != "success":
            raise PaymentVerificationError(
                f"Payment {reference} has not succeeded (status: {data.get('status')})"
            )
        paid = int(data.get("amount", -1))
        if paid != amount:
            raise PaymentVerificationError(
                f"Payment {reference} is for {paid}, expected {amount}"
            )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "PaymentGatewayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
