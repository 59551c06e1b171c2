"""Asynchronous client for the TokenVend HTTP API.

Caller identity travels with every call as explicit headers; the client keeps
no per-user state, so one instance can serve several callers concurrently.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type
from types import TracebackType
from uuid import UUID

import httpx

from ..application.dtos import (
    AdminDashboardDTO,
    CreateTokenRequestDTO,
    CreateVendorDTO,
    CustomerResponseDTO,
    IssuanceResultDTO,
    PaymentInstructionsDTO,
    PricingResponseDTO,
    RegisterCustomerDTO,
    SubmitVerificationDTO,
    TokenPageDTO,
    TokenRequestResponseDTO,
    UpgradeIntentDTO,
    VendorDashboardDTO,
    VendorResponseDTO,
    VendorUsageDTO,
    VerificationResponseDTO,
)
from ..domain.entities import Caller, PaymentMethod, TokenRequestStatus
from ..infrastructure.http.http_client import AsyncHttpClient


def caller_headers(caller: Caller) -> Dict[str, str]:
    return {"X-Caller-Id": str(caller.id), "X-Caller-Role": caller.role.value}


class TokenVendClient:
    """Client for the token vending API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        # base_url is expected to already contain the API prefix (e.g. /api/v1)
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    async def _get(
        self, caller: Caller, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        resp = await self._http.get(path, params=params, headers=caller_headers(caller))
        return resp.json()

    async def _post(
        self, caller: Caller, path: str, body: Optional[Dict[str, Any]] = None
    ) -> Any:
        resp = await self._http.post(path, json=body, headers=caller_headers(caller))
        return resp.json()

    async def _put(self, caller: Caller, path: str, body: Dict[str, Any]) -> Any:
        resp = await self._http.put(path, json=body, headers=caller_headers(caller))
        return resp.json()

    # Vendors and quota

    async def create_vendor(
        self, caller: Caller, dto: CreateVendorDTO
    ) -> VendorResponseDTO:
        data = await self._post(caller, "/vendors", dto.model_dump())
        return VendorResponseDTO.model_validate(data)

    async def approve_vendor(self, caller: Caller, vendor_id: UUID) -> VendorResponseDTO:
        data = await self._post(caller, f"/vendors/{vendor_id}/approve")
        return VendorResponseDTO.model_validate(data)

    async def get_usage(self, caller: Caller, vendor_id: UUID) -> VendorUsageDTO:
        data = await self._get(caller, f"/vendors/{vendor_id}/usage")
        return VendorUsageDTO.model_validate(data)

    async def request_upgrade(
        self, caller: Caller, vendor_id: UUID, additional_slots: int
    ) -> UpgradeIntentDTO:
        data = await self._post(
            caller,
            f"/vendors/{vendor_id}/upgrades",
            {"additional_slots": additional_slots},
        )
        return UpgradeIntentDTO.model_validate(data)

    async def apply_upgrade(
        self, caller: Caller, vendor_id: UUID, additional_slots: int
    ) -> VendorResponseDTO:
        data = await self._post(
            caller,
            f"/vendors/{vendor_id}/upgrades/apply",
            {"additional_slots": additional_slots},
        )
        return VendorResponseDTO.model_validate(data)

    async def register_customer(
        self, caller: Caller, vendor_id: UUID, dto: RegisterCustomerDTO
    ) -> CustomerResponseDTO:
        data = await self._post(caller, f"/vendors/{vendor_id}/customers", dto.model_dump())
        return CustomerResponseDTO.model_validate(data)

    async def list_customers(
        self, caller: Caller, vendor_id: UUID, skip: int = 0, limit: int = 100
    ) -> List[CustomerResponseDTO]:
        data = await self._get(
            caller,
            f"/vendors/{vendor_id}/customers",
            {"skip": skip, "limit": limit},
        )
        return [CustomerResponseDTO.model_validate(item) for item in data]

    # Verification and pricing

    async def get_verification(
        self, caller: Caller, meter_number: str, disco: Optional[str] = None
    ) -> VerificationResponseDTO:
        data = await self._get(caller, f"/verifications/{meter_number}", {"disco": disco})
        return VerificationResponseDTO.model_validate(data)

    async def submit_verification(
        self, caller: Caller, customer_id: UUID, dto: SubmitVerificationDTO
    ) -> VerificationResponseDTO:
        data = await self._put(
            caller, f"/customers/{customer_id}/verification", dto.model_dump()
        )
        return VerificationResponseDTO.model_validate(data)

    async def reject_verification(
        self, caller: Caller, customer_id: UUID, reason: str
    ) -> VerificationResponseDTO:
        data = await self._post(
            caller,
            f"/customers/{customer_id}/verification/rejection",
            {"reason": reason},
        )
        return VerificationResponseDTO.model_validate(data)

    async def set_price(
        self, caller: Caller, disco: str, price_per_unit: int
    ) -> PricingResponseDTO:
        data = await self._put(
            caller, f"/pricing/{disco}", {"price_per_unit": price_per_unit}
        )
        return PricingResponseDTO.model_validate(data)

    async def list_prices(self, caller: Caller) -> List[PricingResponseDTO]:
        data = await self._get(caller, "/pricing")
        return [PricingResponseDTO.model_validate(item) for item in data]

    # Token requests

    async def create_request(
        self, caller: Caller, dto: CreateTokenRequestDTO
    ) -> TokenRequestResponseDTO:
        data = await self._post(caller, "/token-requests", dto.model_dump(mode="json"))
        return TokenRequestResponseDTO.model_validate(data)

    async def get_request(
        self, caller: Caller, request_id: UUID
    ) -> TokenRequestResponseDTO:
        data = await self._get(caller, f"/token-requests/{request_id}")
        return TokenRequestResponseDTO.model_validate(data)

    async def list_requests(
        self,
        caller: Caller,
        vendor_id: Optional[UUID] = None,
        status: Optional[TokenRequestStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[TokenRequestResponseDTO]:
        data = await self._get(
            caller,
            "/token-requests",
            {
                "vendor_id": str(vendor_id) if vendor_id else None,
                "status": status.value if status else None,
                "skip": skip,
                "limit": limit,
            },
        )
        return [TokenRequestResponseDTO.model_validate(item) for item in data]

    async def select_payment_method(
        self, caller: Caller, request_id: UUID, method: PaymentMethod
    ) -> PaymentInstructionsDTO:
        data = await self._post(
            caller,
            f"/token-requests/{request_id}/payment-method",
            {"method": method.value},
        )
        return PaymentInstructionsDTO.model_validate(data)

    async def confirm_payment(
        self, caller: Caller, request_id: UUID, reference: str
    ) -> TokenRequestResponseDTO:
        data = await self._post(
            caller,
            f"/token-requests/{request_id}/payment-confirmation",
            {"reference": reference},
        )
        return TokenRequestResponseDTO.model_validate(data)

    async def cancel(self, caller: Caller, request_id: UUID) -> TokenRequestResponseDTO:
        data = await self._post(caller, f"/token-requests/{request_id}/cancellation")
        return TokenRequestResponseDTO.model_validate(data)

    async def approve(self, caller: Caller, request_id: UUID) -> TokenRequestResponseDTO:
        data = await self._post(caller, f"/token-requests/{request_id}/approval")
        return TokenRequestResponseDTO.model_validate(data)

    async def reject(
        self, caller: Caller, request_id: UUID, reason: Optional[str] = None
    ) -> TokenRequestResponseDTO:
        data = await self._post(
            caller, f"/token-requests/{request_id}/rejection", {"reason": reason}
        )
        return TokenRequestResponseDTO.model_validate(data)

    async def issue(
        self, caller: Caller, request_id: UUID, token_value: str
    ) -> IssuanceResultDTO:
        """Issue a token; a repeat comes back with ``already_issued`` set."""
        data = await self._post(
            caller,
            f"/token-requests/{request_id}/issuance",
            {"token_value": token_value},
        )
        return IssuanceResultDTO.model_validate(data)

    async def list_tokens_by_meter(
        self, caller: Caller, meter_number: str, page: int = 1, page_size: int = 20
    ) -> TokenPageDTO:
        data = await self._get(
            caller,
            "/tokens",
            {"meter_number": meter_number, "page": page, "page_size": page_size},
        )
        return TokenPageDTO.model_validate(data)

    # Dashboards

    async def vendor_dashboard(
        self, caller: Caller, vendor_id: UUID
    ) -> VendorDashboardDTO:
        data = await self._get(caller, f"/dashboard/vendor/{vendor_id}")
        return VendorDashboardDTO.model_validate(data)

    async def admin_dashboard(self, caller: Caller) -> AdminDashboardDTO:
        data = await self._get(caller, "/dashboard/admin")
        return AdminDashboardDTO.model_validate(data)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "TokenVendClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
