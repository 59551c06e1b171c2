"""Unit tests for token request API routes."""

import unittest
from unittest.mock import AsyncMock
from uuid import uuid4
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tokenvend.api.dependencies import get_ledger_service, get_token_request_service
from tokenvend.api.errors import register_exception_handlers
from tokenvend.api.routers import token_requests, tokens
from tokenvend.application.dtos import TokenRequestResponseDTO, TokenResponseDTO
from tokenvend.domain.entities import CallerRole, Token, TokenRequestStatus
from tokenvend.domain.errors import (
    AlreadyIssued,
    InvalidStateError,
    PaymentGatewayUnavailable,
    PermissionDeniedError,
    VerificationRequired,
)


class TestTokenRequestsRouter(unittest.TestCase):
    """Test cases for the token request router."""

    def setUp(self):
        """Set up test fixtures."""
        self.app = FastAPI()
        self.app.include_router(token_requests.router, prefix="/api/v1")
        self.app.include_router(tokens.router, prefix="/api/v1")
        register_exception_handlers(self.app)

        self.vendor_id = uuid4()
        self.admin_id = uuid4()
        self.request_id = uuid4()
        now = datetime.now(timezone.utc)
        self.request_response = TokenRequestResponseDTO(
            id=self.request_id,
            vendor_id=self.vendor_id,
            customer_id=uuid4(),
            meter_number="45071234567",
            disco="IKEDC",
            units=50,
            price_per_unit=6500,
            amount=325000,
            payment_method=None,
            payment_reference=None,
            status=TokenRequestStatus.INITIATED,
            version=0,
            created_at=now,
            updated_at=None,
            payment_selected_at=None,
            paid_at=None,
            decided_at=None,
            decided_by=None,
            rejection_reason=None,
            cancelled_at=None,
            issued_at=None,
            token_id=None,
        )
        self.token = Token(
            token_request_id=self.request_id,
            vendor_id=self.vendor_id,
            meter_number="45071234567",
            disco="IKEDC",
            units=50,
            amount=325000,
            value="1234-5678-9012-3456-7890",
            meter_serial="45071234567",
            issued_at=now,
            issued_by=self.admin_id,
        )

        self.mock_service = AsyncMock()
        self.mock_ledger = AsyncMock()
        self.app.dependency_overrides[get_token_request_service] = (
            lambda: self.mock_service
        )
        self.app.dependency_overrides[get_ledger_service] = lambda: self.mock_ledger

        self.client = TestClient(self.app)
        self.vendor_headers = {
            "X-Caller-Id": str(self.vendor_id),
            "X-Caller-Role": "vendor",
        }
        self.admin_headers = {"X-Caller-Id": str(self.admin_id), "X-Caller-Role": "admin"}

    def tearDown(self):
        """Clean up after tests."""
        self.app.dependency_overrides.clear()

    def test_create_request_success(self):
        self.mock_service.create_request.return_value = self.request_response

        response = self.client.post(
            "/api/v1/token-requests",
            json={"meter_number": "45071234567", "disco": "IKEDC", "units": 50},
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["amount"], 325000)
        caller = self.mock_service.create_request.call_args[0][0]
        self.assertEqual(caller.id, self.vendor_id)
        self.assertEqual(caller.role, CallerRole.VENDOR)

    def test_missing_caller_headers(self):
        response = self.client.post(
            "/api/v1/token-requests",
            json={"meter_number": "45071234567", "disco": "IKEDC", "units": 50},
        )
        self.assertEqual(response.status_code, 422)
        self.mock_service.create_request.assert_not_called()

    def test_invalid_transition_maps_to_conflict(self):
        self.mock_service.cancel.side_effect = InvalidStateError(
            "Cannot cancel a token request in state 'issued'"
        )

        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/cancellation",
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "invalid_state")

    def test_permission_denied_maps_to_forbidden(self):
        self.mock_service.admin_approve.side_effect = PermissionDeniedError(
            "This operation is restricted to administrators"
        )
        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/approval",
            headers=self.vendor_headers,
        )
        self.assertEqual(response.status_code, 403)

    def test_gateway_outage_maps_to_bad_gateway(self):
        self.mock_service.confirm_payment.side_effect = PaymentGatewayUnavailable(
            "Payment gateway unreachable"
        )
        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/payment-confirmation",
            json={"reference": "TV-abc"},
            headers=self.vendor_headers,
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["code"], "payment_gateway_unavailable")

    def test_issue_returns_created_token(self):
        self.mock_service.issue.return_value = TokenResponseDTO(
            **self.token.model_dump()
        )

        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/issuance",
            json={"token_value": "1234-5678-9012-3456-7890"},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertFalse(body["already_issued"])
        self.assertEqual(body["token"]["value"], "1234-5678-9012-3456-7890")

    def test_repeat_issue_returns_existing_token(self):
        self.mock_service.issue.side_effect = AlreadyIssued(self.token)

        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/issuance",
            json={"token_value": "9999-9999-9999-9999"},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["already_issued"])
        self.assertEqual(body["token"]["id"], str(self.token.id))
        self.assertEqual(body["token"]["value"], "1234-5678-9012-3456-7890")

    def test_issue_unverified_meter(self):
        self.mock_service.issue.side_effect = VerificationRequired(
            "Meter 45071234567 must be verified before a token is issued"
        )
        response = self.client.post(
            f"/api/v1/token-requests/{self.request_id}/issuance",
            json={"token_value": "1234-5678-9012-3456-7890"},
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "verification_required")

    def test_list_requests_passes_status_filter(self):
        self.mock_service.list_requests.return_value = [self.request_response]

        response = self.client.get(
            "/api/v1/token-requests",
            params={"status": "initiated", "limit": 10},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)
        kwargs = self.mock_service.list_requests.call_args.kwargs
        self.assertEqual(kwargs["status"], TokenRequestStatus.INITIATED)
        self.assertEqual(kwargs["limit"], 10)

    def test_tokens_by_meter(self):
        self.mock_ledger.list_by_meter.return_value = {
            "items": [TokenResponseDTO(**self.token.model_dump()).model_dump()],
            "page": 1,
            "page_size": 20,
            "total": 1,
        }

        response = self.client.get(
            "/api/v1/tokens",
            params={"meter_number": "45071234567"},
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 1)
        args = self.mock_ledger.list_by_meter.call_args[0]
        self.assertEqual(args[0].id, self.vendor_id)
        self.assertEqual(args[0].role, CallerRole.VENDOR)
        self.assertEqual(args[1:], ("45071234567", 1, 20))

    def test_tokens_by_meter_of_foreign_vendor(self):
        self.mock_ledger.list_by_meter.side_effect = PermissionDeniedError(
            "Vendors may only act on their own records"
        )

        response = self.client.get(
            "/api/v1/tokens",
            params={"meter_number": "45071234567"},
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "permission_denied")


if __name__ == "__main__":
    unittest.main()
