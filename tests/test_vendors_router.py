"""Unit tests for vendor, customer, pricing and dashboard API routes."""

import unittest
from unittest.mock import AsyncMock
from uuid import uuid4
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tokenvend.api.dependencies import (
    get_pricing_service,
    get_quota_service,
    get_vendor_service,
    get_verification_service,
)
from tokenvend.api.errors import register_exception_handlers
from tokenvend.api.routers import customers, dashboard, pricing, vendors
from tokenvend.application.dtos import (
    ActivityDTO,
    AdminDashboardDTO,
    CustomerResponseDTO,
    PricingResponseDTO,
    VendorDashboardDTO,
    VendorResponseDTO,
    VerificationResponseDTO,
)
from tokenvend.domain.entities import TokenRequestStatus
from tokenvend.domain.errors import (
    ConflictError,
    NotFound,
    PermissionDeniedError,
    QuotaExceeded,
    ValidationError,
)


class TestVendorsRouter(unittest.TestCase):
    """Test cases for the vendor-facing routers."""

    def setUp(self):
        """Set up test fixtures."""
        self.app = FastAPI()
        for module in (vendors, customers, pricing, dashboard):
            self.app.include_router(module.router, prefix="/api/v1")
        register_exception_handlers(self.app)

        self.vendor_id = uuid4()
        self.admin_id = uuid4()
        self.request_id = uuid4()
        self.now = datetime.now(timezone.utc)
        self.vendor_response = VendorResponseDTO(
            id=self.vendor_id,
            name="Corner Shop",
            email="shop@example.com",
            approved=True,
            approved_at=self.now,
            customer_limit=1000,
            customer_count=0,
            pending_upgrade=False,
            pending_upgrade_slots=None,
            pending_upgrade_amount=None,
            pending_upgrade_reference=None,
            created_at=self.now,
            updated_at=None,
        )
        self.customer_response = CustomerResponseDTO(
            id=uuid4(),
            vendor_id=self.vendor_id,
            meter_number="45071234567",
            disco="IKEDC",
            name="Ada Obi",
            address=None,
            phone=None,
            verification=VerificationResponseDTO(is_verified=False, rejected=False),
            created_at=self.now,
            updated_at=None,
        )

        self.mock_vendor_service = AsyncMock()
        self.mock_quota_service = AsyncMock()
        self.mock_verification_service = AsyncMock()
        self.mock_pricing_service = AsyncMock()
        overrides = self.app.dependency_overrides
        overrides[get_vendor_service] = lambda: self.mock_vendor_service
        overrides[get_quota_service] = lambda: self.mock_quota_service
        overrides[get_verification_service] = lambda: self.mock_verification_service
        overrides[get_pricing_service] = lambda: self.mock_pricing_service

        self.client = TestClient(self.app)
        self.vendor_headers = {
            "X-Caller-Id": str(self.vendor_id),
            "X-Caller-Role": "vendor",
        }
        self.admin_headers = {"X-Caller-Id": str(self.admin_id), "X-Caller-Role": "admin"}

    def tearDown(self):
        """Clean up after tests."""
        self.app.dependency_overrides.clear()

    def test_create_vendor_success(self):
        self.mock_vendor_service.create_vendor.return_value = self.vendor_response

        response = self.client.post(
            "/api/v1/vendors",
            json={"name": "Corner Shop", "email": "shop@example.com"},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["email"], "shop@example.com")
        dto = self.mock_vendor_service.create_vendor.call_args[0][1]
        self.assertEqual(dto.name, "Corner Shop")

    def test_create_vendor_duplicate_email(self):
        self.mock_vendor_service.create_vendor.side_effect = ConflictError(
            "Vendor with email shop@example.com already exists"
        )

        response = self.client.post(
            "/api/v1/vendors",
            json={"name": "Corner Shop", "email": "shop@example.com"},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "conflict")

    def test_invalid_caller_role_rejected(self):
        response = self.client.get(
            f"/api/v1/vendors/{self.vendor_id}",
            headers={"X-Caller-Id": str(self.vendor_id), "X-Caller-Role": "root"},
        )
        self.assertEqual(response.status_code, 422)
        self.mock_vendor_service.get_vendor.assert_not_called()

    def test_register_customer_success(self):
        self.mock_quota_service.register_customer.return_value = (
            self.customer_response
        )

        response = self.client.post(
            f"/api/v1/vendors/{self.vendor_id}/customers",
            json={
                "meter_number": "45071234567",
                "disco": "IKEDC",
                "name": "Ada Obi",
                "last_token": "1234-5678-9012-3456-7890",
            },
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertFalse(body["verification"]["is_verified"])
        self.assertIsNone(body["verification"]["KRN"])
        args = self.mock_quota_service.register_customer.call_args[0]
        self.assertEqual(args[1], self.vendor_id)

    def test_register_customer_quota_exceeded(self):
        self.mock_quota_service.register_customer.side_effect = QuotaExceeded(
            self.vendor_id, 10, 10
        )

        response = self.client.post(
            f"/api/v1/vendors/{self.vendor_id}/customers",
            json={
                "meter_number": "45071234567",
                "disco": "IKEDC",
                "last_token": "1234-5678-9012-3456-7890",
            },
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body["code"], "quota_exceeded")
        self.assertEqual(body["customer_count"], 10)
        self.assertEqual(body["customer_limit"], 10)

    def test_register_customer_validation_error(self):
        self.mock_quota_service.register_customer.side_effect = ValidationError(
            "Meter number must be 6 to 20 digits"
        )

        response = self.client.post(
            f"/api/v1/vendors/{self.vendor_id}/customers",
            json={"meter_number": "123", "disco": "IKEDC", "last_token": "12345678"},
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["code"], "validation_error")

    def test_request_upgrade_rejects_non_positive_slots(self):
        response = self.client.post(
            f"/api/v1/vendors/{self.vendor_id}/upgrades",
            json={"additional_slots": 0},
            headers=self.vendor_headers,
        )
        self.assertEqual(response.status_code, 422)
        self.mock_quota_service.request_upgrade.assert_not_called()

    def test_get_verification_not_found(self):
        self.mock_verification_service.get_verification.side_effect = NotFound(
            "Meter 45071234567 is not registered"
        )

        response = self.client.get(
            "/api/v1/verifications/45071234567",
            params={"disco": "IKEDC"},
            headers=self.vendor_headers,
        )

        self.assertEqual(response.status_code, 404)
        args = self.mock_verification_service.get_verification.call_args[0]
        self.assertEqual(args[0].id, self.vendor_id)
        self.assertEqual(args[1:], ("45071234567", "IKEDC"))

    def test_get_verification_of_foreign_meter(self):
        self.mock_verification_service.get_verification.side_effect = (
            PermissionDeniedError("Vendors may only act on their own records")
        )

        response = self.client.get(
            "/api/v1/verifications/45071234567", headers=self.vendor_headers
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "permission_denied")
        self.assertNotIn("MTK1", response.json())

    def test_set_price(self):
        self.mock_pricing_service.set_price.return_value = PricingResponseDTO(
            disco="IKEDC",
            price_per_unit=6500,
            updated_at=self.now,
            updated_by=self.admin_id,
        )

        response = self.client.put(
            "/api/v1/pricing/IKEDC",
            json={"price_per_unit": 6500},
            headers=self.admin_headers,
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["price_per_unit"], 6500)
        args = self.mock_pricing_service.set_price.call_args[0]
        self.assertEqual(args[1:], ("IKEDC", 6500))

    def test_set_negative_price_rejected(self):
        response = self.client.put(
            "/api/v1/pricing/IKEDC",
            json={"price_per_unit": -1},
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 422)

    def test_dashboards(self):
        self.mock_vendor_service.vendor_dashboard.return_value = VendorDashboardDTO(
            vendor_id=self.vendor_id,
            customer_count=3,
            customer_limit=1000,
            issued_tokens=7,
            pending_requests=2,
            recent_activities=[
                ActivityDTO(
                    event="confirm_payment",
                    request_id=self.request_id,
                    from_status=TokenRequestStatus.PAYMENT_PENDING,
                    to_status=TokenRequestStatus.PAYMENT_CONFIRMED,
                    created_at=self.now,
                )
            ],
        )
        self.mock_vendor_service.admin_dashboard.return_value = AdminDashboardDTO(
            pending_vendors=1,
            pending_verifications=4,
            awaiting_decision=2,
            requests_by_status={TokenRequestStatus.PAYMENT_CONFIRMED: 2},
        )

        vendor_view = self.client.get(
            f"/api/v1/dashboard/vendor/{self.vendor_id}", headers=self.vendor_headers
        )
        admin_view = self.client.get(
            "/api/v1/dashboard/admin", headers=self.admin_headers
        )

        self.assertEqual(vendor_view.status_code, 200)
        self.assertEqual(vendor_view.json()["issued_tokens"], 7)
        [activity] = vendor_view.json()["recent_activities"]
        self.assertEqual(activity["event"], "confirm_payment")
        self.assertEqual(activity["request_id"], str(self.request_id))
        self.assertEqual(activity["to_status"], "payment_confirmed")
        self.assertIsNone(activity["token_id"])
        self.assertEqual(admin_view.status_code, 200)
        self.assertEqual(
            admin_view.json()["requests_by_status"], {"payment_confirmed": 2}
        )

    def test_unexpected_error_is_internal(self):
        self.mock_vendor_service.list_vendors.side_effect = RuntimeError("boom")
        client = TestClient(self.app, raise_server_exceptions=False)

        response = client.get("/api/v1/vendors", headers=self.admin_headers)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["code"], "internal_error")


if __name__ == "__main__":
    unittest.main()
