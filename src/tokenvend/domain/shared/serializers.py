"""Shared Pydantic serializers used across DTOs/entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import field_serializer


class DatetimeSerializerMixin:
    """Serialize common datetime fields consistently."""

    @field_serializer("created_at", check_fields=False)
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()

    @field_serializer(
        "updated_at",
        "approved_at",
        "verified_at",
        "rejected_at",
        "payment_selected_at",
        "paid_at",
        "decided_at",
        "cancelled_at",
        "issued_at",
        check_fields=False,
    )
    def serialize_optional_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None


class CommonSerializersMixin(DatetimeSerializerMixin):
    """Common field serializers shared across multiple models.

    Uses `check_fields=False` so the mixin can be used by models that don't
    declare all fields (e.g., some models may have `created_at` but not `id`).
    """

    @field_serializer(
        "id",
        "vendor_id",
        "customer_id",
        "token_request_id",
        "token_id",
        "decided_by",
        "issued_by",
        "updated_by",
        check_fields=False,
    )
    def serialize_uuid(self, value: Optional[UUID]) -> Optional[str]:
        return str(value) if value is not None else None
