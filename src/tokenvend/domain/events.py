"""Change notifications emitted after a token request transition commits."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from .entities import TokenRequestStatus
from .shared.serializers import CommonSerializersMixin


class TokenRequestEvent(CommonSerializersMixin, BaseModel):
    """One committed lifecycle transition."""

    event: str
    request_id: UUID
    vendor_id: UUID
    from_status: Optional[TokenRequestStatus] = None
    to_status: TokenRequestStatus
    version: int
    token_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


TokenRequestListener = Callable[[TokenRequestEvent], Awaitable[None]]
