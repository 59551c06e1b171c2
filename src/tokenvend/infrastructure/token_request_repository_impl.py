"""Token request repository implementation over a storage abstraction."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from ..domain.entities import TokenRequest, TokenRequestStatus
from ..domain.errors import InvalidStateError, NotFound
from ..domain.repositories import TokenRequestRepository
from .scripts import parse_script_result
from .storage import KeyValueStore


def request_key(request_id: UUID) -> str:
    return f"token_request:{request_id}"


def status_index(
    status: Optional[TokenRequestStatus], vendor_id: Optional[UUID] = None
) -> str:
    """Sorted set of request ids, newest first, optionally by vendor and status."""
    prefix = f"vendor:{vendor_id}:token_requests" if vendor_id else "token_requests"
    if status is None:
        return prefix if vendor_id else f"{prefix}:all"
    return f"{prefix}:status:{status.value}"


class TokenRequestRepositoryImpl(TokenRequestRepository):
    """TokenRequest repository using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _reference_key(reference: str) -> str:
        return f"token_request:reference:{reference}"

    async def create(self, request: TokenRequest) -> TokenRequest:
        await self.store.set(request_key(request.id), request.model_dump_json())

        score = request.created_at.timestamp()
        member = {str(request.id): score}
        await self.store.zadd(status_index(None), member)
        await self.store.zadd(status_index(request.status), member)
        await self.store.zadd(status_index(None, request.vendor_id), member)
        await self.store.zadd(status_index(request.status, request.vendor_id), member)
        return request

    async def get_by_id(self, request_id: UUID) -> Optional[TokenRequest]:
        data = await self.store.get(request_key(request_id))
        if not data:
            return None
        return TokenRequest.model_validate_json(data)

    async def get_by_reference(self, reference: str) -> Optional[TokenRequest]:
        request_id = await self.store.get(self._reference_key(reference))
        if not request_id:
            return None
        return await self.get_by_id(UUID(request_id))

    async def list(
        self,
        vendor_id: Optional[UUID] = None,
        status: Optional[TokenRequestStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[TokenRequest]:
        ids = await self.store.zrevrange(
            status_index(status, vendor_id), skip, skip + limit - 1
        )
        raw = await self.store.mget([request_key(UUID(rid)) for rid in ids])
        return [TokenRequest.model_validate_json(data) for data in raw if data]

    async def count_by_status(
        self, vendor_id: Optional[UUID] = None
    ) -> Dict[TokenRequestStatus, int]:
        counts: Dict[TokenRequestStatus, int] = {}
        for status in TokenRequestStatus:
            counts[status] = await self.store.zcard(status_index(status, vendor_id))
        return counts

    async def compare_and_set(
        self,
        request: TokenRequest,
        expected_version: int,
        previous_status: TokenRequestStatus,
    ) -> TokenRequest:
        updated = request.model_copy(update={"version": expected_version + 1})
        reference_key = (
            self._reference_key(updated.payment_reference)
            if updated.payment_reference
            and previous_status == TokenRequestStatus.INITIATED
            else ""
        )
        result = await self.store.run_script(
            "transition_token_request",
            keys=[
                request_key(updated.id),
                status_index(previous_status),
                status_index(updated.status),
                status_index(previous_status, updated.vendor_id),
                status_index(updated.status, updated.vendor_id),
                reference_key,
            ],
            args=[
                str(expected_version),
                updated.model_dump_json(),
                str(updated.id),
                str(updated.created_at.timestamp()),
            ],
        )
        code, _ = parse_script_result(result)
        if code == 2:
            raise NotFound(f"Token request {updated.id} not found")
        if code == 0:
            raise InvalidStateError(
                f"Token request {updated.id} was modified concurrently; "
                "it keeps its current state"
            )
        return updated
