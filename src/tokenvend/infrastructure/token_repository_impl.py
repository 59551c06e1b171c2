"""Issued token ledger implementation over a storage abstraction."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from ..domain.entities import Token, TokenRequest, TokenRequestStatus
from ..domain.errors import AlreadyIssued, InvalidStateError, NotFound
from ..domain.repositories import TokenRepository
from .scripts import parse_script_result
from .storage import KeyValueStore
from .token_request_repository_impl import request_key, status_index


class TokenRepositoryImpl(TokenRepository):
    """Append-only token ledger using a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _token_key(token_id: UUID) -> str:
        return f"token:{token_id}"

    @staticmethod
    def _request_token_key(request_id: UUID) -> str:
        return f"token_request:{request_id}:token"

    async def _load_many(self, ids: List[str]) -> List[Token]:
        raw = await self.store.mget([f"token:{token_id}" for token_id in ids])
        return [Token.model_validate_json(data) for data in raw if data]

    async def record(
        self,
        token: Token,
        request: TokenRequest,
        expected_version: int,
        previous_status: TokenRequestStatus,
    ) -> Token:
        updated = request.model_copy(update={"version": expected_version + 1})
        result = await self.store.run_script(
            "issue_token",
            keys=[
                request_key(request.id),
                self._request_token_key(request.id),
                self._token_key(token.id),
                f"tokens:meter:{token.meter_number}",
                f"vendor:{token.vendor_id}:tokens",
                status_index(previous_status),
                status_index(updated.status),
                status_index(previous_status, request.vendor_id),
                status_index(updated.status, request.vendor_id),
            ],
            args=[
                str(expected_version),
                updated.model_dump_json(),
                token.model_dump_json(),
                str(request.id),
                str(token.id),
                str(request.created_at.timestamp()),
                str(token.issued_at.timestamp()),
            ],
        )
        code, payload = parse_script_result(result)
        if code == 4:
            assert payload is not None
            raise AlreadyIssued(Token.model_validate_json(payload))
        if code == 2:
            raise NotFound(f"Token request {request.id} not found")
        if code == 0:
            raise InvalidStateError(
                f"Token request {request.id} was modified concurrently; "
                "it keeps its current state"
            )
        return token

    async def get_by_id(self, token_id: UUID) -> Optional[Token]:
        data = await self.store.get(self._token_key(token_id))
        if not data:
            return None
        return Token.model_validate_json(data)

    async def get_by_request(self, request_id: UUID) -> Optional[Token]:
        token_id = await self.store.get(self._request_token_key(request_id))
        if not token_id:
            return None
        return await self.get_by_id(UUID(token_id))

    async def list_by_meter(
        self, meter_number: str, skip: int = 0, limit: int = 20
    ) -> List[Token]:
        ids = await self.store.zrevrange(
            f"tokens:meter:{meter_number}", skip, skip + limit - 1
        )
        return await self._load_many(ids)

    async def count_by_meter(self, meter_number: str) -> int:
        return await self.store.zcard(f"tokens:meter:{meter_number}")

    async def list_by_vendor(
        self, vendor_id: UUID, skip: int = 0, limit: int = 20
    ) -> List[Token]:
        ids = await self.store.zrevrange(
            f"vendor:{vendor_id}:tokens", skip, skip + limit - 1
        )
        return await self._load_many(ids)

    async def count_by_vendor(self, vendor_id: UUID) -> int:
        return await self.store.zcard(f"vendor:{vendor_id}:tokens")
