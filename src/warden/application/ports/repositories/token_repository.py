"""Delegated token repository port."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from warden.domain.entities import DelegatedToken


class TokenRepository(Protocol):
    """Port for delegated token persistence."""

    async def get_by_id(self, token_id: UUID) -> DelegatedToken | None: ...

    async def get_by_hash(self, token_hash: str) -> DelegatedToken | None: ...

    async def create(self, token: DelegatedToken) -> DelegatedToken: ...

    async def revoke(self, token_id: UUID, revoked_at: datetime) -> None: ...
