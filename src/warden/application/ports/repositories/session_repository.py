"""Session repository port."""

from typing import Protocol

from warden.domain.entities import Session


class SessionRepository(Protocol):
    """Port for interactive session lookup."""

    async def get_by_id(self, session_id: str) -> Session | None: ...
