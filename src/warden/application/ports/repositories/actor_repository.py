"""Actor repository port."""

from typing import Protocol

from warden.domain.entities import Actor


class ActorRepository(Protocol):
    """Port for reading actors."""

    async def get_by_id(self, actor_id: int) -> Actor | None: ...
