"""Role repository port."""

from typing import Protocol

from warden.domain.entities import Role


class RoleRepository(Protocol):
    """Port for role persistence."""

    async def get_by_id(self, role_id: int) -> Role | None: ...

    async def get_by_name(self, name: str) -> Role | None: ...

    async def list_for_actor(self, actor_id: int) -> list[Role]: ...

    async def create(self, role: Role) -> Role: ...

    async def update(self, role: Role) -> None: ...

    async def delete(self, role_id: int) -> None: ...

    async def count_actors(self, role_id: int) -> int: ...
