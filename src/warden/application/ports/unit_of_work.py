"""Unit of Work port - transactional boundary."""

from collections.abc import AsyncIterator
from typing import Protocol

from warden.application.ports.repositories.actor_repository import ActorRepository
from warden.application.ports.repositories.role_repository import RoleRepository
from warden.application.ports.repositories.session_repository import (
    SessionRepository,
)
from warden.application.ports.repositories.token_repository import TokenRepository


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def actors(self) -> ActorRepository: ...

    @property
    def roles(self) -> RoleRepository: ...

    @property
    def sessions(self) -> SessionRepository: ...

    @property
    def tokens(self) -> TokenRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for creating UnitOfWork instances."""

    async def __call__(self) -> AsyncIterator[UnitOfWork]: ...
