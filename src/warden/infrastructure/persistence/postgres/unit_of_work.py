"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from psycopg_pool import AsyncConnectionPool

from warden.infrastructure.persistence.postgres.actor_repository import (
    PostgresActorRepository,
)
from warden.infrastructure.persistence.postgres.role_repository import (
    PostgresRoleRepository,
)
from warden.infrastructure.persistence.postgres.session_repository import (
    PostgresSessionRepository,
)
from warden.infrastructure.persistence.postgres.token_repository import (
    PostgresTokenRepository,
)


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._actors = PostgresActorRepository(self._conn)
        self._roles = PostgresRoleRepository(self._conn)
        self._sessions = PostgresSessionRepository(self._conn)
        self._tokens = PostgresTokenRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def actors(self) -> PostgresActorRepository:
        return self._actors

    @property
    def roles(self) -> PostgresRoleRepository:
        return self._roles

    @property
    def sessions(self) -> PostgresSessionRepository:
        return self._sessions

    @property
    def tokens(self) -> PostgresTokenRepository:
        return self._tokens

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager)."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        uow = PostgresUnitOfWork(pool)
        async with uow:
            try:
                yield uow
                await uow.commit()
            except BaseException:
                await uow.rollback()
                raise

    return factory
