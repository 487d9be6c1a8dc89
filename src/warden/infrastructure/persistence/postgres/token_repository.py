"""PostgreSQL delegated token repository implementation."""

from datetime import datetime
from uuid import UUID

from psycopg import AsyncConnection

from warden.domain.entities import DelegatedToken
from warden.domain.value_objects import Permission

_COLUMNS = "id, actor_id, name, token_hash, permissions, created_at, expires_at, revoked_at"


def _row_to_token(r: tuple) -> DelegatedToken:
    return DelegatedToken(
        id=r[0],
        actor_id=r[1],
        name=r[2],
        token_hash=r[3],
        permissions=frozenset(Permission.parse(p) for p in r[4] or []),
        created_at=r[5],
        expires_at=r[6],
        revoked_at=r[7],
    )


class PostgresTokenRepository:
    """Delegated token repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, token_id: UUID) -> DelegatedToken | None:
        """Get token by id."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM delegated_token WHERE id = %s",
            (token_id,),
        )
        r = await cur.fetchone()
        return _row_to_token(r) if r else None

    async def get_by_hash(self, token_hash: str) -> DelegatedToken | None:
        """Get token by SHA-256 digest of its bearer value."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM delegated_token WHERE token_hash = %s",
            (token_hash,),
        )
        r = await cur.fetchone()
        return _row_to_token(r) if r else None

    async def create(self, token: DelegatedToken) -> DelegatedToken:
        """Create token."""
        await self._conn.execute(
            f"INSERT INTO delegated_token ({_COLUMNS}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s)",
            (
                token.id,
                token.actor_id,
                token.name,
                token.token_hash,
                sorted(str(p) for p in token.permissions),
                token.created_at,
                token.expires_at,
                token.revoked_at,
            ),
        )
        return token

    async def revoke(self, token_id: UUID, revoked_at: datetime) -> None:
        """Mark token revoked."""
        await self._conn.execute(
            "UPDATE delegated_token SET revoked_at = %s WHERE id = %s AND revoked_at IS NULL",
            (revoked_at, token_id),
        )
