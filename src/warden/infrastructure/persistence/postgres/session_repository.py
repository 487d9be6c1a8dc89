"""PostgreSQL session repository implementation."""

from psycopg import AsyncConnection

from warden.domain.entities import Session


class PostgresSessionRepository:
    """Interactive session lookup."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, session_id: str) -> Session | None:
        """Get session by id."""
        cur = await self._conn.execute(
            "SELECT id, actor_id, created_at, expires_at, revoked_at "
            "FROM actor_session WHERE id = %s",
            (session_id,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return Session(
            id=r[0],
            actor_id=r[1],
            created_at=r[2],
            expires_at=r[3],
            revoked_at=r[4],
        )
