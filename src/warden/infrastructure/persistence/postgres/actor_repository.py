"""PostgreSQL actor repository implementation."""

from psycopg import AsyncConnection

from warden.domain.entities import Actor


class PostgresActorRepository:
    """Actor repository implementation (read-only)."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, actor_id: int) -> Actor | None:
        """Get actor by id."""
        cur = await self._conn.execute(
            "SELECT id, handle, group_id, is_active, is_locked FROM actor WHERE id = %s",
            (actor_id,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return Actor(id=r[0], handle=r[1], group_id=r[2], is_active=r[3], is_locked=r[4])
