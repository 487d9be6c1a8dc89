"""PostgreSQL role repository implementation."""

from psycopg import AsyncConnection

from warden.domain.entities import Role
from warden.domain.value_objects import Permission, Scope


class PostgresRoleRepository:
    """Role repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, role_id: int) -> Role | None:
        """Get role by id."""
        cur = await self._conn.execute(
            "SELECT id, name, description FROM role WHERE id = %s",
            (role_id,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        permissions = await self._permissions_for([r[0]])
        return Role(id=r[0], name=r[1], description=r[2] or "", permissions=permissions.get(r[0], frozenset()))

    async def get_by_name(self, name: str) -> Role | None:
        """Get role by name."""
        cur = await self._conn.execute(
            "SELECT id, name, description FROM role WHERE name = %s",
            (name,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        permissions = await self._permissions_for([r[0]])
        return Role(id=r[0], name=r[1], description=r[2] or "", permissions=permissions.get(r[0], frozenset()))

    async def list_for_actor(self, actor_id: int) -> list[Role]:
        """List roles assigned to actor, with their permissions."""
        cur = await self._conn.execute(
            "SELECT r.id, r.name, r.description FROM role r "
            "JOIN actor_role ar ON ar.role_id = r.id WHERE ar.actor_id = %s",
            (actor_id,),
        )
        rows = await cur.fetchall()
        permissions = await self._permissions_for([r[0] for r in rows])
        return [
            Role(id=r[0], name=r[1], description=r[2] or "", permissions=permissions.get(r[0], frozenset()))
            for r in rows
        ]

    async def create(self, role: Role) -> Role:
        """Create role and its permissions."""
        cur = await self._conn.execute(
            "INSERT INTO role (name, description) VALUES (%s, %s) RETURNING id",
            (role.name, role.description),
        )
        r = await cur.fetchone()
        role.id = r[0]
        await self._insert_permissions(role)
        return role

    async def update(self, role: Role) -> None:
        """Update role description and replace its permission set."""
        await self._conn.execute(
            "UPDATE role SET description = %s WHERE id = %s",
            (role.description, role.id),
        )
        await self._conn.execute(
            "DELETE FROM role_permission WHERE role_id = %s",
            (role.id,),
        )
        await self._insert_permissions(role)

    async def delete(self, role_id: int) -> None:
        """Delete role."""
        await self._conn.execute("DELETE FROM role WHERE id = %s", (role_id,))

    async def count_actors(self, role_id: int) -> int:
        """Number of actors holding role."""
        cur = await self._conn.execute(
            "SELECT count(*) FROM actor_role WHERE role_id = %s",
            (role_id,),
        )
        r = await cur.fetchone()
        return r[0]

    async def _permissions_for(self, role_ids: list[int]) -> dict[int, frozenset[Permission]]:
        if not role_ids:
            return {}
        cur = await self._conn.execute(
            "SELECT role_id, resource, action, scope FROM role_permission WHERE role_id = ANY(%s)",
            (role_ids,),
        )
        rows = await cur.fetchall()
        by_role: dict[int, set[Permission]] = {}
        for r in rows:
            by_role.setdefault(r[0], set()).add(
                Permission(resource=r[1], action=r[2], scope=Scope(r[3]))
            )
        return {role_id: frozenset(perms) for role_id, perms in by_role.items()}

    async def _insert_permissions(self, role: Role) -> None:
        if not role.permissions:
            return
        async with self._conn.cursor() as cur:
            await cur.executemany(
                "INSERT INTO role_permission (role_id, resource, action, scope) "
                "VALUES (%s, %s, %s, %s)",
                [(role.id, p.resource, p.action, p.scope.value) for p in role.permissions],
            )
