"""Delete role use case."""

from warden.domain.exceptions import NotFound, RoleInUse


class DeleteRoleUseCase:
    """Delete a role that no actor references any more."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, name: str) -> None:
        async with self._uow_factory() as uow:
            role = await uow.roles.get_by_name(name)
            if not role:
                raise NotFound(f"Role {name} not found")
            assigned = await uow.roles.count_actors(role.id)
            if assigned:
                raise RoleInUse(f"Role {name} is assigned to {assigned} actor(s); reassign first")
            await uow.roles.delete(role.id)
