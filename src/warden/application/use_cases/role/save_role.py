"""Save role use case."""

from warden.domain.entities import Role
from warden.domain.exceptions import ValidationError
from warden.domain.value_objects import parse_permissions


class SaveRoleUseCase:
    """Create or update a role; permission strings are validated here, not at match time."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        name: str,
        permissions: list[str],
        description: str = "",
    ) -> Role:
        """Save role ``name`` with exactly ``permissions``. Raises ConfigurationError."""
        name = name.strip()
        if not name:
            raise ValidationError("Role name is required")
        parsed = parse_permissions(permissions)

        async with self._uow_factory() as uow:
            existing = await uow.roles.get_by_name(name)
            if existing:
                existing.permissions = parsed
                existing.description = description or existing.description
                await uow.roles.update(existing)
                return existing

            role = Role(id=None, name=name, description=description, permissions=parsed)
            return await uow.roles.create(role)
