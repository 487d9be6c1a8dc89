"""Role entity for RBAC."""

from dataclasses import dataclass, field

from warden.domain.value_objects import Permission


@dataclass
class Role:
    """Role - named set of permission triples granted to actors."""

    id: int | None
    name: str
    description: str = ""
    permissions: frozenset[Permission] = field(default_factory=frozenset)
