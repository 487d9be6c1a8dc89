"""Repository ports."""

from warden.application.ports.repositories.actor_repository import ActorRepository
from warden.application.ports.repositories.role_repository import RoleRepository
from warden.application.ports.repositories.session_repository import (
    SessionRepository,
)
from warden.application.ports.repositories.token_repository import TokenRepository

__all__ = [
    "ActorRepository",
    "RoleRepository",
    "SessionRepository",
    "TokenRepository",
]
