"""Domain value objects."""

from warden.domain.value_objects.change_action import ChangeAction
from warden.domain.value_objects.permission import WILDCARD, Permission, parse_permissions
from warden.domain.value_objects.request_source import Disposition, RequestSource
from warden.domain.value_objects.scope import Scope
from warden.domain.value_objects.token_hash import TokenHash

__all__ = [
    "WILDCARD",
    "ChangeAction",
    "Disposition",
    "Permission",
    "RequestSource",
    "Scope",
    "TokenHash",
    "parse_permissions",
]
