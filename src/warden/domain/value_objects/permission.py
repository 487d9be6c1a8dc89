"""Permission triple - ``<resource>:<action>:<scope>``."""

from dataclasses import dataclass

from warden.domain.exceptions import ConfigurationError
from warden.domain.value_objects.scope import Scope

WILDCARD = "*"


@dataclass(frozen=True, slots=True)
class Permission:
    """Immutable grant. ``resource`` and ``action`` may be the wildcard ``*``.

    Scope never takes a wildcard: the unrestricted grant is ``*:*:all``.
    """

    resource: str
    action: str
    scope: Scope

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Tokenize a permission string, raising ConfigurationError when malformed."""
        if not isinstance(value, str):
            raise ConfigurationError(f"Permission must be a string, got {type(value).__name__}")
        segments = value.strip().split(":")
        if len(segments) != 3:
            raise ConfigurationError(
                f"Permission {value!r} must have exactly 3 segments (resource:action:scope)"
            )
        resource, action, scope = (s.strip() for s in segments)
        if not resource or not action:
            raise ConfigurationError(f"Permission {value!r} has an empty segment")
        if scope == WILDCARD:
            raise ConfigurationError(
                f"Permission {value!r} uses a wildcard scope; use 'all' instead"
            )
        try:
            parsed_scope = Scope(scope)
        except ValueError:
            raise ConfigurationError(
                f"Permission {value!r} has unknown scope {scope!r}"
            ) from None
        return cls(resource=resource, action=action, scope=parsed_scope)

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}:{self.scope.value}"


def parse_permissions(values: list[str]) -> frozenset[Permission]:
    """Parse a list of permission strings; duplicates are a configuration error."""
    parsed: set[Permission] = set()
    for value in values:
        permission = Permission.parse(value)
        if permission in parsed:
            raise ConfigurationError(f"Duplicate permission {permission}")
        parsed.add(permission)
    return frozenset(parsed)
