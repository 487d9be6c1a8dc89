"""Permission matching over structured ``(resource, action, scope)`` triples.

Matching is segment-wise: a granted ``resource`` or ``action`` segment
matches when it equals the requested segment or is the wildcard ``*``.
Scope is ordered ``own < group < all`` and a grant satisfies any request
for its own scope or a narrower one. Callers request the narrowest scope
the data requires (see ``ownership.required_scope``).
"""

from collections.abc import Iterable
from dataclasses import dataclass

from warden.domain.value_objects import WILDCARD, Permission, Scope


def _segment_matches(granted: str, requested: str) -> bool:
    return granted == WILDCARD or granted == requested


def grant_applies(grant: Permission, resource: str, action: str, scope: Scope) -> bool:
    """True if a single grant authorises the requested triple."""
    return (
        _segment_matches(grant.resource, resource)
        and _segment_matches(grant.action, action)
        and grant.scope.covers(scope)
    )


def matches(
    granted: Iterable[Permission], resource: str, action: str, scope: Scope
) -> bool:
    """True if any granted permission authorises the requested triple.

    An empty grant set never matches.
    """
    return any(grant_applies(g, resource, action, scope) for g in granted)


def covers(grant: Permission, other: Permission) -> bool:
    """True if ``grant`` authorises every request ``other`` authorises.

    A wildcard segment in ``other`` is only covered by a wildcard in ``grant``.
    """
    return (
        _segment_matches(grant.resource, other.resource)
        and _segment_matches(grant.action, other.action)
        and grant.scope.covers(other.scope)
    )


def is_covered(granted: Iterable[Permission], permission: Permission) -> bool:
    """True if some grant in ``granted`` covers ``permission``."""
    return any(covers(g, permission) for g in granted)


@dataclass(frozen=True)
class EffectiveGrants:
    """Actor's effective permissions for one credential.

    ``role_grants`` is the union of the actor's current role permissions.
    With a delegated token, ``token_grants`` holds the token's declared
    subset and a request must be authorised by both sets.
    """

    role_grants: frozenset[Permission]
    token_grants: frozenset[Permission] | None = None

    @property
    def is_delegated(self) -> bool:
        return self.token_grants is not None

    def permits(self, resource: str, action: str, scope: Scope) -> bool:
        if not matches(self.role_grants, resource, action, scope):
            return False
        if self.token_grants is None:
            return True
        return matches(self.token_grants, resource, action, scope)

    def broadest_scope(self, resource: str, action: str) -> Scope | None:
        """Widest scope held for ``resource:action``, or None."""
        for scope in (Scope.ALL, Scope.GROUP, Scope.OWN):
            if self.permits(resource, action, scope):
                return scope
        return None

    def as_strings(self) -> list[str]:
        """Grants that survive the token narrowing, rendered canonically."""
        if self.token_grants is None:
            return sorted(str(p) for p in self.role_grants)
        return sorted(
            str(p) for p in self.token_grants if is_covered(self.role_grants, p)
        )


NO_GRANTS = EffectiveGrants(role_grants=frozenset())
