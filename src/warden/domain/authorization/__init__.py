"""Pure authorization logic: permission matching and ownership resolution."""

from warden.domain.authorization.matcher import (
    NO_GRANTS,
    EffectiveGrants,
    covers,
    grant_applies,
    is_covered,
    matches,
)
from warden.domain.authorization.ownership import broadest_scope, required_scope, visible

__all__ = [
    "NO_GRANTS",
    "EffectiveGrants",
    "broadest_scope",
    "covers",
    "grant_applies",
    "is_covered",
    "matches",
    "required_scope",
    "visible",
]
