"""Ownership resolution - which scope a record requires for an actor."""

from warden.domain.authorization.matcher import EffectiveGrants
from warden.domain.entities import Actor, OwnedRecord
from warden.domain.value_objects import Scope


def required_scope(actor: Actor, record: OwnedRecord) -> Scope:
    """Narrowest scope a grant must have to reach ``record``."""
    if record.owner_actor_id is not None and record.owner_actor_id == actor.id:
        return Scope.OWN
    if record.owner_group_id is not None and record.owner_group_id == actor.group_id:
        return Scope.GROUP
    return Scope.ALL


def broadest_scope(grants: EffectiveGrants, resource: str, action: str) -> Scope | None:
    """Widest scope the actor holds for ``resource:action`` (for collection queries)."""
    return grants.broadest_scope(resource, action)


def visible(actor: Actor, record: OwnedRecord, scope: Scope) -> bool:
    """True if a record is reachable with a grant of ``scope``; filters list results."""
    return scope.covers(required_scope(actor, record))
