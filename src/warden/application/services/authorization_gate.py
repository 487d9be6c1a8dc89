"""Authorization gate - every request passes through here before business logic.

States per request::

    RECEIVED -> public check -> ALLOWED_PUBLIC
                             -> credential resolution -> permission check -> GRANTED | DENIED

Every branch ends in a GateVerdict; anonymous access to a protected endpoint
is denied with AUTH_REQUIRED, an unusable credential with AUTH_INVALID.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID

from warden.application.dto.authorization import (
    Credentials,
    Decision,
    GateRequest,
    GateVerdict,
)
from warden.domain.authorization import EffectiveGrants, required_scope
from warden.domain.entities import Actor, OwnedRecord, Role
from warden.domain.error_codes import ErrorCode
from warden.domain.value_objects import Permission, TokenHash

logger = logging.getLogger(__name__)

GrantLoader = Callable[[], Awaitable[EffectiveGrants | None]]


def _now() -> datetime:
    return datetime.now(UTC)


def _role_grants(roles: Iterable[Role]) -> frozenset[Permission]:
    grants: set[Permission] = set()
    for role in roles:
        grants.update(role.permissions)
    return frozenset(grants)


@dataclass
class _Identity:
    """Actor resolved from a credential."""

    actor: Actor
    session_id: str | None = None
    token_id: UUID | None = None
    token_grants: frozenset[Permission] | None = None


class AuthorizationGate:
    """Public check, credential resolution and permission check for one request."""

    def __init__(
        self,
        unit_of_work_factory: type,
        public_endpoints: Iterable[str] = (),
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._public_endpoints = frozenset(public_endpoints)
        self._clock = clock

    def is_public(self, endpoint: str) -> bool:
        return endpoint in self._public_endpoints

    async def evaluate(self, request: GateRequest) -> GateVerdict:
        """Decide GRANTED or DENIED for ``request``."""
        if self.is_public(request.endpoint):
            return GateVerdict(decision=Decision.GRANTED, public=True)

        if not request.credentials.present:
            logger.debug("Denied %s: no credential", request.endpoint)
            return GateVerdict.deny(ErrorCode.AUTH_REQUIRED)

        async with self._uow_factory() as uow:
            identity = await self._resolve(uow, request.credentials)
            if identity is None:
                logger.debug("Denied %s: unusable credential", request.endpoint)
                return GateVerdict.deny(ErrorCode.AUTH_INVALID)
            roles = await uow.roles.list_for_actor(identity.actor.id)

        grants = EffectiveGrants(
            role_grants=_role_grants(roles), token_grants=identity.token_grants
        )
        return self._check(
            identity.actor,
            grants,
            request.resource,
            request.action,
            request.record,
            session_id=identity.session_id,
            token_id=identity.token_id,
        )

    def check_record(
        self, verdict: GateVerdict, resource: str, action: str, record: OwnedRecord
    ) -> GateVerdict:
        """Re-check a granted verdict against one record, without a store lookup."""
        if not verdict.granted:
            return verdict
        if verdict.actor is None:
            return GateVerdict.deny(ErrorCode.AUTH_REQUIRED)
        return self._check(
            verdict.actor,
            verdict.grants,
            resource,
            action,
            record,
            session_id=verdict.session_id,
            token_id=verdict.token_id,
        )

    def grant_loader(self, verdict: GateVerdict) -> GrantLoader:
        """Coroutine function re-reading the verdict's current grants.

        It returns None once the credential or the actor is no longer usable.
        """

        async def load() -> EffectiveGrants | None:
            if verdict.actor is None:
                return None
            async with self._uow_factory() as uow:
                identity = await self._reload(uow, verdict)
                if identity is None:
                    return None
                roles = await uow.roles.list_for_actor(identity.actor.id)
            return EffectiveGrants(
                role_grants=_role_grants(roles), token_grants=identity.token_grants
            )

        return load

    async def _resolve(self, uow, credentials: Credentials) -> _Identity | None:
        now = self._clock()
        if credentials.bearer_token:
            token_hash = TokenHash.of(credentials.bearer_token)
            token = await uow.tokens.get_by_hash(token_hash.value)
            if token is None or not token.is_valid(now):
                return None
            actor = await self._usable_actor(uow, token.actor_id)
            if actor is None:
                return None
            return _Identity(actor, token_id=token.id, token_grants=token.permissions)

        session = await uow.sessions.get_by_id(credentials.session_id)
        if session is None or not session.is_valid(now):
            return None
        actor = await self._usable_actor(uow, session.actor_id)
        if actor is None:
            return None
        return _Identity(actor, session_id=session.id)

    async def _reload(self, uow, verdict: GateVerdict) -> _Identity | None:
        now = self._clock()
        if verdict.token_id is not None:
            token = await uow.tokens.get_by_id(verdict.token_id)
            if token is None or not token.is_valid(now):
                return None
            actor = await self._usable_actor(uow, token.actor_id)
            if actor is None:
                return None
            return _Identity(actor, token_id=token.id, token_grants=token.permissions)
        if verdict.session_id is not None:
            session = await uow.sessions.get_by_id(verdict.session_id)
            if session is None or not session.is_valid(now):
                return None
        actor = await self._usable_actor(uow, verdict.actor.id)
        if actor is None:
            return None
        return _Identity(actor, session_id=verdict.session_id)

    async def _usable_actor(self, uow, actor_id: int) -> Actor | None:
        actor = await uow.actors.get_by_id(actor_id)
        if actor is None or not actor.can_authenticate:
            return None
        return actor

    def _check(
        self,
        actor: Actor,
        grants: EffectiveGrants,
        resource: str | None,
        action: str | None,
        record: OwnedRecord | None,
        *,
        session_id: str | None,
        token_id: UUID | None,
    ) -> GateVerdict:
        verdict = GateVerdict(
            decision=Decision.GRANTED,
            actor=actor,
            grants=grants,
            session_id=session_id,
            token_id=token_id,
        )
        if resource is None or action is None:
            return verdict

        if record is not None:
            scope = required_scope(actor, record)
            if grants.permits(resource, action, scope):
                return replace(verdict, scope=scope)
        else:
            scope = grants.broadest_scope(resource, action)
            if scope is not None:
                return replace(verdict, scope=scope)

        logger.debug("Denied actor %s: %s:%s", actor.id, resource, action)
        return replace(
            verdict, decision=Decision.DENIED, reason=ErrorCode.PERMISSION_DENIED
        )
