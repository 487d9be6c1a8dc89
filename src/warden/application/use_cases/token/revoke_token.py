"""Revoke delegated token use case."""

from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from warden.application.dto.authorization import GateVerdict
from warden.domain.authorization import required_scope
from warden.domain.entities import RecordRef
from warden.domain.exceptions import AuthenticationRequired, NotFound, PermissionDenied


def _now() -> datetime:
    return datetime.now(UTC)


class RevokeTokenUseCase:
    """Revoke a delegated token. Tokens are owned by their issuing actor."""

    def __init__(
        self,
        unit_of_work_factory: type,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    async def execute(self, verdict: GateVerdict, token_id: UUID) -> None:
        actor = verdict.actor
        if actor is None:
            raise AuthenticationRequired("Token revocation requires an identified actor")

        async with self._uow_factory() as uow:
            token = await uow.tokens.get_by_id(token_id)
            if not token:
                raise NotFound(f"Token {token_id} not found")

            scope = required_scope(actor, RecordRef(owner_actor_id=token.actor_id))
            if not verdict.grants.permits("token", "delete", scope):
                raise PermissionDenied("User may not revoke this token")

            if token.revoked_at is None:
                await uow.tokens.revoke(token.id, self._clock())
