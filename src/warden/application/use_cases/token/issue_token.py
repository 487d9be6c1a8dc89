"""Issue delegated token use case."""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from warden.application.dto.authorization import GateVerdict
from warden.application.dto.token_dto import IssuedToken, TokenIssueInput
from warden.domain.authorization import is_covered
from warden.domain.entities import DelegatedToken
from warden.domain.exceptions import AuthenticationRequired, PermissionDenied, ValidationError
from warden.domain.value_objects import TokenHash, parse_permissions


def _now() -> datetime:
    return datetime.now(UTC)


class IssueTokenUseCase:
    """Issue a bearer token limited to a subset of the issuer's current grants."""

    def __init__(
        self,
        unit_of_work_factory: type,
        max_lifetime: timedelta = timedelta(days=90),
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._max_lifetime = max_lifetime
        self._clock = clock

    async def execute(self, verdict: GateVerdict, data: TokenIssueInput) -> IssuedToken:
        """Issue a token for the verdict's actor.

        Only interactive credentials may issue; every requested grant must be
        covered by the issuer's role grants, and expiry is mandatory.
        """
        actor = verdict.actor
        if actor is None:
            raise AuthenticationRequired("Token issuance requires an identified actor")
        if verdict.grants.is_delegated:
            raise PermissionDenied("Delegated tokens cannot issue further tokens")

        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Token name is required")
        if data.expires_in_seconds is None or data.expires_in_seconds <= 0:
            raise ValidationError("Token expiry is mandatory and must be positive")
        lifetime = timedelta(seconds=data.expires_in_seconds)
        if lifetime > self._max_lifetime:
            raise ValidationError(
                f"Token lifetime exceeds maximum of {self._max_lifetime.days} days"
            )
        if not data.permissions:
            raise ValidationError("Token must carry at least one permission")

        permissions = parse_permissions(data.permissions)
        exceeding = sorted(
            str(p) for p in permissions if not is_covered(verdict.grants.role_grants, p)
        )
        if exceeding:
            raise PermissionDenied(
                f"Requested permissions exceed issuer grants: {', '.join(exceeding)}"
            )

        secret = secrets.token_urlsafe(32)
        now = self._clock()
        token = DelegatedToken(
            id=uuid4(),
            actor_id=actor.id,
            name=name,
            token_hash=TokenHash.of(secret).value,
            created_at=now,
            expires_at=now + lifetime,
            permissions=permissions,
        )
        async with self._uow_factory() as uow:
            await uow.tokens.create(token)

        return IssuedToken(
            id=token.id,
            name=token.name,
            token=secret,
            permissions=sorted(str(p) for p in permissions),
            created_at=token.created_at,
            expires_at=token.expires_at,
        )
