"""Credential entities - interactive sessions and delegated tokens."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from warden.domain.exceptions import ValidationError
from warden.domain.value_objects import Permission


@dataclass
class Session:
    """Interactive session - short-lived, revocable, tied to one actor."""

    id: str
    actor_id: int
    created_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None

    def is_valid(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at


@dataclass
class DelegatedToken:
    """Bearer token narrowed to a subset of its issuer's permissions.

    Expiration is mandatory. The subset is checked against the issuer's
    grants only at issuance; later reductions of the issuer's roles narrow
    the token through the gate's intersection check instead of revoking it.
    """

    id: UUID
    actor_id: int
    name: str
    token_hash: str
    created_at: datetime
    expires_at: datetime
    permissions: frozenset[Permission] = field(default_factory=frozenset)
    revoked_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.expires_at is None:
            raise ValidationError("Delegated token requires an expiration")
        if self.expires_at <= self.created_at:
            raise ValidationError("Delegated token must expire after it is created")

    def is_valid(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at
