"""Authorization gate DTOs."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

from warden.domain.authorization import NO_GRANTS, EffectiveGrants
from warden.domain.entities import Actor, OwnedRecord
from warden.domain.error_codes import ErrorCode
from warden.domain.value_objects import Scope


@dataclass(frozen=True)
class Credentials:
    """Credential forms presented with a request."""

    session_id: str | None = None
    bearer_token: str | None = None

    @property
    def present(self) -> bool:
        return bool(self.session_id or self.bearer_token)


@dataclass(frozen=True)
class GateRequest:
    """One authorization question: may these credentials do this on this endpoint."""

    endpoint: str
    resource: str | None = None
    action: str | None = None
    credentials: Credentials = field(default_factory=Credentials)
    record: OwnedRecord | None = None


class Decision(StrEnum):
    """Terminal gate states."""

    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class GateVerdict:
    """Gate result: decision, resolved actor and, on denial, a typed reason."""

    decision: Decision
    actor: Actor | None = None
    reason: ErrorCode | None = None
    grants: EffectiveGrants = NO_GRANTS
    scope: Scope | None = None
    public: bool = False
    session_id: str | None = None
    token_id: UUID | None = None

    @property
    def granted(self) -> bool:
        return self.decision is Decision.GRANTED

    @classmethod
    def deny(cls, reason: ErrorCode, actor: Actor | None = None, **kwargs) -> "GateVerdict":
        return cls(decision=Decision.DENIED, actor=actor, reason=reason, **kwargs)
