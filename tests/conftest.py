"""Pytest fixtures for Warden tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from warden.domain.entities import Actor, DelegatedToken, Role, Session
from warden.domain.exceptions import LedgerUnavailable
from warden.domain.value_objects import TokenHash, parse_permissions

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


# --- Fake repositories ---


class FakeActorRepository:
    """In-memory actor repository."""

    def __init__(self) -> None:
        self._by_id: dict[int, Actor] = {}

    async def get_by_id(self, actor_id: int) -> Actor | None:
        return self._by_id.get(actor_id)

    def add(self, actor: Actor) -> Actor:
        """Helper to add actor for tests."""
        self._by_id[actor.id] = actor
        return actor


class FakeRoleRepository:
    """In-memory role repository with actor_role M:N."""

    def __init__(self) -> None:
        self._by_id: dict[int, Role] = {}
        self._assignments: dict[int, set[int]] = {}  # actor_id -> {role_id}
        self._next_id = 1

    async def get_by_id(self, role_id: int) -> Role | None:
        return self._by_id.get(role_id)

    async def get_by_name(self, name: str) -> Role | None:
        for role in self._by_id.values():
            if role.name == name:
                return role
        return None

    async def list_for_actor(self, actor_id: int) -> list[Role]:
        return [
            self._by_id[role_id]
            for role_id in sorted(self._assignments.get(actor_id, set()))
            if role_id in self._by_id
        ]

    async def create(self, role: Role) -> Role:
        saved = replace(role, id=self._next_id)
        self._next_id += 1
        self._by_id[saved.id] = saved
        return saved

    async def update(self, role: Role) -> None:
        self._by_id[role.id] = role

    async def delete(self, role_id: int) -> None:
        self._by_id.pop(role_id, None)

    async def count_actors(self, role_id: int) -> int:
        return sum(1 for roles in self._assignments.values() if role_id in roles)

    def add_role(self, name: str, permissions: list[str]) -> Role:
        """Helper to add a role with parsed permissions."""
        role = Role(id=self._next_id, name=name, permissions=parse_permissions(permissions))
        self._next_id += 1
        self._by_id[role.id] = role
        return role

    def assign(self, actor_id: int, role: Role) -> None:
        """Helper to assign role to actor."""
        self._assignments.setdefault(actor_id, set()).add(role.id)

    def unassign(self, actor_id: int, role: Role) -> None:
        self._assignments.get(actor_id, set()).discard(role.id)


class FakeSessionRepository:
    """In-memory session repository."""

    def __init__(self) -> None:
        self._by_id: dict[str, Session] = {}

    async def get_by_id(self, session_id: str) -> Session | None:
        return self._by_id.get(session_id)

    def add(self, session: Session) -> Session:
        self._by_id[session.id] = session
        return session


class FakeTokenRepository:
    """In-memory delegated token repository."""

    def __init__(self) -> None:
        self._by_id: dict[UUID, DelegatedToken] = {}

    async def get_by_id(self, token_id: UUID) -> DelegatedToken | None:
        return self._by_id.get(token_id)

    async def get_by_hash(self, token_hash: str) -> DelegatedToken | None:
        for token in self._by_id.values():
            if token.token_hash == token_hash:
                return token
        return None

    async def create(self, token: DelegatedToken) -> DelegatedToken:
        self._by_id[token.id] = token
        return token

    async def revoke(self, token_id: UUID, revoked_at: datetime) -> None:
        token = self._by_id.get(token_id)
        if token:
            token.revoked_at = revoked_at

    def all(self) -> list[DelegatedToken]:
        return list(self._by_id.values())


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self) -> None:
        self.actors = FakeActorRepository()
        self.roles = FakeRoleRepository()
        self.sessions = FakeSessionRepository()
        self.tokens = FakeTokenRepository()

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass

    def add_actor(
        self,
        actor_id: int,
        permissions: list[str] | None = None,
        *,
        group_id: int | None = None,
        handle: str | None = None,
    ) -> Actor:
        """Helper: actor with one role holding ``permissions``."""
        actor = self.actors.add(
            Actor(id=actor_id, handle=handle or f"actor-{actor_id}", group_id=group_id)
        )
        if permissions is not None:
            role = self.roles.add_role(f"role-{actor_id}", permissions)
            self.roles.assign(actor_id, role)
        return actor

    def add_session(self, actor_id: int, session_id: str | None = None, **kwargs) -> Session:
        """Helper: session valid for an hour around NOW unless overridden."""
        return self.sessions.add(
            Session(
                id=session_id or f"sess-{actor_id}-{uuid4().hex[:8]}",
                actor_id=actor_id,
                created_at=kwargs.pop("created_at", NOW - timedelta(minutes=5)),
                expires_at=kwargs.pop("expires_at", NOW + timedelta(hours=1)),
                **kwargs,
            )
        )

    def add_token(
        self,
        actor_id: int,
        permissions: list[str],
        secret: str | None = None,
        **kwargs,
    ) -> tuple[str, DelegatedToken]:
        """Helper: delegated token; returns (bearer secret, stored token)."""
        secret = secret or f"secret-{uuid4().hex}"
        token = DelegatedToken(
            id=uuid4(),
            actor_id=actor_id,
            name=kwargs.pop("name", "ci"),
            token_hash=TokenHash.of(secret).value,
            created_at=kwargs.pop("created_at", NOW - timedelta(days=1)),
            expires_at=kwargs.pop("expires_at", NOW + timedelta(days=30)),
            permissions=parse_permissions(permissions),
            **kwargs,
        )
        self.tokens._by_id[token.id] = token
        return secret, token


def make_uow_factory(uow: FakeUnitOfWork):
    """Factory that yields the same FakeUnitOfWork on every call."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUnitOfWork]:
        yield uow

    return _factory


# --- Fake ledger channels ---


class RecordingLedgerChannel:
    """Ledger channel recording (channel, message) pairs in publish order."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict]] = []
        self.closed = False

    async def publish(self, channel: str, message: dict) -> None:
        self.published.append((channel, message))

    def messages(self, channel: str) -> list[dict]:
        return [m for c, m in self.published if c == channel]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


class FlakyLedgerChannel(RecordingLedgerChannel):
    """Fails the first ``failures`` publishes with LedgerUnavailable."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def publish(self, channel: str, message: dict) -> None:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise LedgerUnavailable("broker down")
        await super().publish(channel, message)


def fixed_clock(now: datetime = NOW):
    """Clock callable returning ``now``."""
    return lambda: now


# --- Fixtures ---


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    """Fresh in-memory UnitOfWork for each test."""
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow: FakeUnitOfWork):
    """Factory returning async context manager with the test's FakeUnitOfWork."""
    return make_uow_factory(fake_uow)


@pytest.fixture
def ledger_channel() -> RecordingLedgerChannel:
    return RecordingLedgerChannel()
