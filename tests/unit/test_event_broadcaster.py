"""Unit tests for the event broadcaster."""

import asyncio
import itertools
import logging
import random
from datetime import UTC, datetime

import pytest

from warden.application.services import EventBroadcaster
from warden.domain.authorization import EffectiveGrants, matches, required_scope
from warden.domain.entities import Actor, ChangeEvent
from warden.domain.exceptions import DeliveryFailed
from warden.domain.value_objects import ChangeAction, Permission, Scope, parse_permissions

AT = datetime(2025, 6, 1, tzinfo=UTC)


def _grants(*permissions: str) -> EffectiveGrants:
    return EffectiveGrants(role_grants=parse_permissions(list(permissions)))


def _event(resource: str = "widget", owner: int | None = 1, group: int | None = 10, record_id=1):
    return ChangeEvent(
        resource=resource,
        action=ChangeAction.UPDATE,
        record_id=record_id,
        occurred_at=AT,
        owner_actor_id=owner,
        owner_group_id=group,
    )


def _drain(subscription) -> list[ChangeEvent]:
    events = []
    while not subscription._queue.empty():
        events.append(subscription._queue.get_nowait())
    return events


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def ana() -> Actor:
    return Actor(id=1, handle="ana", group_id=10)


@pytest.fixture
def bob() -> Actor:
    return Actor(id=2, handle="bob", group_id=10)


class TestFiltering:
    """Permission filter applied per subscriber."""

    def test_own_scope_receives_only_own_records(self, ana: Actor, bob: Actor) -> None:
        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(bob, _grants("widget:read:own"))
        broadcaster.publish(_event(owner=1))
        broadcaster.publish(_event(owner=2, record_id=2))
        assert [e.record_id for e in _drain(sub)] == [2]

    def test_group_scope_receives_group_records(self, bob: Actor) -> None:
        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(bob, _grants("widget:read:group"))
        delivered = broadcaster.publish(_event(owner=1, group=10))
        broadcaster.publish(_event(owner=1, group=11, record_id=2))
        assert delivered == 1
        assert [e.record_id for e in _drain(sub)] == [1]

    def test_read_action_required(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(ana, _grants("widget:update:all"))
        assert broadcaster.publish(_event()) == 0
        assert _drain(sub) == []

    def test_resource_filter_narrows_but_never_widens(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        narrowed = broadcaster.subscribe(ana, _grants("*:read:all"), resource_filter="order")
        forbidden = broadcaster.subscribe(ana, _grants("widget:read:all"), resource_filter="order")
        broadcaster.publish(_event("widget"))
        broadcaster.publish(_event("order", record_id=2))
        assert [e.record_id for e in _drain(narrowed)] == [2]
        assert _drain(forbidden) == []

    def test_token_grants_apply(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        grants = EffectiveGrants(
            role_grants=parse_permissions(["widget:read:all"]),
            token_grants=parse_permissions(["widget:read:own"]),
        )
        sub = broadcaster.subscribe(ana, grants)
        broadcaster.publish(_event(owner=1))
        broadcaster.publish(_event(owner=2, record_id=2))
        assert [e.record_id for e in _drain(sub)] == [1]

    def test_zero_over_delivery_fuzz(self) -> None:
        """Random actors, grants and events: nobody receives what they may not read."""
        rng = random.Random(42)
        universe = [
            f"{r}:{a}:{s.value}"
            for r, a, s in itertools.product(("widget", "order", "*"), ("read", "*", "update"), Scope)
        ]
        broadcaster = EventBroadcaster(queue_size=1000)
        subscriptions = []
        for actor_id in range(1, 30):
            actor = Actor(id=actor_id, handle=f"a{actor_id}", group_id=rng.choice([None, 1, 2]))
            grants = _grants(*rng.sample(universe, rng.randint(0, 4)))
            subscriptions.append(
                broadcaster.subscribe(
                    actor, grants, resource_filter=rng.choice([None, None, "widget", "order"])
                )
            )
        for i in range(300):
            broadcaster.publish(
                _event(
                    resource=rng.choice(["widget", "order"]),
                    owner=rng.choice([None, *range(1, 30)]),
                    group=rng.choice([None, 1, 2]),
                    record_id=i,
                )
            )
        for sub in subscriptions:
            for event in _drain(sub):
                scope = required_scope(sub.actor, event)
                assert matches(sub.grants.role_grants, event.resource, "read", scope)
                assert sub.resource_filter in (None, event.resource)


class TestDelivery:
    """Queue bounds, replay, closing."""

    def test_saturated_subscriber_drops_oldest(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster(queue_size=2)
        slow = broadcaster.subscribe(ana, _grants("*:*:all"))
        fast = broadcaster.subscribe(ana, _grants("*:*:all"))
        for i in range(3):
            broadcaster.publish(_event(record_id=i))
            if i < 2:
                _drain(fast)
        assert [e.record_id for e in _drain(slow)] == [1, 2]
        assert slow.dropped == 1
        assert fast.dropped == 0

    def test_closed_subscription_raises_delivery_failed(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(ana, _grants("*:*:all"))
        sub.close()
        with pytest.raises(DeliveryFailed):
            sub.offer(_event())
        assert broadcaster.subscriber_count == 0
        assert broadcaster.publish(_event()) == 0

    def test_replay_sends_admitted_history(self, ana: Actor, bob: Actor) -> None:
        broadcaster = EventBroadcaster(replay_size=2)
        for i, owner in enumerate((2, 1, 2)):
            broadcaster.publish(_event(owner=owner, group=None, record_id=i))
        sub = broadcaster.subscribe(bob, _grants("widget:read:own"), replay=True)
        plain = broadcaster.subscribe(bob, _grants("widget:read:own"))
        assert [e.record_id for e in _drain(sub)] == [2]
        assert _drain(plain) == []

    @pytest.mark.asyncio
    async def test_events_yields_until_closed(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(ana, _grants("*:*:all"))
        broadcaster.publish(_event(record_id=1))
        received = []

        async def consume() -> None:
            async for event in sub.events():
                received.append(event.record_id)

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        broadcaster.publish(_event(record_id=2))
        await asyncio.sleep(0.01)
        sub.close()
        await asyncio.wait_for(task, 1)
        assert received == [1, 2]

    @pytest.mark.asyncio
    async def test_events_yields_heartbeat_when_idle(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        async with broadcaster.subscribe(ana, _grants("*:*:all")) as sub:
            stream = sub.events(heartbeat=0.01)
            assert await asyncio.wait_for(anext(stream), 1) is None
            await stream.aclose()
        assert sub.closed

    @pytest.mark.asyncio
    async def test_close_ends_all_subscriptions(self, ana: Actor) -> None:
        broadcaster = EventBroadcaster()
        subs = [broadcaster.subscribe(ana, _grants("*:*:all")) for _ in range(3)]
        await broadcaster.close()
        assert all(s.closed for s in subs)
        assert broadcaster.subscriber_count == 0


class TestMaintenance:
    """Idle reaping and grant refresh."""

    def test_reap_idle_closes_stale_subscriptions(self, ana: Actor) -> None:
        clock = FakeClock()
        broadcaster = EventBroadcaster(idle_timeout=30, clock=clock)
        stale = broadcaster.subscribe(ana, _grants("*:*:all"))
        clock.now += 20
        fresh = broadcaster.subscribe(ana, _grants("*:*:all"))
        clock.now += 15

        assert broadcaster.reap_idle() == 1
        assert stale.closed
        assert not fresh.closed

    @pytest.mark.asyncio
    async def test_waiting_consumer_is_not_reaped(self, ana: Actor) -> None:
        clock = FakeClock()
        broadcaster = EventBroadcaster(idle_timeout=30, clock=clock)
        sub = broadcaster.subscribe(ana, _grants("*:*:all"))
        async def first():
            async for event in sub.events():
                return event
            return "closed"

        task = asyncio.create_task(first())
        await asyncio.sleep(0.01)
        clock.now += 60

        assert broadcaster.reap_idle() == 0
        sub.close()
        assert await asyncio.wait_for(task, 1) == "closed"

    @pytest.mark.asyncio
    async def test_refresh_grants_updates_and_closes(self, ana: Actor, bob: Actor) -> None:
        broadcaster = EventBroadcaster()
        narrowed = _grants("widget:read:own")

        async def shrink() -> EffectiveGrants:
            return narrowed

        async def gone() -> None:
            return None

        async def broken() -> EffectiveGrants:
            raise RuntimeError("store down")

        live = broadcaster.subscribe(ana, _grants("*:*:all"), grant_loader=shrink)
        revoked = broadcaster.subscribe(bob, _grants("*:*:all"), grant_loader=gone)
        kept = broadcaster.subscribe(bob, _grants("*:*:all"), grant_loader=broken)
        static = broadcaster.subscribe(bob, _grants("*:*:all"))

        await broadcaster.refresh_grants()

        assert live.grants is narrowed
        assert revoked.closed
        assert not kept.closed and kept.grants.permits("widget", "read", Scope.ALL)
        assert not static.closed
        assert broadcaster.publish(_event(owner=2)) == 2

    @pytest.mark.asyncio
    async def test_attach_publishes_source_events(self, ana: Actor) -> None:
        class ListSource:
            async def changes(self):
                for i in range(3):
                    yield _event(record_id=i)

        broadcaster = EventBroadcaster()
        sub = broadcaster.subscribe(ana, _grants("widget:read:all"))
        await broadcaster.attach(ListSource())
        assert [e.record_id for e in _drain(sub)] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_attach_restarts_failed_source(
        self, ana: Actor, caplog: pytest.LogCaptureFixture
    ) -> None:
        class CrashingSource:
            def __init__(self) -> None:
                self.calls = 0

            async def changes(self):
                self.calls += 1
                if self.calls == 1:
                    yield _event(record_id=1)
                    raise RuntimeError("listener lost")
                yield _event(record_id=2)

        source = CrashingSource()
        broadcaster = EventBroadcaster(restart_backoff=0)
        sub = broadcaster.subscribe(ana, _grants("widget:read:all"))
        with caplog.at_level(logging.ERROR):
            await asyncio.wait_for(broadcaster.attach(source), 1)

        assert source.calls == 2
        assert [e.record_id for e in _drain(sub)] == [1, 2]
        assert "Change source failed" in caplog.text
        assert "listener lost" in caplog.text


def test_admin_grant_reads_everything(ana: Actor) -> None:
    broadcaster = EventBroadcaster()
    sub = broadcaster.subscribe(ana, EffectiveGrants(role_grants=frozenset({Permission.parse("*:*:all")})))
    broadcaster.publish(_event(owner=None, group=None))
    assert len(_drain(sub)) == 1
