"""Fixtures for API tests."""

from datetime import UTC, datetime

import falcon
import falcon.asgi
import pytest
from falcon.testing import TestClient

from tests.conftest import FakeUnitOfWork, RecordingLedgerChannel, fixed_clock, make_uow_factory
from warden.application.services import (
    AuthorizationGate,
    EventBroadcaster,
    RequestLedger,
    RequestMediator,
)
from warden.application.use_cases.token.issue_token import IssueTokenUseCase
from warden.application.use_cases.token.revoke_token import RevokeTokenUseCase
from warden.domain.entities import ChangeEvent
from warden.domain.value_objects import ChangeAction
from warden.interfaces.api.middleware.mediation import MediationMiddleware
from warden.interfaces.api.resources.events import EventsResource
from warden.interfaces.api.resources.health import HealthResource
from warden.interfaces.api.resources.me import MeResource
from warden.interfaces.api.resources.tokens import TokenResource, TokensResource

ADMIN_SESSION = "sess-admin"
VIEWER_SESSION = "sess-viewer"


class WidgetsResource:
    """Protected test resource: GET reads, POST creates and emits a change."""

    resource_name = "widget"

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        resp.media = {"scope": req.context.verdict.scope.value}

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        req.context.change_event = ChangeEvent(
            resource="widget",
            action=ChangeAction.CREATE,
            record_id=1,
            occurred_at=datetime(2025, 6, 1, tzinfo=UTC),
            owner_actor_id=req.context.actor.id,
        )
        resp.media = {"id": 1}
        resp.status = falcon.HTTP_201


class MissingWidgetResource:
    """Granted request that fails in business logic."""

    resource_name = "widget"

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response, widget_id: str) -> None:
        raise falcon.HTTPNotFound(description=f"Widget {widget_id} not found")


@pytest.fixture
def api_uow() -> FakeUnitOfWork:
    """Store with an admin (1) and a viewer (2), each with a live session."""
    uow = FakeUnitOfWork()
    uow.add_actor(1, ["*:*:all"], group_id=10, handle="admin")
    uow.add_actor(2, ["widget:read:own", "token:delete:own"], group_id=10, handle="viewer")
    uow.add_session(1, ADMIN_SESSION)
    uow.add_session(2, VIEWER_SESSION)
    return uow


@pytest.fixture
def api_ledger_channel() -> RecordingLedgerChannel:
    return RecordingLedgerChannel()


@pytest.fixture
def mediator(api_uow: FakeUnitOfWork, api_ledger_channel: RecordingLedgerChannel) -> RequestMediator:
    gate = AuthorizationGate(
        make_uow_factory(api_uow),
        public_endpoints=["/v1/health", "/v1/health/ready"],
        clock=fixed_clock(),
    )
    ledger = RequestLedger(api_ledger_channel, clock=fixed_clock())
    return RequestMediator(gate, ledger, EventBroadcaster())


@pytest.fixture
def app(api_uow: FakeUnitOfWork, mediator: RequestMediator) -> falcon.asgi.App:
    """Falcon ASGI app with mediation middleware and API resources."""
    uow_factory = make_uow_factory(api_uow)
    health = HealthResource()

    app = falcon.asgi.App(middleware=[MediationMiddleware(mediator)])
    app.add_route("/v1/health", health)
    app.add_route("/v1/health/ready", health, suffix="ready")
    app.add_route("/v1/me", MeResource())
    app.add_route("/v1/events", EventsResource(mediator))
    app.add_route(
        "/v1/tokens", TokensResource(IssueTokenUseCase(uow_factory, clock=fixed_clock()))
    )
    app.add_route(
        "/v1/tokens/{token_id}", TokenResource(RevokeTokenUseCase(uow_factory, clock=fixed_clock()))
    )
    app.add_route("/widgets", WidgetsResource())
    app.add_route("/widgets/{widget_id}", MissingWidgetResource())
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Falcon ASGI test client."""
    return TestClient(app)


def session_cookie(session_id: str) -> dict[str, str]:
    return {"Cookie": f"session_id={session_id}"}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
