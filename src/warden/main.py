"""Application entry point and composition root."""

import logging
from datetime import timedelta

import falcon
import falcon.asgi
import psycopg

from warden import __version__
from warden.application.services import (
    AuthorizationGate,
    EventBroadcaster,
    RequestLedger,
    RequestMediator,
)
from warden.application.use_cases.token.issue_token import IssueTokenUseCase
from warden.application.use_cases.token.revoke_token import RevokeTokenUseCase
from warden.config import Settings, get_settings
from warden.domain.error_codes import ErrorCode
from warden.infrastructure.ledger import MemoryLedgerChannel, RedisLedgerChannel
from warden.infrastructure.notifications.postgres_change_source import (
    PostgresChangeSource,
)
from warden.infrastructure.persistence.postgres.connection import create_pool
from warden.infrastructure.persistence.postgres.unit_of_work import (
    create_uow_factory,
)
from warden.interfaces.api.middleware.lifespan import LifespanMiddleware
from warden.interfaces.api.middleware.mediation import MediationMiddleware
from warden.interfaces.api.resources.events import EventsResource
from warden.interfaces.api.resources.health import HealthResource
from warden.interfaces.api.resources.me import MeResource
from warden.interfaces.api.resources.tokens import TokenResource, TokensResource

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level once, at the composition root."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """CLI entry point."""
    print(f"Warden v{__version__}")


def create_warden_app():
    """Composition root - build Falcon app with all dependencies."""
    settings = get_settings()
    configure_logging(settings)

    pool = create_pool(settings.database_url)
    uow_factory = create_uow_factory(pool)

    ledger_channel = (
        RedisLedgerChannel(settings.redis_url, key_prefix=settings.ledger_key_prefix)
        if settings.redis_url
        else MemoryLedgerChannel()
    )
    ledger = RequestLedger(
        ledger_channel,
        queue_size=settings.ledger_queue_size,
        retry_attempts=settings.ledger_retry_attempts,
        retry_backoff=settings.ledger_retry_backoff,
    )
    gate = AuthorizationGate(uow_factory, public_endpoints=settings.public_endpoint_list)
    broadcaster = EventBroadcaster(
        queue_size=settings.subscriber_queue_size,
        replay_size=settings.replay_size,
        idle_timeout=settings.idle_timeout,
        refresh_interval=settings.grant_refresh_interval,
    )
    mediator = RequestMediator(gate, ledger, broadcaster)
    change_source = PostgresChangeSource(settings.database_url, channel=settings.notify_channel)

    issue_token = IssueTokenUseCase(
        unit_of_work_factory=uow_factory,
        max_lifetime=timedelta(days=settings.token_max_lifetime_days),
    )
    revoke_token = RevokeTokenUseCase(unit_of_work_factory=uow_factory)

    async def database_ready() -> bool:
        try:
            async with pool.connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except psycopg.Error:
            return False

    health_resource = HealthResource(
        ready_checks={"database": database_ready, "ledger": ledger_channel.ping}
    )
    events_resource = EventsResource(mediator, heartbeat_interval=settings.heartbeat_interval)
    tokens_resource = TokensResource(issue_token)
    token_resource = TokenResource(revoke_token)
    me_resource = MeResource()

    app = falcon.asgi.App(
        middleware=[
            LifespanMiddleware(ledger, broadcaster, pool=pool, change_source=change_source),
            MediationMiddleware(mediator, session_cookie=settings.session_cookie_name),
        ],
    )

    async def log_exception(req, resp, ex, params):
        logger.error(
            "Unhandled error on %s (trace %s)",
            req.path,
            getattr(req.context, "trace_id", None),
            exc_info=ex,
        )
        req.context.error_code = ErrorCode.INTERNAL_ERROR
        resp.status = falcon.HTTP_500
        resp.media = {
            "error": "INTERNAL_ERROR",
            "message": "Internal server error",
            "trace_id": getattr(req.context, "trace_id", None),
        }

    app.add_error_handler(Exception, log_exception)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/v1/me", me_resource)
    app.add_route("/v1/events", events_resource)
    app.add_route("/v1/tokens", tokens_resource)
    app.add_route("/v1/tokens/{token_id}", token_resource)

    return app


def run_server() -> None:
    """Run uvicorn server."""
    import uvicorn

    app = create_warden_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
