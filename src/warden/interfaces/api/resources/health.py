"""Health check endpoints."""

import logging
from collections.abc import Awaitable, Callable

import falcon.asgi

logger = logging.getLogger(__name__)

ReadinessCheck = Callable[[], Awaitable[bool]]


class HealthResource:
    """Health and readiness endpoints."""

    def __init__(self, ready_checks: dict[str, ReadinessCheck] | None = None) -> None:
        self._ready_checks = ready_checks or {}

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health - liveness."""
        resp.media = {"status": "ok"}
        resp.status = falcon.HTTP_200

    async def on_get_ready(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health/ready - readiness (store, ledger broker)."""
        results: dict[str, bool] = {}
        for name, check in self._ready_checks.items():
            try:
                results[name] = bool(await check())
            except Exception as e:
                logger.warning("Readiness check %s failed: %s", name, e)
                results[name] = False

        if all(results.values()):
            resp.media = {"status": "ready", "checks": results}
            resp.status = falcon.HTTP_200
        else:
            resp.media = {"status": "unavailable", "checks": results}
            resp.status = falcon.HTTP_503
