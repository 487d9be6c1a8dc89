"""Lifespan middleware - opens shared handles on startup, closes on shutdown."""

from typing import Any

from psycopg_pool import AsyncConnectionPool

from warden.application.ports import ChangeSource
from warden.application.services.event_broadcaster import EventBroadcaster
from warden.application.services.request_ledger import RequestLedger


class LifespanMiddleware:
    """Opens the pool and starts ledger workers and broadcasting with the ASGI server."""

    def __init__(
        self,
        ledger: RequestLedger,
        broadcaster: EventBroadcaster,
        pool: AsyncConnectionPool | None = None,
        change_source: ChangeSource | None = None,
    ) -> None:
        self._ledger = ledger
        self._broadcaster = broadcaster
        self._pool = pool
        self._change_source = change_source

    async def process_startup(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Open pool, start ledger workers and the change listener."""
        if self._pool is not None:
            await self._pool.open()
        self._ledger.start()
        self._broadcaster.start(self._change_source)

    async def process_shutdown(
        self, scope: dict[str, Any], event: dict[str, Any]
    ) -> None:
        """Stop broadcasting, drain the ledger, close the pool."""
        await self._broadcaster.close()
        await self._ledger.close()
        if self._pool is not None:
            await self._pool.close()
