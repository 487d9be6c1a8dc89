"""PostgreSQL LISTEN/NOTIFY change source.

Row triggers call ``pg_notify(<channel>, payload::text)`` with a JSON object::

    {"resource": "widget", "operation": "INSERT", "record_id": 42,
     "owner_actor_id": 7, "owner_group_id": 3,
     "timestamp": "2025-01-01T10:00:00+00:00", "payload": {...}}

``action`` may be given instead of ``operation``; ``table`` and ``id`` are
accepted as aliases of ``resource`` and ``record_id``.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime

import psycopg
from psycopg import sql

from warden.domain.entities import ChangeEvent
from warden.domain.value_objects import ChangeAction
from warden.infrastructure.persistence.postgres.connection import connect_listener

logger = logging.getLogger(__name__)


def _optional_int(value: object) -> int | None:
    return None if value is None else int(value)


def parse_change_notification(payload: str) -> ChangeEvent | None:
    """Build a ChangeEvent from a notification payload; None if malformed."""
    try:
        data = json.loads(payload)
        resource = data.get("resource") or data["table"]
        action = ChangeAction.from_operation(data.get("action") or data["operation"])
        occurred = data.get("occurred_at") or data.get("timestamp")
        occurred_at = datetime.fromisoformat(occurred) if occurred else datetime.now(UTC)
        if occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=UTC)
        body = data.get("payload") or {}
        if not isinstance(body, dict):
            raise TypeError("payload must be an object")
        return ChangeEvent(
            resource=resource,
            action=action,
            record_id=data.get("record_id", data.get("id")),
            occurred_at=occurred_at,
            owner_actor_id=_optional_int(data.get("owner_actor_id")),
            owner_group_id=_optional_int(data.get("owner_group_id")),
            payload=body,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning("Skipping malformed change notification %r: %s", payload[:200], e)
        return None


class PostgresChangeSource:
    """Yields change events from a LISTEN channel, reconnecting on failure."""

    def __init__(
        self,
        conninfo: str,
        channel: str = "record_changes",
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ) -> None:
        self._conninfo = conninfo
        self._channel = channel
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay

    async def changes(self) -> AsyncIterator[ChangeEvent]:
        delay = self._reconnect_delay
        while True:
            try:
                conn = await connect_listener(self._conninfo)
                async with conn:
                    await conn.execute(
                        sql.SQL("LISTEN {}").format(sql.Identifier(self._channel))
                    )
                    logger.info("Listening for changes on channel %s", self._channel)
                    delay = self._reconnect_delay
                    async for notify in conn.notifies():
                        event = parse_change_notification(notify.payload)
                        if event is not None:
                            yield event
            except psycopg.OperationalError as e:
                logger.warning(
                    "Change listener disconnected (%s), reconnecting in %.1fs", e, delay
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_reconnect_delay)
