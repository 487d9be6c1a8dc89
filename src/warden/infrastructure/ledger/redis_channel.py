"""Redis ledger channel - one list per channel, appended with RPUSH."""

import json
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from warden.domain.exceptions import LedgerUnavailable

logger = logging.getLogger(__name__)


class RedisLedgerChannel:
    """Appends ledger messages to ``<prefix>:<channel>`` lists.

    A Redis list preserves insertion order, so each channel is consumed in
    the order entries were published.
    """

    def __init__(self, url: str, key_prefix: str = "warden:ledger") -> None:
        self._client = redis.from_url(url, decode_responses=True)
        self._key_prefix = key_prefix

    def key(self, channel: str) -> str:
        return f"{self._key_prefix}:{channel}"

    async def publish(self, channel: str, message: dict) -> None:
        """RPUSH one JSON-encoded message. Raises LedgerUnavailable when Redis is down."""
        try:
            await self._client.rpush(self.key(channel), json.dumps(message, default=str))
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise LedgerUnavailable(str(e)) from e

    async def ping(self) -> bool:
        try:
            return await self._client.ping()
        except (RedisConnectionError, RedisTimeoutError):
            return False

    async def close(self) -> None:
        await self._client.aclose()
