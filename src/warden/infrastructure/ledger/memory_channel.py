"""In-process ledger channel, used when no broker is configured."""

import logging

logger = logging.getLogger(__name__)


class MemoryLedgerChannel:
    """Keeps ledger messages per channel in memory and logs them."""

    def __init__(self) -> None:
        self._messages: dict[str, list[dict]] = {}

    async def publish(self, channel: str, message: dict) -> None:
        self._messages.setdefault(channel, []).append(message)
        logger.info(
            "ledger %s trace=%s endpoint=%s error=%s",
            channel,
            message["trace_id"],
            message["endpoint"],
            message["error_code"],
        )

    def messages(self, channel: str) -> list[dict]:
        return list(self._messages.get(channel, []))

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass
