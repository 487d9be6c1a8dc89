"""Ledger channel port - ordered journal for request lifecycle entries."""

from typing import Protocol


class LedgerChannel(Protocol):
    """Port for publishing ledger messages onto named ordered channels.

    Implementations raise LedgerUnavailable on transient broker failures.
    """

    async def publish(self, channel: str, message: dict) -> None: ...

    async def close(self) -> None: ...
