"""Ledger channel adapters."""

from warden.infrastructure.ledger.memory_channel import MemoryLedgerChannel
from warden.infrastructure.ledger.redis_channel import RedisLedgerChannel

__all__ = ["MemoryLedgerChannel", "RedisLedgerChannel"]
