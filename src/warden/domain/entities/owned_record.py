"""Ownership fields the gate reads from protected records."""

from dataclasses import dataclass
from typing import Any, Protocol


class OwnedRecord(Protocol):
    """Any business record protected by the gate."""

    @property
    def owner_actor_id(self) -> int | None: ...

    @property
    def owner_group_id(self) -> int | None: ...


@dataclass(frozen=True)
class RecordRef:
    """Lightweight reference to a record's ownership fields."""

    owner_actor_id: int | None = None
    owner_group_id: int | None = None
    record_id: Any = None
