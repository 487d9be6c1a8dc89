"""Change event emitted on successful mutation."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from warden.domain.value_objects import ChangeAction


@dataclass(frozen=True)
class ChangeEvent:
    """Mutation notification; carries ownership fields for filtering."""

    resource: str
    action: ChangeAction
    record_id: Any
    occurred_at: datetime
    owner_actor_id: int | None = None
    owner_group_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Shape delivered to subscribers (ownership fields are not exposed)."""
        return {
            "resource": self.resource,
            "action": self.action.value,
            "record_id": self.record_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }
