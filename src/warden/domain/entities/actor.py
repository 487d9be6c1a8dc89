"""Actor entity - the authenticated identity."""

from dataclasses import dataclass


@dataclass
class Actor:
    """Human account or non-interactive credential holder."""

    id: int
    handle: str
    group_id: int | None = None
    is_active: bool = True
    is_locked: bool = False

    @property
    def can_authenticate(self) -> bool:
        return self.is_active and not self.is_locked
