"""Change notification source port."""

from collections.abc import AsyncIterator
from typing import Protocol

from warden.domain.entities import ChangeEvent


class ChangeSource(Protocol):
    """Port for an external stream of committed mutations."""

    def changes(self) -> AsyncIterator[ChangeEvent]: ...
