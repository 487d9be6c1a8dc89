"""Permission scope."""

from enum import StrEnum


class Scope(StrEnum):
    """How far a grant reaches over the records of a resource.

    Scopes are totally ordered ``own < group < all``; a broader grant
    satisfies a request for any narrower scope.
    """

    OWN = "own"
    GROUP = "group"
    ALL = "all"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def covers(self, other: "Scope") -> bool:
        """True if a grant of this scope satisfies a request for ``other``."""
        return self.rank >= other.rank


_RANK = {Scope.OWN: 0, Scope.GROUP: 1, Scope.ALL: 2}
