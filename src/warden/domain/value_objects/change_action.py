"""Mutation kinds carried by change events."""

from enum import StrEnum


class ChangeAction(StrEnum):
    """Kind of mutation a change event reports."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def from_operation(cls, operation: str) -> "ChangeAction":
        """Map a trigger operation (INSERT/UPDATE/DELETE) or action name."""
        normalized = operation.strip().lower()
        return cls(_OPERATIONS.get(normalized, normalized))


_OPERATIONS = {"insert": "create", "created": "create", "updated": "update", "deleted": "delete"}
