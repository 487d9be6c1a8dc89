"""Request transport and lifecycle disposition."""

from enum import StrEnum


class RequestSource(StrEnum):
    """Transport the request arrived on."""

    HTTP = "http"
    FORM = "form"
    STREAM = "stream"


class Disposition(StrEnum):
    """Lifecycle state of a traced request."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    REJECTED = "rejected"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Disposition.COMPLETED, Disposition.FAILED)
