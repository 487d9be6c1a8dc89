"""Request trace - one request's lifecycle in the ledger."""

from dataclasses import dataclass
from datetime import datetime

from warden.domain.value_objects import Disposition, RequestSource


@dataclass
class RequestTrace:
    """Ephemeral record created at ingress and closed when terminal."""

    trace_id: str
    source: RequestSource
    endpoint: str
    submitted_at: datetime
    actor_id: int | None = None
    disposition: Disposition = Disposition.PENDING
    error_code: str | None = None

    def to_message(self, disposition: str, timestamp: datetime) -> dict:
        """Ledger channel message for this trace."""
        return {
            "trace_id": self.trace_id,
            "timestamp": timestamp.isoformat(),
            "source": self.source.value,
            "actor_id": self.actor_id,
            "endpoint": self.endpoint,
            "disposition": disposition,
            "error_code": self.error_code,
        }
