"""Domain entities."""

from warden.domain.entities.actor import Actor
from warden.domain.entities.change_event import ChangeEvent
from warden.domain.entities.credential import DelegatedToken, Session
from warden.domain.entities.owned_record import OwnedRecord, RecordRef
from warden.domain.entities.request_trace import RequestTrace
from warden.domain.entities.role import Role

__all__ = [
    "Actor",
    "ChangeEvent",
    "DelegatedToken",
    "OwnedRecord",
    "RecordRef",
    "RequestTrace",
    "Role",
    "Session",
]
