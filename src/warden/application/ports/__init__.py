"""Application ports - interfaces for external adapters."""

from warden.application.ports.change_source import ChangeSource
from warden.application.ports.ledger_channel import LedgerChannel
from warden.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "ChangeSource",
    "LedgerChannel",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
