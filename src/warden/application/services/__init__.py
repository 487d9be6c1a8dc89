"""Application services - gate, ledger, broadcaster and request mediation."""

from warden.application.services.authorization_gate import AuthorizationGate, GrantLoader
from warden.application.services.event_broadcaster import EventBroadcaster, Subscription
from warden.application.services.request_ledger import RequestLedger
from warden.application.services.request_mediator import (
    Admission,
    AdmissionError,
    MediationResult,
    Outcome,
    RequestMediator,
)

__all__ = [
    "Admission",
    "AdmissionError",
    "AuthorizationGate",
    "EventBroadcaster",
    "GrantLoader",
    "MediationResult",
    "Outcome",
    "RequestLedger",
    "RequestMediator",
    "Subscription",
]
