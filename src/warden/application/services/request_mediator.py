"""Request mediation - ledger, gate, business call, outcome and broadcast."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from warden.application.dto.authorization import GateRequest, GateVerdict
from warden.application.services.authorization_gate import AuthorizationGate
from warden.application.services.event_broadcaster import EventBroadcaster
from warden.application.services.request_ledger import RequestLedger
from warden.domain.entities import ChangeEvent
from warden.domain.error_codes import ErrorCode
from warden.domain.exceptions import WardenError
from warden.domain.value_objects import Disposition, RequestSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Admission:
    """Trace id plus the gate's verdict for an inbound request."""

    trace_id: str
    verdict: GateVerdict

    @property
    def granted(self) -> bool:
        return self.verdict.granted


@dataclass(frozen=True)
class Outcome:
    """Business result; ``change`` is broadcast when the call succeeds."""

    value: Any = None
    change: ChangeEvent | None = None


@dataclass(frozen=True)
class MediationResult:
    trace_id: str
    verdict: GateVerdict
    value: Any = None


Handler = Callable[[GateVerdict], Awaitable[Outcome | Any]]


class AdmissionError(WardenError):
    """The gate could not reach a verdict. The trace is already closed as failed."""

    def __init__(self, trace_id: str) -> None:
        super().__init__(f"Authorization failed for trace {trace_id}")
        self.trace_id = trace_id


class RequestMediator:
    """Wraps every inbound call: begin -> gate -> handler -> outcome -> publish."""

    def __init__(
        self,
        gate: AuthorizationGate,
        ledger: RequestLedger,
        broadcaster: EventBroadcaster | None = None,
    ) -> None:
        self._gate = gate
        self._ledger = ledger
        self._broadcaster = broadcaster

    @property
    def gate(self) -> AuthorizationGate:
        return self._gate

    @property
    def ledger(self) -> RequestLedger:
        return self._ledger

    @property
    def broadcaster(self) -> EventBroadcaster | None:
        return self._broadcaster

    async def admit(self, source: RequestSource | str, request: GateRequest) -> Admission:
        """Trace the request and run the gate. A rejection closes the trace as failed.

        Raises AdmissionError, chained to the cause, when the gate itself fails.
        """
        trace_id = self._ledger.begin(source, request.endpoint)
        try:
            verdict = await self._gate.evaluate(request)
        except Exception as e:
            logger.exception("Authorization failed for trace %s", trace_id)
            self._ledger.record_outcome(trace_id, Disposition.FAILED, ErrorCode.INTERNAL_ERROR)
            raise AdmissionError(trace_id) from e

        actor_id = verdict.actor.id if verdict.actor else None
        if verdict.granted:
            self._ledger.mark(trace_id, Disposition.AUTHORIZED, actor_id)
        else:
            self._ledger.mark(trace_id, Disposition.REJECTED, actor_id)
            self._ledger.record_outcome(trace_id, Disposition.FAILED, verdict.reason)
        return Admission(trace_id=trace_id, verdict=verdict)

    def complete(self, trace_id: str, change: ChangeEvent | None = None) -> None:
        """Close the trace as completed and broadcast the mutation, if any."""
        self._ledger.record_outcome(trace_id, Disposition.COMPLETED)
        if change is not None and self._broadcaster is not None:
            self._broadcaster.publish(change)

    def fail(self, trace_id: str, error_code: ErrorCode | str = ErrorCode.INTERNAL_ERROR) -> None:
        self._ledger.record_outcome(trace_id, Disposition.FAILED, error_code)

    async def run(
        self, source: RequestSource | str, request: GateRequest, handler: Handler
    ) -> MediationResult:
        """Full pipeline for callers outside the HTTP adapter.

        The handler only runs when the gate grants; its exceptions are
        recorded as failures and re-raised.
        """
        admission = await self.admit(source, request)
        if not admission.granted:
            return MediationResult(trace_id=admission.trace_id, verdict=admission.verdict)
        try:
            result = await handler(admission.verdict)
        except WardenError as e:
            self.fail(admission.trace_id, e.code)
            raise
        except Exception:
            self.fail(admission.trace_id, ErrorCode.INTERNAL_ERROR)
            raise
        outcome = result if isinstance(result, Outcome) else Outcome(value=result)
        self.complete(admission.trace_id, outcome.change)
        return MediationResult(
            trace_id=admission.trace_id, verdict=admission.verdict, value=outcome.value
        )
