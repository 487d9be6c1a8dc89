"""Request ledger - traces every request onto ordered journal channels.

``begin`` and ``record_outcome`` only enqueue; one worker task per channel
drains its queue in order and publishes through the LedgerChannel port with
bounded retry. A journal failure is logged and never reaches the caller.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import uuid4

from warden.application.ports import LedgerChannel
from warden.domain.entities import RequestTrace
from warden.domain.error_codes import ErrorCode
from warden.domain.exceptions import LedgerUnavailable
from warden.domain.value_objects import Disposition, RequestSource

logger = logging.getLogger(__name__)

SUBMITTED = "submitted"
COMPLETED = "completed"
FAILED = "failed"
CHANNELS = (SUBMITTED, COMPLETED, FAILED)


def _now() -> datetime:
    return datetime.now(UTC)


class RequestLedger:
    """Assigns trace identifiers and journals request lifecycles."""

    def __init__(
        self,
        channel: LedgerChannel,
        *,
        queue_size: int = 10_000,
        retry_attempts: int = 3,
        retry_backoff: float = 0.2,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._channel = channel
        self._retry_attempts = max(1, retry_attempts)
        self._retry_backoff = retry_backoff
        self._clock = clock
        self._queues: dict[str, asyncio.Queue] = {
            name: asyncio.Queue(maxsize=queue_size) for name in CHANNELS
        }
        self._open: dict[str, RequestTrace] = {}
        self._workers: list[asyncio.Task] = []

    def begin(
        self, source: RequestSource | str, endpoint: str, actor_id: int | None = None
    ) -> str:
        """Open a trace and enqueue its ``submitted`` entry. Returns the trace id."""
        trace = RequestTrace(
            trace_id=str(uuid4()),
            source=RequestSource(source),
            endpoint=endpoint,
            submitted_at=self._clock(),
            actor_id=actor_id,
        )
        self._open[trace.trace_id] = trace
        self._enqueue(SUBMITTED, trace.to_message(SUBMITTED, trace.submitted_at))
        return trace.trace_id

    def mark(
        self, trace_id: str, disposition: Disposition | str, actor_id: int | None = None
    ) -> None:
        """Record the gate's decision (authorized or rejected) on an open trace."""
        disposition = Disposition(disposition)
        if disposition not in (Disposition.AUTHORIZED, Disposition.REJECTED):
            raise ValueError(f"mark() takes authorized or rejected, got {disposition}")
        trace = self._open.get(trace_id)
        if trace is None:
            logger.warning("Disposition %s for unknown trace %s ignored", disposition, trace_id)
            return
        trace.disposition = disposition
        if actor_id is not None:
            trace.actor_id = actor_id

    def record_outcome(
        self,
        trace_id: str,
        disposition: Disposition | str,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        """Close a trace as completed or failed and enqueue it on that channel."""
        disposition = Disposition(disposition)
        if not disposition.is_terminal:
            raise ValueError(f"Outcome must be completed or failed, got {disposition}")
        trace = self._open.pop(trace_id, None)
        if trace is None:
            logger.warning("Outcome for unknown or closed trace %s ignored", trace_id)
            return
        trace.disposition = disposition
        trace.error_code = str(error_code) if error_code else None
        self._enqueue(disposition.value, trace.to_message(disposition.value, self._clock()))

    def get_trace(self, trace_id: str) -> RequestTrace | None:
        """Open (non-terminal) trace by id."""
        return self._open.get(trace_id)

    def start(self) -> None:
        """Start one drain worker per channel (requires a running loop)."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._drain(name), name=f"ledger-{name}")
            for name in CHANNELS
        ]

    async def flush(self) -> None:
        """Wait until every queued entry has been handed to the channel."""
        for queue in self._queues.values():
            await queue.join()

    async def close(self) -> None:
        """Drain queued entries, stop the workers and close the channel."""
        if self._workers:
            await self.flush()
            for worker in self._workers:
                worker.cancel()
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers = []
        await self._channel.close()

    def _enqueue(self, channel: str, message: dict) -> None:
        try:
            self._queues[channel].put_nowait(message)
        except asyncio.QueueFull:
            logger.error(
                "%s: %s queue full, dropped trace %s",
                ErrorCode.LEDGER_UNAVAILABLE,
                channel,
                message["trace_id"],
            )

    async def _drain(self, channel: str) -> None:
        queue = self._queues[channel]
        while True:
            message = await queue.get()
            try:
                await self._publish(channel, message)
            except Exception:
                logger.exception(
                    "%s: unexpected error journaling trace %s",
                    ErrorCode.LEDGER_UNAVAILABLE,
                    message["trace_id"],
                )
            finally:
                queue.task_done()

    async def _publish(self, channel: str, message: dict) -> None:
        delay = self._retry_backoff
        for attempt in range(1, self._retry_attempts + 1):
            try:
                await self._channel.publish(channel, message)
                return
            except LedgerUnavailable as e:
                if attempt == self._retry_attempts:
                    logger.error(
                        "%s: giving up on trace %s (%s) after %d attempts: %s",
                        ErrorCode.LEDGER_UNAVAILABLE,
                        message["trace_id"],
                        channel,
                        attempt,
                        e,
                    )
                    return
                logger.warning(
                    "Ledger channel %s unavailable (attempt %d), retrying in %.2fs",
                    channel,
                    attempt,
                    delay,
                )
                await asyncio.sleep(delay)
                delay *= 2
