"""Live change events over Server-Sent Events."""

import json

import falcon.asgi

from warden.application.services.event_broadcaster import Subscription
from warden.application.services.request_mediator import RequestMediator
from warden.domain.error_codes import ErrorCode
from warden.domain.value_objects import RequestSource
from warden.interfaces.api.errors import render_error


def _sse_event(event: str, data: dict) -> bytes:
    """Format one Server-Sent Event (event + data)."""
    payload = json.dumps(data, ensure_ascii=False, default=str)
    return f"event: {event}\ndata: {payload}\n\n".encode("utf-8")


class EventsResource:
    """GET /v1/events - stream change events the caller may read.

    Query params: ``resource`` narrows to one resource name, ``replay=true``
    first sends matching events from the recent history.
    """

    request_source = RequestSource.STREAM

    def __init__(self, mediator: RequestMediator, heartbeat_interval: float = 15.0) -> None:
        self._mediator = mediator
        self._heartbeat = heartbeat_interval

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Open a subscription and stream it until the client disconnects."""
        verdict = req.context.verdict
        if verdict.actor is None:
            render_error(req, resp, ErrorCode.AUTH_REQUIRED)
            return

        subscription = self._mediator.broadcaster.subscribe(
            verdict.actor,
            verdict.grants,
            resource_filter=req.get_param("resource"),
            replay=req.get_param_as_bool("replay", default=False),
            grant_loader=self._mediator.gate.grant_loader(verdict),
            on_close=self._closer(req.context.trace_id),
        )
        req.context.ledger_deferred = True
        resp.status = falcon.HTTP_200
        resp.content_type = "text/event-stream"
        resp.cache_control = ["no-store"]
        resp.stream = self._stream(subscription, req.context.trace_id)

    def _closer(self, trace_id: str):
        """Close hook completing the trace unless a stream failure already closed it.

        Runs on reaping too, so a stream that never started still ends its trace.
        """

        def on_close(subscription: Subscription) -> None:
            if self._mediator.ledger.get_trace(trace_id) is not None:
                self._mediator.complete(trace_id)

        return on_close

    async def _stream(self, subscription: Subscription, trace_id: str):
        """Async generator yielding change events and keep-alive comments."""
        try:
            yield b": connected\n\n"
            async for event in subscription.events(self._heartbeat):
                if event is None:
                    yield b": keep-alive\n\n"
                else:
                    yield _sse_event("change", event.to_wire())
        except Exception:
            self._mediator.fail(trace_id, ErrorCode.INTERNAL_ERROR)
            raise
        finally:
            subscription.close()
