"""Mediation middleware - traces, authorizes and journals every request.

Resources opt in to permission checks by declaring ``resource_name``; the
action comes from the HTTP method unless ``resource_actions`` overrides it.
Resources without a ``resource_name`` only require an identified actor
(unless the endpoint is public).
"""

import logging

import falcon
import falcon.asgi

from warden.application.dto.authorization import Credentials, GateRequest
from warden.application.services.request_mediator import AdmissionError, RequestMediator
from warden.domain.error_codes import ErrorCode
from warden.domain.value_objects import RequestSource
from warden.interfaces.api.errors import code_for_status, render_error

logger = logging.getLogger(__name__)

METHOD_ACTIONS = {
    "GET": "read",
    "HEAD": "read",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _bearer_token(req: falcon.asgi.Request) -> str | None:
    auth = req.get_header("Authorization")
    if not auth:
        return None
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    # Present but unusable; resolution fails as AUTH_INVALID.
    return auth


def _request_source(req: falcon.asgi.Request, resource: object) -> RequestSource:
    declared = getattr(resource, "request_source", None)
    if declared is not None:
        return declared
    content_type = (req.content_type or "").lower()
    if content_type.startswith(_FORM_TYPES):
        return RequestSource.FORM
    return RequestSource.HTTP


class MediationMiddleware:
    """Runs every request through the ledger and the authorization gate."""

    def __init__(self, mediator: RequestMediator, session_cookie: str = "session_id") -> None:
        self._mediator = mediator
        self._session_cookie = session_cookie

    def _credentials(self, req: falcon.asgi.Request) -> Credentials:
        cookies = req.get_cookie_values(self._session_cookie)
        return Credentials(
            session_id=cookies[0] if cookies else None,
            bearer_token=_bearer_token(req),
        )

    async def process_resource(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, resource, params
    ) -> None:
        """Trace the request and stop it here when the gate denies."""
        resource_name = getattr(resource, "resource_name", None)
        actions = getattr(resource, "resource_actions", None) or {}
        action = actions.get(req.method, METHOD_ACTIONS.get(req.method))

        try:
            admission = await self._mediator.admit(
                _request_source(req, resource),
                GateRequest(
                    endpoint=req.path,
                    resource=resource_name,
                    action=action if resource_name else None,
                    credentials=self._credentials(req),
                ),
            )
        except AdmissionError as e:
            # Already logged and journaled as failed by the mediator.
            req.context.trace_id = e.trace_id
            resp.set_header("X-Trace-Id", e.trace_id)
            render_error(req, resp, ErrorCode.INTERNAL_ERROR)
            resp.complete = True
            return
        req.context.trace_id = admission.trace_id
        req.context.verdict = admission.verdict
        req.context.actor = admission.verdict.actor
        resp.set_header("X-Trace-Id", admission.trace_id)

        if not admission.granted:
            render_error(req, resp, admission.verdict.reason)
            resp.complete = True

    async def process_response(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, resource, req_succeeded
    ) -> None:
        """Record completed or failed; denials were already recorded at admission."""
        trace_id = getattr(req.context, "trace_id", None)
        verdict = getattr(req.context, "verdict", None)
        if trace_id is None or verdict is None or not verdict.granted:
            return
        if req_succeeded and getattr(req.context, "ledger_deferred", False):
            return

        status = falcon.http_status_to_code(resp.status)
        if req_succeeded and status < 400:
            self._mediator.complete(trace_id, getattr(req.context, "change_event", None))
            return
        code = getattr(req.context, "error_code", None) or code_for_status(status)
        self._mediator.fail(trace_id, code)
