"""Current actor endpoint."""

import falcon.asgi

from warden.domain.error_codes import ErrorCode
from warden.interfaces.api.errors import render_error


class MeResource:
    """GET /v1/me - resolved actor, credential kind and effective grants."""

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        verdict = req.context.verdict
        actor = verdict.actor
        if actor is None:
            render_error(req, resp, ErrorCode.AUTH_REQUIRED)
            return
        resp.media = {
            "id": actor.id,
            "handle": actor.handle,
            "group_id": actor.group_id,
            "credential": "token" if verdict.grants.is_delegated else "session",
            "permissions": verdict.grants.as_strings(),
        }
        resp.status = falcon.HTTP_200
