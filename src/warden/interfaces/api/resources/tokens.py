"""Delegated token API resources."""

from uuid import UUID

import falcon
import falcon.asgi

from warden.application.dto.token_dto import TokenIssueInput
from warden.application.use_cases.token.issue_token import IssueTokenUseCase
from warden.application.use_cases.token.revoke_token import RevokeTokenUseCase
from warden.domain.error_codes import ErrorCode
from warden.domain.exceptions import WardenError
from warden.interfaces.api.errors import render_error


def _permissions_from(value: object) -> list[str]:
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, list):
        return [str(p) for p in value]
    raise TypeError("permissions must be a list or comma-separated string")


class TokensResource:
    """POST /v1/tokens - issue a delegated token for the caller."""

    resource_name = "token"

    def __init__(self, issue_token: IssueTokenUseCase) -> None:
        self._issue = issue_token

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Issue token. Body: name, permissions, expires_in (seconds)."""
        try:
            body = await req.get_media()
            data = TokenIssueInput(
                name=body["name"],
                permissions=_permissions_from(body["permissions"]),
                expires_in_seconds=int(body["expires_in"]),
            )
        except (KeyError, TypeError, ValueError, falcon.HTTPBadRequest) as e:
            render_error(req, resp, ErrorCode.VALIDATION_ERROR, f"Invalid request body: {e}")
            return

        try:
            issued = await self._issue.execute(req.context.verdict, data)
        except WardenError as e:
            render_error(req, resp, e.code, str(e))
            return

        resp.media = {
            "id": str(issued.id),
            "name": issued.name,
            "token": issued.token,
            "permissions": issued.permissions,
            "created_at": issued.created_at.isoformat(),
            "expires_at": issued.expires_at.isoformat(),
        }
        resp.status = falcon.HTTP_201


class TokenResource:
    """DELETE /v1/tokens/{token_id} - revoke a delegated token."""

    resource_name = "token"

    def __init__(self, revoke_token: RevokeTokenUseCase) -> None:
        self._revoke = revoke_token

    async def on_delete(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        token_id: str,
    ) -> None:
        """Revoke token owned by the caller (or any, with token:delete:all)."""
        try:
            tid = UUID(token_id)
        except ValueError:
            render_error(req, resp, ErrorCode.VALIDATION_ERROR, "Invalid token ID")
            return

        try:
            await self._revoke.execute(req.context.verdict, tid)
        except WardenError as e:
            render_error(req, resp, e.code, str(e))
            return
        resp.status = falcon.HTTP_204
