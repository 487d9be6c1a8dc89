"""Typed error results rendered as HTTP responses."""

import falcon
import falcon.asgi

from warden.domain.error_codes import ErrorCode

_STATUS = {
    ErrorCode.AUTH_REQUIRED: falcon.HTTP_401,
    ErrorCode.AUTH_INVALID: falcon.HTTP_401,
    ErrorCode.PERMISSION_DENIED: falcon.HTTP_403,
    ErrorCode.NOT_FOUND: falcon.HTTP_404,
    ErrorCode.VALIDATION_ERROR: falcon.HTTP_400,
    ErrorCode.CONFIGURATION_ERROR: falcon.HTTP_400,
}

_MESSAGES = {
    ErrorCode.AUTH_REQUIRED: "Authentication required",
    ErrorCode.AUTH_INVALID: "Invalid or expired credential",
    ErrorCode.PERMISSION_DENIED: "Permission denied",
    ErrorCode.NOT_FOUND: "Not found",
    ErrorCode.VALIDATION_ERROR: "Invalid request",
    ErrorCode.CONFIGURATION_ERROR: "Invalid permission configuration",
}


def render_error(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    code: ErrorCode,
    message: str | None = None,
) -> None:
    """Set status and body for ``code``; the trace id is always included."""
    resp.status = _STATUS.get(code, falcon.HTTP_500)
    resp.media = {
        "error": code.value,
        "message": message or _MESSAGES.get(code, "Internal server error"),
        "trace_id": getattr(req.context, "trace_id", None),
    }
    if code in (ErrorCode.AUTH_REQUIRED, ErrorCode.AUTH_INVALID):
        resp.set_header("WWW-Authenticate", "Bearer")
    req.context.error_code = code


def code_for_status(status: int) -> ErrorCode:
    """Ledger error code for a failed response without an explicit code."""
    if status == 401:
        return ErrorCode.AUTH_REQUIRED
    if status == 403:
        return ErrorCode.PERMISSION_DENIED
    if status == 404:
        return ErrorCode.NOT_FOUND
    if 400 <= status < 500:
        return ErrorCode.VALIDATION_ERROR
    return ErrorCode.INTERNAL_ERROR
