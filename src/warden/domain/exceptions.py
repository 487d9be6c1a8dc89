"""Domain exceptions."""

from warden.domain.error_codes import ErrorCode


class WardenError(Exception):
    """Base exception for Warden."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class AuthenticationRequired(WardenError):
    """No usable credential was presented to a protected endpoint."""

    code = ErrorCode.AUTH_REQUIRED


class InvalidCredential(WardenError):
    """Credential present but expired, revoked or malformed."""

    code = ErrorCode.AUTH_INVALID


class PermissionDenied(WardenError):
    """Identified actor does not hold a matching grant."""

    code = ErrorCode.PERMISSION_DENIED


class ConfigurationError(WardenError):
    """Malformed permission configuration, raised where permissions are authored."""

    code = ErrorCode.CONFIGURATION_ERROR


class LedgerUnavailable(WardenError):
    """Request ledger channel could not accept an entry."""

    code = ErrorCode.LEDGER_UNAVAILABLE


class NotFound(WardenError):
    """Requested resource was not found."""

    code = ErrorCode.NOT_FOUND


class ValidationError(WardenError):
    """Validation failed for input data."""

    code = ErrorCode.VALIDATION_ERROR


class RoleInUse(ValidationError):
    """Role is still assigned to at least one actor."""

    pass


class DeliveryFailed(WardenError):
    """Event could not be handed to one subscriber; isolated to that subscriber."""

    code = ErrorCode.BROADCAST_DELIVERY_FAILED
