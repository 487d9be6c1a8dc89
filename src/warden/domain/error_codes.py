"""Error taxonomy shared by the gate, the ledger and the API adapter."""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Typed reason attached to denials and failed ledger entries."""

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    LEDGER_UNAVAILABLE = "LEDGER_UNAVAILABLE"
    BROADCAST_DELIVERY_FAILED = "BROADCAST_DELIVERY_FAILED"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
