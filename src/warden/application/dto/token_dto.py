"""Delegated token DTOs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class TokenIssueInput:
    """Input for issuing a delegated token."""

    name: str
    permissions: list[str]
    expires_in_seconds: int


@dataclass
class IssuedToken:
    """Issued token; ``token`` is the bearer value and is only returned once."""

    id: UUID
    name: str
    token: str
    permissions: list[str]
    created_at: datetime
    expires_at: datetime
