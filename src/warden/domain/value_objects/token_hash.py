"""Delegated token digest for lookup."""

import hashlib
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenHash:
    """SHA-256 hex digest of a bearer token value."""

    value: str

    def __post_init__(self) -> None:
        if len(self.value) != 64:
            raise ValueError("Token hash must be 64 hex characters")

    @classmethod
    def of(cls, token: str) -> "TokenHash":
        return cls(hashlib.sha256(token.encode("utf-8")).hexdigest())
