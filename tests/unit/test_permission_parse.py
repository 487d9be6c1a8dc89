"""Unit tests for permission string parsing."""

import pytest

from warden.domain.exceptions import ConfigurationError
from warden.domain.value_objects import Permission, Scope, parse_permissions


def test_parse_canonical_triple() -> None:
    """resource:action:scope is tokenized into a structured triple."""
    p = Permission.parse("invoice:read:group")
    assert p == Permission("invoice", "read", Scope.GROUP)
    assert str(p) == "invoice:read:group"


def test_parse_strips_whitespace() -> None:
    assert Permission.parse(" invoice : read : own ") == Permission("invoice", "read", Scope.OWN)


def test_parse_admin_grant() -> None:
    p = Permission.parse("*:*:all")
    assert (p.resource, p.action, p.scope) == ("*", "*", Scope.ALL)


@pytest.mark.parametrize(
    "value",
    [
        "invoice:read",
        "invoice:read:own:extra",
        ":read:own",
        "invoice::own",
        "invoice:read:world",
        "invoice:read:*",
        "",
    ],
)
def test_malformed_permission_raises_configuration_error(value: str) -> None:
    with pytest.raises(ConfigurationError):
        Permission.parse(value)


def test_non_string_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        Permission.parse(42)  # type: ignore[arg-type]


def test_parse_permissions_rejects_duplicates() -> None:
    with pytest.raises(ConfigurationError, match="Duplicate"):
        parse_permissions(["invoice:read:own", "invoice:read:own"])


def test_parse_permissions_returns_frozenset() -> None:
    parsed = parse_permissions(["invoice:read:own", "order:*:all"])
    assert parsed == frozenset(
        {Permission("invoice", "read", Scope.OWN), Permission("order", "*", Scope.ALL)}
    )
