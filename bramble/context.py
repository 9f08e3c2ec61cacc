"""Request-scoped values: user permissions and headers for outgoing requests."""

from __future__ import annotations

import enum
from typing import Any

from bramble.auth import OperationPermissions

_MISSING = object()
_HEADER_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~")


class _Key(enum.Enum):
    PERMISSIONS = 1
    REQUEST_HEADERS = 2


class Context:
    """An immutable chain of key/value pairs carried along with a request."""

    __slots__ = ("_parent", "_key", "_value")

    def __init__(self) -> None:
        self._parent: Context | None = None
        self._key: Any = _MISSING
        self._value: Any = None

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a new context that carries the value under the key."""
        child = Context()
        child._parent = self
        child._key = key
        child._value = value
        return child

    def value(self, key: Any) -> Any:
        """Return the value stored under the key, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._key is not _MISSING and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None


def _canonical_header_key(key: str) -> str:
    valid = key and all(
        c.isascii() and (c.isalnum() or c in _HEADER_TOKEN_CHARS) for c in key
    )
    if not valid:
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def add_permissions_to_context(ctx: Context, perms: OperationPermissions) -> Context:
    """Return a context carrying the permissions to check queries against."""
    return ctx.with_value(_Key.PERMISSIONS, perms)


def get_permissions_from_context(ctx: Context) -> OperationPermissions | None:
    """Return the permissions stored in the context, or None if there are none."""
    perms = ctx.value(_Key.PERMISSIONS)
    return perms if isinstance(perms, OperationPermissions) else None


def add_outgoing_requests_header_to_context(ctx: Context, key: str, value: str) -> Context:
    """Return a context that adds the header to every outgoing request."""
    current = ctx.value(_Key.REQUEST_HEADERS)
    headers: dict[str, list[str]] = (
        {name: list(values) for name, values in current.items()}
        if isinstance(current, dict)
        else {}
    )
    headers.setdefault(_canonical_header_key(key), []).append(value)
    return ctx.with_value(_Key.REQUEST_HEADERS, headers)


def get_outgoing_request_headers_from_context(ctx: Context) -> dict[str, list[str]] | None:
    """Return the headers to add to outgoing requests, or None if there are none."""
    headers = ctx.value(_Key.REQUEST_HEADERS)
    return headers if isinstance(headers, dict) else None