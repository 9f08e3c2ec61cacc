from bramble.auth import AllowedFields, OperationPermissions
from bramble.context import (
    Context,
    add_outgoing_requests_header_to_context,
    add_permissions_to_context,
    get_outgoing_request_headers_from_context,
    get_permissions_from_context,
)


def test_outgoing_request_headers():
    ctx = Context()
    ctx = add_outgoing_requests_header_to_context(ctx, "My-Header-1", "value1")
    ctx = add_outgoing_requests_header_to_context(ctx, "My-Header-1", "value2")
    ctx = add_outgoing_requests_header_to_context(ctx, "My-Header-2", "value3")

    assert get_outgoing_request_headers_from_context(ctx) == {
        "My-Header-1": ["value1", "value2"],
        "My-Header-2": ["value3"],
    }


def test_header_keys_are_canonicalized():
    ctx = add_outgoing_requests_header_to_context(Context(), "x-request-id", "abc")
    ctx = add_outgoing_requests_header_to_context(ctx, "X-REQUEST-ID", "def")
    assert get_outgoing_request_headers_from_context(ctx) == {"X-Request-Id": ["abc", "def"]}


def test_no_headers_gives_none():
    assert get_outgoing_request_headers_from_context(Context()) is None


def test_adding_headers_leaves_parent_unchanged():
    parent = add_outgoing_requests_header_to_context(Context(), "A", "1")
    add_outgoing_requests_header_to_context(parent, "A", "2")
    assert get_outgoing_request_headers_from_context(parent) == {"A": ["1"]}


def test_permissions_round_trip():
    perms = OperationPermissions(query=AllowedFields(allow_all=True))
    ctx = add_permissions_to_context(Context(), perms)
    assert get_permissions_from_context(ctx) == perms


def test_missing_permissions():
    assert get_permissions_from_context(Context()) is None


def test_value_lookup_walks_chain():
    ctx = Context().with_value("a", 1).with_value("b", 2).with_value("a", 3)
    assert (ctx.value("a"), ctx.value("b"), ctx.value("c")) == (3, 2, None)