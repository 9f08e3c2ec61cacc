"""A minimal GraphQL-over-HTTP client."""

from __future__ import annotations

import contextlib
import dataclasses
import json
import urllib.error
import urllib.request
from collections.abc import Mapping
from typing import Any

from bramble.config import VERSION


class ClientError(Exception):
    """A request could not be sent or its response could not be read."""


@dataclasses.dataclass
class GraphqlError:
    """A single error of a GraphQL response."""

    message: str
    path: list[str | int] | None = None
    extensions: dict[str, Any] | None = None


class GraphqlErrors(Exception):
    """The errors returned in a GraphQL response."""

    def __init__(self, errors: list[GraphqlError]) -> None:
        super().__init__(",".join(error.message for error in errors))
        self.errors = errors


@dataclasses.dataclass
class Request:
    """A GraphQL request."""

    query: str = ""
    operation_name: str = ""
    variables: dict[str, Any] | None = None
    headers: Mapping[str, str | list[str]] | None = None

    def with_headers(self, headers: Mapping[str, str | list[str]]) -> Request:
        """Set the HTTP headers sent with the request and return the request."""
        self.headers = headers
        return self

    def to_json(self) -> str:
        """Return the JSON body of the request."""
        body: dict[str, Any] = {"query": self.query}
        if self.operation_name:
            body["operationName"] = self.operation_name
        if self.variables:
            body["variables"] = self.variables
        return json.dumps(body)


def _parse_error(obj: Any) -> GraphqlError:
    if not isinstance(obj, dict):
        raise ValueError(f"invalid error object: {obj!r}")
    return GraphqlError(
        message=str(obj.get("message", "")),
        path=obj.get("path"),
        extensions=obj.get("extensions"),
    )


class GraphQLClient:
    """Sends GraphQL requests over HTTP."""

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        max_response_size: int = 1024 * 1024,
        user_agent: str = "",
        opener: urllib.request.OpenerDirector | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_response_size = max_response_size
        self.user_agent = user_agent
        self.opener = opener or urllib.request.build_opener()

    def request(self, url: str, request: Request) -> Any:
        """Send the request and return the response data.

        Raises GraphqlErrors if the response holds errors and ClientError if the
        request fails or the response cannot be read.
        """
        try:
            body = request.to_json().encode("utf-8")
        except (TypeError, ValueError) as err:
            raise ClientError(f"unable to encode request body: {err}") from err

        http_request = urllib.request.Request(url, data=body, method="POST")
        for name, value in (request.headers or {}).items():
            http_request.add_header(name, value if isinstance(value, str) else ", ".join(value))
        http_request.add_header("Content-Type", "application/json; charset=utf-8")
        http_request.add_header("Accept", "application/json; charset=utf-8")
        if self.user_agent:
            http_request.add_header("User-Agent", self.user_agent)

        try:
            try:
                response = self.opener.open(http_request, timeout=self.timeout)
            except urllib.error.HTTPError as err:
                response = err
            with contextlib.closing(response):
                limit = self.max_response_size
                raw = response.read(limit + 1) if limit > 0 else response.read()
        except (urllib.error.URLError, OSError, ValueError) as err:
            raise ClientError(f"error during request: {err}") from err

        exceeded = limit > 0 and len(raw) > limit
        if exceeded:
            raw = raw[:limit]
        try:
            text = raw.decode("utf-8").lstrip()
            document, _ = json.JSONDecoder().raw_decode(text)
            if not isinstance(document, dict):
                raise ValueError(f"expected a JSON object, got {document!r}")
            lowered = {key.lower(): value for key, value in document.items()}
            errors = [_parse_error(item) for item in lowered.get("errors") or []]
        except ValueError as err:
            if exceeded or (limit > 0 and len(raw) == limit):
                raise ClientError(f"response exceeded maximum size of {limit} bytes") from err
            raise ClientError(f"error decoding response: {err}") from err

        if errors:
            raise GraphqlErrors(errors)
        return lowered.get("data")


def generate_user_agent(operation: str) -> str:
    """Return the user agent used for the given kind of operation."""
    return f"Bramble/{VERSION} ({operation})"