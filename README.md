# bramble

Core pieces of a federated GraphQL gateway. Each piece can be used on its own.
The package uses only the standard library.

- `bramble.ast`: plain dataclasses for GraphQL schema and query nodes
  (`Schema`, `Definition`, `FieldDefinition`, `Type`, `OperationDefinition`,
  `Field`, `FragmentSpread`, `InlineFragment`, ...).
- `bramble.auth`: field permissions. You can serialise them to and from JSON,
  merge several sets, strip unauthorised fields from an operation and build a
  filtered copy of a schema.
- `bramble.client`: a GraphQL-over-HTTP client built on `urllib.request`.
- `bramble.config`: loads gateway configuration from JSON files and the
  environment.
- `bramble.context`: an immutable `Context` that carries permissions and the
  headers to add to outgoing requests.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Permissions

An `AllowedFields` value describes which fields may be selected. Its JSON form
is compact:

- `"*"` allows everything below a field.
- A list of names allows those fields and everything below each of them.
- An object narrows each field further.

```python
from bramble.auth import OperationPermissions, merge_permissions

reader = OperationPermissions.from_json('{"query": {"movie": ["title"]}}')
editor = OperationPermissions.from_json('{"mutation": "*"}')

combined = merge_permissions(reader, editor)
print(combined.to_json())
# {"mutation":"*","query":{"movie":["title"]}}
```

Behaviour of the main functions:

- `to_json` leaves out any operation type that was never set.
- `merge_permissions` and `merge_allowed_fields` return the union of their
  arguments. If any argument allows everything, so does the result.
- `AllowedFields.is_allowed(name)` always allows `__schema` and `__type`,
  together with everything below them. It also always allows `__typename`.

`OperationPermissions.filter_authorized_fields(op)` changes an
`OperationDefinition` in place:

- It removes every selection that is not allowed.
- It descends into named fragments and inline fragments.
- It returns a list of `FieldAccessError`, one per removed field. Each message
  has the form `user do not have permission to access field query.movies.compTitles`.

`OperationPermissions.filter_schema(schema)` returns a new `Schema` that holds
only the root fields the permissions allow, plus the types those fields can
reach:

- It includes field argument types and input types.
- For an interface, it includes the implementing types.
- For a union, it includes the member types.
- If a type is reached along several paths, its allowed fields from every path
  are merged.

Schemas and operations are built directly from the `bramble.ast` classes.
`Schema` fills in its `query`, `mutation` and `subscription` root types from
`Query`, `Mutation` and `Subscription` in `types`. It derives `possible_types`
from object interfaces and union members.

## Client

```python
from bramble.client import GraphQLClient, Request, generate_user_agent

client = GraphQLClient(user_agent=generate_user_agent("query"))
data = client.request(
    "http://localhost:8080/query",
    Request("{ service { name } }").with_headers({"X-Request-Id": "abc"}),
)
```

`request` sends the request as a JSON POST and returns the `data` member of
the response.

Header values given to `Request.with_headers` may be strings or lists of
strings. A list is joined with `", "`.

`GraphQLClient` takes these keyword options:

| Option              | Default               | Meaning                                          |
|---------------------|-----------------------|--------------------------------------------------|
| `timeout`           | `5.0`                 | Seconds                                          |
| `max_response_size` | 1 MiB                 | Largest response read, in bytes; `0` means no limit |
| `user_agent`        | empty                 | Sent only when set                               |
| `opener`            | a default opener      | A `urllib.request.OpenerDirector`                |

Errors:

- A response with a non-empty `errors` list raises `GraphqlErrors`. Its
  `errors` attribute holds `GraphqlError` items, and its message is the error
  messages joined by commas.
- A transport failure or an unreadable response raises `ClientError`.
- A response larger than the limit raises `ClientError` with the message
  `response exceeded maximum size of N bytes`.

`generate_user_agent(op)` returns `Bramble/<version> (<op>)`.

## Configuration

```python
from bramble.config import get_config

cfg = get_config(["config.json"])
print(cfg.gateway_address(), cfg.services, cfg.poll_interval_duration)
```

`get_config` starts from these defaults:

- gateway port 8082, private port 8083, metrics port 9009
- log level debug
- poll interval `5s`
- 50 requests per query
- 1 MiB service response size

It then loads each file in order, and later files override earlier ones. The
keys it reads are:

- `gateway-port`, `private-port`, `metrics-port`
- `gateway-address`, `private-address`, `metrics-address`
- `services`, `loglevel`, `poll-interval`
- `max-requests-per-query`, `max-service-response-size`, `id-field-name`
- `plugins`, whose entries have `name` and `config`; the lists from all files
  are concatenated
- `extensions`

The environment is read as well:

- `BRAMBLE_LOG_LEVEL` overrides the log level of the `bramble` logger.
- `BRAMBLE_SERVICE_LIST` is a whitespace-separated list of extra services. It
  is added to `services`, and duplicates are removed.

`ConfigError` is raised in these cases:

- a file is invalid
- the poll interval cannot be parsed; `parse_duration` accepts forms such as
  `300ms`, `5s` and `1h30m`
- no service is configured anywhere

An address, where one is set, takes precedence over its port:

- `gateway_address()`, `private_address()` and `metric_address()` return
  either the address or `:<port>`.
- `private_http_address(path)` returns an HTTP URL on the private server.

## Context

```python
from bramble.context import (
    Context,
    add_outgoing_requests_header_to_context,
    get_outgoing_request_headers_from_context,
)

ctx = add_outgoing_requests_header_to_context(Context(), "my-header", "value1")
ctx = add_outgoing_requests_header_to_context(ctx, "My-Header", "value2")
print(get_outgoing_request_headers_from_context(ctx))
# {'My-Header': ['value1', 'value2']}
```

Header names are put into canonical form, and each call returns a new context.
`add_permissions_to_context` and `get_permissions_from_context` store and read
an `OperationPermissions` in the same way. The getters return `None` when
nothing is stored.

## What this package does not do

This package has no gateway server and no command to start one. It does not:

- fetch or merge service schemas
- plan or execute federated queries
- parse GraphQL text; schemas and operations are built from `bramble.ast`
  objects
- load or run plugins; `plugins` entries are only read into `PluginConfig`
  values
- watch config files for changes; `Config.load()` must be called again to
  reload them