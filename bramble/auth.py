"""Per-user field permissions for GraphQL operations and schemas."""

from __future__ import annotations

import dataclasses
import json
from typing import Any

from bramble.ast import (
    Definition,
    DefinitionKind,
    Field,
    FieldDefinition,
    FragmentSpread,
    InlineFragment,
    Operation,
    OperationDefinition,
    Schema,
    Selection,
)


class FieldAccessError(Exception):
    """A field in an operation that the user is not allowed to access."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _dump(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


@dataclasses.dataclass
class AllowedFields:
    """A recursive set of allowed fields."""

    allow_all: bool = False
    allowed_subfields: dict[str, AllowedFields] | None = None

    def is_allowed(self, field_name: str) -> tuple[bool, AllowedFields]:
        """Return whether the field is allowed, with the permissions for its subfields."""
        if field_name in ("__schema", "__type"):
            return True, AllowedFields(allow_all=True)
        if field_name == "__typename":
            return True, AllowedFields()
        subfields = (self.allowed_subfields or {}).get(field_name)
        if subfields is not None:
            return True, subfields
        return False, AllowedFields()

    def _to_obj(self) -> Any:
        if self.allow_all:
            return "*"
        subfields = self.allowed_subfields or {}
        if all(sub.allow_all for sub in subfields.values()):
            return sorted(subfields)
        return {name: sub._to_obj() for name, sub in subfields.items()}

    @classmethod
    def _from_obj(cls, obj: Any) -> AllowedFields:
        if isinstance(obj, str):
            if obj == "*":
                return cls(allow_all=True)
            raise ValueError(f"invalid allowed fields: {obj!r}")
        if obj is None:
            return cls(allowed_subfields={})
        if isinstance(obj, list) and all(isinstance(name, str) for name in obj):
            return cls(allowed_subfields={name: cls(allow_all=True) for name in obj})
        if isinstance(obj, dict):
            return cls(allowed_subfields={k: cls._from_obj(v) for k, v in obj.items()})
        raise ValueError(f"invalid allowed fields: {obj!r}")

    def to_json(self) -> str:
        """Return the JSON representation."""
        return _dump(self._to_obj())

    @classmethod
    def from_json(cls, data: str | bytes) -> AllowedFields:
        """Build from a JSON representation; raise ValueError if it is invalid."""
        return cls._from_obj(json.loads(data))


_OPERATION_KEYS = ("query", "mutation", "subscription")


@dataclasses.dataclass
class OperationPermissions:
    """The user permissions for every operation type."""

    query: AllowedFields = dataclasses.field(default_factory=AllowedFields)
    mutation: AllowedFields = dataclasses.field(default_factory=AllowedFields)
    subscription: AllowedFields = dataclasses.field(default_factory=AllowedFields)

    def to_json(self) -> str:
        """Return the JSON representation, leaving out unset operation types."""
        out = {}
        for key in _OPERATION_KEYS:
            allowed: AllowedFields = getattr(self, key)
            if allowed.allow_all or allowed.allowed_subfields is not None:
                out[key] = allowed._to_obj()
        return _dump(out)

    @classmethod
    def from_json(cls, data: str | bytes) -> OperationPermissions:
        """Build from a JSON representation; raise ValueError if it is invalid."""
        obj = json.loads(data)
        if obj is None:
            return cls()
        if not isinstance(obj, dict):
            raise ValueError(f"invalid operation permissions: {obj!r}")
        values = {}
        for key, value in obj.items():
            lowered = key.lower()
            if lowered in _OPERATION_KEYS:
                values[lowered] = AllowedFields._from_obj(value)
        return cls(**values)

    def filter_authorized_fields(self, op: OperationDefinition) -> list[FieldAccessError]:
        """Remove unauthorized fields from the operation; return one error per removed field."""
        if op.operation is Operation.QUERY:
            allowed, root = self.query, "query"
        elif op.operation is Operation.MUTATION:
            allowed, root = self.mutation, "mutation"
        elif op.operation is Operation.SUBSCRIPTION:
            allowed, root = self.subscription, "subscription"
        else:
            raise ValueError(f"invalid operation {op.operation!r} in operation filtering")
        op.selection_set, errors = _filter_fields([root], op.selection_set, allowed)
        return errors

    def filter_schema(self, schema: Schema) -> Schema:
        """Return a copy of the schema without unauthorized fields and types."""
        types: dict[str, Definition] = {}
        query = _filter_definition(schema, None, types, schema.query, self.query)
        if query is not None:
            types["Query"] = query
        mutation = _filter_definition(schema, None, types, schema.mutation, self.mutation)
        if mutation is not None:
            types["Mutation"] = mutation
        subscription = _filter_definition(
            schema, None, types, schema.subscription, self.subscription
        )
        if subscription is not None:
            types["Subscription"] = subscription
        return dataclasses.replace(
            schema, types=types, query=query, mutation=mutation, subscription=subscription
        )


def _add_argument_types(
    source: Schema,
    visited: set[tuple[str, str]] | None,
    types: dict[str, Definition],
    field_def: FieldDefinition,
) -> None:
    for argument in field_def.arguments:
        arg_def = source.types.get(argument.type.name())
        if arg_def is not None:
            types[arg_def.name] = arg_def
        _filter_definition(source, visited, types, arg_def, AllowedFields(allow_all=True))


def _merge_into(types: dict[str, Definition], name: str, definition: Definition) -> None:
    existing = types.get(name)
    if existing is None:
        types[name] = definition
        return
    # a type can be reached through several paths, each allowing other fields
    for f in definition.fields:
        if existing.field(f.name) is None:
            existing.fields.append(f)


def _filter_definition(
    source: Schema,
    visited: set[tuple[str, str]] | None,
    types: dict[str, Definition],
    definition: Definition | None,
    allowed: AllowedFields,
) -> Definition | None:
    if definition is None:
        return None

    if allowed.allow_all:
        if visited is None:
            visited = set()
        result = dataclasses.replace(definition, fields=list(definition.fields))
        for f in definition.fields:
            key = (definition.name, f.name)
            if key in visited:
                continue
            visited.add(key)
            type_name = f.type.name()
            typ = source.types.get(type_name)
            if typ is None:
                continue
            if typ.kind is DefinitionKind.INTERFACE:
                for possible in source.possible_types.get(typ.name, []):
                    types[possible.name] = possible
                    _filter_definition(
                        source, visited, types, possible, AllowedFields(allow_all=True)
                    )
            types[type_name] = typ
            _add_argument_types(source, visited, types, f)
            _filter_definition(source, visited, types, typ, AllowedFields(allow_all=True))
        for member in definition.types:
            member_def = source.types.get(member)
            if member_def is not None:
                types[member] = member_def
            _filter_definition(source, visited, types, member_def, AllowedFields(allow_all=True))
        return result

    result = dataclasses.replace(definition, fields=[])
    subfields = allowed.allowed_subfields or {}
    for f in definition.fields:
        allowed_sub = subfields.get(f.name)
        if allowed_sub is None:
            continue
        result.fields.append(f)
        type_name = f.type.name()
        typ = source.types.get(type_name)
        if typ is None:
            continue
        if typ.kind is DefinitionKind.INTERFACE:
            for possible in source.possible_types.get(typ.name, []):
                filtered = _filter_definition(source, visited, types, possible, allowed_sub)
                _merge_into(types, possible.name, filtered)
        filtered = _filter_definition(source, visited, types, typ, allowed_sub)
        _merge_into(types, type_name, filtered)
        _add_argument_types(source, visited, types, f)
    return result


def _filter_fields(
    path: list[str], selections: list[Selection], allowed: AllowedFields
) -> tuple[list[Selection], list[FieldAccessError]]:
    if allowed.allow_all:
        return selections, []

    result: list[Selection] = []
    errors: list[FieldAccessError] = []
    for selection in selections:
        if isinstance(selection, Field):
            ok, perms = allowed.is_allowed(selection.name)
            if not ok:
                errors.append(
                    FieldAccessError(
                        "user do not have permission to access field "
                        f"{'.'.join(path)}.{selection.name}"
                    )
                )
                continue
            if not perms.allow_all:
                selection.selection_set, sub_errors = _filter_fields(
                    [*path, selection.name], selection.selection_set, perms
                )
                errors.extend(sub_errors)
            result.append(selection)
        elif isinstance(selection, FragmentSpread):
            fragment = selection.definition
            fragment.selection_set, sub_errors = _filter_fields(
                path, fragment.selection_set, allowed
            )
            result.append(selection)
            errors.extend(sub_errors)
        elif isinstance(selection, InlineFragment):
            selection.selection_set, sub_errors = _filter_fields(
                path, selection.selection_set, allowed
            )
            result.append(selection)
            errors.extend(sub_errors)
    return result, errors


def merge_permissions(*args: OperationPermissions) -> OperationPermissions:
    """Return the union of the given permissions."""
    return OperationPermissions(
        query=merge_allowed_fields(*(p.query for p in args)),
        mutation=merge_allowed_fields(*(p.mutation for p in args)),
        subscription=merge_allowed_fields(*(p.subscription for p in args)),
    )


def merge_allowed_fields(*args: AllowedFields) -> AllowedFields:
    """Return the union of the given allowed fields."""
    merged: dict[str, AllowedFields] = {}
    for allowed in args:
        if allowed.allow_all:
            return AllowedFields(allow_all=True)
        for name, sub in (allowed.allowed_subfields or {}).items():
            existing = merged.get(name)
            merged[name] = sub if existing is None else merge_allowed_fields(sub, existing)
    return AllowedFields(allowed_subfields=merged)