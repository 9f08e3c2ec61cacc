"""GraphQL schema and query document nodes."""

from __future__ import annotations

import dataclasses
import enum
from typing import Union


@dataclasses.dataclass
class Type:
    """A GraphQL type reference: a named type or a list of another type."""

    named_type: str = ""
    elem: Type | None = None
    non_null: bool = False

    def name(self) -> str:
        """Return the name of the innermost named type."""
        if self.named_type:
            return self.named_type
        if self.elem is not None:
            return self.elem.name()
        return ""

    def __str__(self) -> str:
        inner = self.named_type if self.named_type else f"[{self.elem}]"
        return f"{inner}!" if self.non_null else inner


@dataclasses.dataclass
class ArgumentDefinition:
    """An argument declared on a field or an input field."""

    name: str
    type: Type


@dataclasses.dataclass
class FieldDefinition:
    """A field declared on an object, interface or input type."""

    name: str
    type: Type
    arguments: list[ArgumentDefinition] = dataclasses.field(default_factory=list)


class DefinitionKind(enum.Enum):
    SCALAR = "SCALAR"
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    INPUT_OBJECT = "INPUT_OBJECT"


@dataclasses.dataclass
class Definition:
    """A named type definition in a schema."""

    kind: DefinitionKind
    name: str
    fields: list[FieldDefinition] = dataclasses.field(default_factory=list)
    types: list[str] = dataclasses.field(default_factory=list)
    interfaces: list[str] = dataclasses.field(default_factory=list)

    def field(self, name: str) -> FieldDefinition | None:
        """Return the field with the given name, or None."""
        return next((f for f in self.fields if f.name == name), None)


@dataclasses.dataclass
class Field:
    """A field selection in a query document."""

    name: str
    alias: str = ""
    selection_set: list[Selection] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class FragmentDefinition:
    """A named fragment declared in a query document."""

    name: str
    type_condition: str
    selection_set: list[Selection] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class FragmentSpread:
    """A spread of a named fragment inside a selection set."""

    name: str
    definition: FragmentDefinition


@dataclasses.dataclass
class InlineFragment:
    """An inline fragment inside a selection set."""

    type_condition: str
    selection_set: list[Selection] = dataclasses.field(default_factory=list)


Selection = Union[Field, FragmentSpread, InlineFragment]


class Operation(enum.Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclasses.dataclass
class OperationDefinition:
    """A single operation of a query document."""

    operation: Operation
    selection_set: list[Selection] = dataclasses.field(default_factory=list)
    name: str = ""


_ROOTS = (("query", "Query"), ("mutation", "Mutation"), ("subscription", "Subscription"))


@dataclasses.dataclass
class Schema:
    """A GraphQL schema: its types, root types and possible types."""

    types: dict[str, Definition] = dataclasses.field(default_factory=dict)
    query: Definition | None = None
    mutation: Definition | None = None
    subscription: Definition | None = None
    possible_types: dict[str, list[Definition]] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        for attr, type_name in _ROOTS:
            if getattr(self, attr) is None:
                setattr(self, attr, self.types.get(type_name))
        if not self.possible_types:
            self.possible_types = self._derive_possible_types()

    def _derive_possible_types(self) -> dict[str, list[Definition]]:
        possible: dict[str, list[Definition]] = {}
        for definition in self.types.values():
            if definition.kind is DefinitionKind.OBJECT:
                possible.setdefault(definition.name, []).append(definition)
                for interface in definition.interfaces:
                    possible.setdefault(interface, []).append(definition)
            elif definition.kind is DefinitionKind.UNION:
                possible[definition.name] = [
                    self.types[member] for member in definition.types if member in self.types
                ]
        return possible