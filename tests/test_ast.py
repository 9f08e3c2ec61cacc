from bramble.ast import (
    Definition,
    DefinitionKind,
    FieldDefinition,
    Schema,
    Type,
)


def _obj(name, *field_names, interfaces=()):
    return Definition(
        kind=DefinitionKind.OBJECT,
        name=name,
        fields=[FieldDefinition(name=n, type=Type(named_type="String")) for n in field_names],
        interfaces=list(interfaces),
    )


def test_type_name_of_nested_list():
    typ = Type(elem=Type(elem=Type(named_type="Movie", non_null=True)), non_null=True)
    assert typ.name() == "Movie"


def test_type_string_form():
    typ = Type(elem=Type(named_type="Movie", non_null=True), non_null=True)
    assert str(typ) == "[Movie!]!"


def test_empty_type_has_empty_name():
    assert Type().name() == ""


def test_definition_field_lookup():
    movie = _obj("Movie", "id", "title")
    assert movie.field("title") is movie.fields[1]
    assert movie.field("missing") is None


def test_schema_roots_taken_from_types():
    query = _obj("Query", "movies")
    schema = Schema(types={"Query": query, "Movie": _obj("Movie", "id")})
    assert schema.query is query
    assert schema.mutation is None
    assert schema.subscription is None


def test_schema_possible_types_for_interfaces_and_unions():
    person = Definition(kind=DefinitionKind.INTERFACE, name="Person", fields=[])
    cast = _obj("Cast", "name", interfaces=["Person"])
    director = _obj("Director", "name", interfaces=["Person"])
    union = Definition(kind=DefinitionKind.UNION, name="Either", types=["Director", "Cast"])
    schema = Schema(
        types={"Person": person, "Cast": cast, "Director": director, "Either": union}
    )
    assert [d.name for d in schema.possible_types["Person"]] == ["Cast", "Director"]
    assert [d.name for d in schema.possible_types["Either"]] == ["Director", "Cast"]
    assert schema.possible_types["Cast"] == [cast]


def test_schema_keeps_explicit_possible_types():
    cast = _obj("Cast", "name", interfaces=["Person"])
    schema = Schema(types={"Cast": cast}, possible_types={"Person": []})
    assert schema.possible_types == {"Person": []}