from __future__ import annotations

from typing import Optional

import pytest
from pydantic import BaseModel

from vunshdb import identity
from vunshdb.exceptions import (
    MissingRequiredField,
    SchemaDefinitionError,
    SchemaViolation,
    TypeMismatch,
    UndeclaredField,
)
from vunshdb.schema import (
    Described,
    FieldKind,
    Nested,
    Primitive,
    Schema,
    Sequence,
    as_schema,
)

PROFILE = {
    "username": str,
    "age": int,
    "active": {"type": bool},
    "nickname": {"type": str},
    "role": {"type": str, "default": "guest"},
    "profile": {"bio": str, "links": [str]},
    "tags": list,
    "status": "active",
}


def test_declarations_are_parsed_into_variants() -> None:
    schema = Schema(PROFILE)
    assert schema.fields["username"] == Primitive(FieldKind.STRING)
    assert schema.fields["age"] == Primitive(FieldKind.NUMBER)
    assert schema.fields["role"] == Described(FieldKind.STRING, default="guest")
    assert isinstance(schema.fields["profile"], Nested)
    assert schema.fields["profile"].fields["links"] == Sequence(Primitive(FieldKind.STRING))
    assert schema.fields["tags"] == Sequence()
    assert schema.fields["status"] == Described(FieldKind.STRING, default="active")
    assert list(schema.fields) == list(PROFILE)


def test_apply_defaults_fills_every_declared_field() -> None:
    schema = Schema(PROFILE)
    document = schema.apply_defaults({"username": "JohnDoe"})

    assert document["username"] == "JohnDoe"
    assert document["age"] is None
    assert document["active"] is False
    assert document["nickname"] == ""
    assert document["role"] == "guest"
    assert document["profile"] == {"bio": None, "links": []}
    assert document["tags"] == []
    assert document["status"] == "active"
    assert identity.is_valid(document["_id"])


def test_apply_defaults_keeps_supplied_values_verbatim() -> None:
    schema = Schema(PROFILE)
    document = schema.apply_defaults(
        {"_id": "custom", "age": None, "profile": {"bio": "hi"}, "tags": ["a"]}
    )
    assert document["_id"] == "custom"
    assert document["age"] is None
    # supplied nested documents are not defaulted further
    assert document["profile"] == {"bio": "hi"}
    assert document["tags"] == ["a"]


def test_apply_defaults_drops_undeclared_fields() -> None:
    schema = Schema({"username": str})
    document = schema.apply_defaults({"username": "a", "extra": 1})
    assert "extra" not in document
    assert set(document) == {"username", "_id"}


def test_apply_defaults_is_idempotent() -> None:
    schema = Schema(PROFILE)
    once = schema.apply_defaults({"username": "JohnDoe", "age": 25})
    assert schema.apply_defaults(once) == once


def test_descriptor_defaults_are_copied() -> None:
    schema = Schema({"tags": {"type": list, "default": ["x"]}})
    first = schema.apply_defaults({})
    first["tags"].append("y")
    assert schema.apply_defaults({})["tags"] == ["x"]


def test_disabled_identifiers() -> None:
    schema = Schema({"_id": False, "name": str})
    assert not schema.ids_enabled
    assert schema.apply_defaults({"name": "a", "_id": "x"}) == {"name": "a"}


def test_declared_identifier_field_still_gets_generated() -> None:
    schema = Schema({"_id": str, "name": str})
    document = schema.apply_defaults({"name": "a"})
    assert identity.is_valid(document["_id"])


def test_validate_rejects_undeclared_fields() -> None:
    schema = Schema(PROFILE)
    with pytest.raises(UndeclaredField) as excinfo:
        schema.validate({"username": "a", "email": "a@example.com"})
    assert excinfo.value.field == "email"

    with pytest.raises(UndeclaredField) as excinfo:
        schema.validate({"profile": {"bio": "x", "avatar": "y"}})
    assert excinfo.value.field == "profile.avatar"


@pytest.mark.parametrize(
    ("document", "field", "expected"),
    [
        ({"username": 5}, "username", "string"),
        ({"age": "25"}, "age", "number"),
        ({"age": True}, "age", "number"),
        ({"active": "yes"}, "active", "boolean"),
        ({"tags": "a,b"}, "tags", "array"),
        ({"profile": {"bio": 3}}, "profile.bio", "string"),
        ({"profile": {"links": ["ok", 3]}}, "profile.links[1]", "string"),
        ({"profile": "nope"}, "profile", "object"),
    ],
)
def test_validate_rejects_type_mismatch(document: dict, field: str, expected: str) -> None:
    schema = Schema(PROFILE)
    with pytest.raises(TypeMismatch) as excinfo:
        schema.validate(document)
    assert isinstance(excinfo.value, SchemaViolation)
    assert excinfo.value.field == field
    assert excinfo.value.expected == expected


def test_validate_accepts_defaulted_documents() -> None:
    schema = Schema(PROFILE)
    schema.validate(schema.apply_defaults({"username": "a", "age": 2.5}))


def test_validate_skips_identifier_and_index_keys() -> None:
    schema = Schema({"name": str})
    schema.validate({"_id": 123, "0": "x", "17": None, "name": "a"})


def test_validate_function_fields() -> None:
    schema = Schema({"callback": callable})
    schema.validate({"callback": print})
    with pytest.raises(TypeMismatch):
        schema.validate({"callback": "print"})


def test_required_is_advisory_by_default() -> None:
    schema = Schema({"name": {"type": str, "required": True}})
    assert schema.fields["name"].required
    schema.validate({})
    schema.validate({"name": None})


def test_strict_required_rejects_absent_fields() -> None:
    schema = Schema({"name": {"type": str, "required": True}}, strict_required=True)
    with pytest.raises(MissingRequiredField) as excinfo:
        schema.validate({})
    assert excinfo.value.field == "name"
    schema.validate({"name": "a"})


def test_is_valid() -> None:
    schema = Schema({"name": str})
    assert schema.is_valid({"name": "a"})
    assert not schema.is_valid({"name": 1})
    assert not schema.is_valid({"other": 1})


def test_schema_is_immutable() -> None:
    schema = Schema({"name": str})
    with pytest.raises(AttributeError):
        schema.strict = True  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        schema.fields["other"] = Primitive(FieldKind.STRING)  # type: ignore[index]


@pytest.mark.parametrize(
    "definition",
    [
        {"tags": [str, int]},
        {"when": {"type": set}},
        {"when": set},
        {"fn": lambda: None},
        {1: str},
        ["name"],
    ],
)
def test_malformed_definitions(definition: object) -> None:
    with pytest.raises(SchemaDefinitionError):
        Schema(definition)  # type: ignore[arg-type]


class Address(BaseModel):
    city: str
    zip: Optional[str] = None


class User(BaseModel):
    name: str
    age: int = 0
    tags: list[str] = []
    address: Address


def test_schema_from_pydantic_model() -> None:
    schema = Schema.from_model(User)
    assert schema.fields["name"] == Described(FieldKind.STRING, required=True)
    assert schema.fields["age"] == Described(FieldKind.NUMBER, default=0)
    assert schema.fields["tags"] == Sequence(Primitive(FieldKind.STRING))
    assert isinstance(schema.fields["address"], Nested)

    document = schema.apply_defaults({"name": "Ada"})
    assert document["age"] == 0
    assert document["tags"] == []
    assert document["address"] == {"city": "", "zip": None}
    schema.validate(document)
    User.model_validate({k: v for k, v in document.items() if k != "_id"})


def test_as_schema() -> None:
    schema = Schema({"name": str})
    assert as_schema(schema) is schema
    assert "name" in as_schema({"name": str})
    assert "address" in as_schema(User)
    with pytest.raises(SchemaDefinitionError):
        as_schema(42)  # type: ignore[arg-type]
