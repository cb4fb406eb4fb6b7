"""
Declarative document schemas.

A schema maps field names to declarations. Declarations are written with
plain Python values and parsed once into a closed set of variants:

``Primitive``
    A bare type marker such as ``str``, ``int``, ``bool`` or ``dict``.
``Described``
    A descriptor mapping ``{"type": str, "default": "guest", "required": True}``.
    Literal values (``"active"``, ``3``) are shorthand for a descriptor whose
    default is the literal itself.
``Nested``
    Any other mapping, declaring the fields of an embedded document.
``Sequence``
    ``list`` or a one-element list such as ``[str]`` declaring the element type.

Defaulting and validation are plain dispatches over these variants.
"""

from __future__ import annotations

import copy
import types
import typing
from collections.abc import Callable as CallableABC
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from . import identity
from .exceptions import (
    MissingRequiredField,
    SchemaDefinitionError,
    SchemaViolation,
    TypeMismatch,
    UndeclaredField,
)
from .utils import describe_type, is_array_index

ID_FIELD = "_id"


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    FUNCTION = "function"
    ANY = "any"


MARKERS: Mapping[Any, FieldKind] = {
    str: FieldKind.STRING,
    int: FieldKind.NUMBER,
    float: FieldKind.NUMBER,
    bool: FieldKind.BOOLEAN,
    list: FieldKind.ARRAY,
    tuple: FieldKind.ARRAY,
    dict: FieldKind.OBJECT,
    callable: FieldKind.FUNCTION,
    CallableABC: FieldKind.FUNCTION,
    typing.Callable: FieldKind.FUNCTION,
    typing.Any: FieldKind.ANY,
    object: FieldKind.ANY,
}

DESCRIPTOR_KEYS = frozenset({"type", "default", "required"})


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


@dataclass(frozen=True)
class Primitive:
    kind: FieldKind


@dataclass(frozen=True)
class Described:
    kind: FieldKind
    default: Any = NO_DEFAULT
    required: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def zero_value(self) -> Any:
        if self.kind is FieldKind.BOOLEAN:
            return False
        if self.kind is FieldKind.STRING:
            return ""
        return None


@dataclass(frozen=True)
class Nested:
    fields: Mapping[str, "FieldDeclaration"]


@dataclass(frozen=True)
class Sequence:
    element: "FieldDeclaration | None" = None


FieldDeclaration = Union[Primitive, Described, Nested, Sequence]


def _lookup_marker(value: Any) -> FieldKind | None:
    if isinstance(value, FieldKind):
        return value
    try:
        return MARKERS.get(value)
    except TypeError:
        # unhashable values are never markers
        return None


def _kind_of_literal(value: Any) -> FieldKind:
    if value is None:
        return FieldKind.ANY
    if isinstance(value, bool):
        return FieldKind.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER
    if isinstance(value, str):
        return FieldKind.STRING
    raise SchemaDefinitionError(f"Unsupported field declaration {value!r}")


def _is_descriptor(raw: Mapping[str, Any]) -> bool:
    return "type" in raw and set(raw) <= DESCRIPTOR_KEYS


def parse_declaration(raw: Any, *, path: str = "") -> FieldDeclaration:
    """Turn one declarative value into its declaration variant."""
    if isinstance(raw, (Primitive, Described, Nested, Sequence)):
        return raw
    kind = _lookup_marker(raw)
    if kind is FieldKind.ARRAY:
        return Sequence()
    if kind is not None:
        return Primitive(kind)
    if isinstance(raw, list):
        if not raw:
            return Sequence()
        if len(raw) > 1:
            raise SchemaDefinitionError(
                f"Array declaration for '{path}' must list exactly one element type"
            )
        return Sequence(parse_declaration(raw[0], path=f"{path}[]"))
    if isinstance(raw, Mapping):
        if _is_descriptor(raw):
            declared = _lookup_marker(raw["type"])
            if declared is None:
                raise SchemaDefinitionError(
                    f"Descriptor for '{path}' has unsupported type {raw['type']!r}"
                )
            return Described(
                kind=declared,
                default=raw.get("default", NO_DEFAULT),
                required=bool(raw.get("required", False)),
            )
        return Nested(_parse_fields(raw, path=f"{path}."))
    if isinstance(raw, type) or callable(raw):
        raise SchemaDefinitionError(f"Unsupported field type {raw!r} for '{path}'")
    return Described(kind=_kind_of_literal(raw), default=raw)


def _parse_fields(definition: Mapping[str, Any], *, path: str = "") -> Mapping[str, FieldDeclaration]:
    fields: dict[str, FieldDeclaration] = {}
    for name, raw in definition.items():
        if not isinstance(name, str) or not name:
            raise SchemaDefinitionError(f"Field names must be non-empty strings, got {name!r}")
        fields[name] = parse_declaration(raw, path=f"{path}{name}")
    return types.MappingProxyType(fields)


def _matches_kind(kind: FieldKind, value: Any) -> bool:
    if kind is FieldKind.STRING:
        return isinstance(value, str)
    if kind is FieldKind.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is FieldKind.BOOLEAN:
        return isinstance(value, bool)
    if kind is FieldKind.ARRAY:
        return isinstance(value, (list, tuple))
    if kind is FieldKind.OBJECT:
        return isinstance(value, Mapping)
    if kind is FieldKind.FUNCTION:
        return callable(value)
    return True


class Schema:
    """Immutable field declarations used to default and validate documents.

    Parameters
    ----------
    definition:
        Mapping of field name to declaration. ``{"_id": False}`` disables
        identifiers for documents of this schema.
    strict_required:
        When ``True``, :meth:`validate` rejects documents in which a field
        declared ``required`` has no value. By default ``required`` is only
        recorded, never enforced.
    """

    __slots__ = ("_fields", "_ids_enabled", "_strict_required")

    def __init__(self, definition: Mapping[str, Any], *, strict_required: bool = False) -> None:
        if not isinstance(definition, Mapping):
            raise SchemaDefinitionError(
                f"Schema definition must be a mapping, got {type(definition).__name__}"
            )
        body = dict(definition)
        ids_enabled = True
        if body.get(ID_FIELD, NO_DEFAULT) is False:
            ids_enabled = False
            del body[ID_FIELD]
        object.__setattr__(self, "_fields", _parse_fields(body))
        object.__setattr__(self, "_ids_enabled", ids_enabled)
        object.__setattr__(self, "_strict_required", strict_required)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Schema instances are immutable")

    def __repr__(self) -> str:
        return f"Schema({dict(self._fields)!r})"

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    @property
    def fields(self) -> Mapping[str, FieldDeclaration]:
        return self._fields

    @property
    def ids_enabled(self) -> bool:
        return self._ids_enabled

    @property
    def strict_required(self) -> bool:
        return self._strict_required

    @classmethod
    def from_model(cls, model: type[BaseModel], *, strict_required: bool = False) -> "Schema":
        """Derive a schema from the fields of a Pydantic model."""
        instance = cls({}, strict_required=strict_required)
        object.__setattr__(instance, "_fields", _fields_from_model(model))
        return instance

    # Defaulting --------------------------------------------------------
    def apply_defaults(
        self,
        data: Mapping[str, Any],
        fields: Mapping[str, FieldDeclaration] | None = None,
    ) -> dict[str, Any]:
        """Return a new document holding every declared field.

        Values supplied in ``data`` are kept as-is; missing ones come from the
        declaration. Undeclared fields are dropped. At the top level an
        identifier is synthesized when ``data`` has no ``_id`` key.
        """
        root = fields is None
        declared = self._fields if fields is None else fields
        result: dict[str, Any] = {}
        for name, declaration in declared.items():
            if name in data:
                result[name] = data[name]
            elif isinstance(declaration, Described):
                if declaration.has_default:
                    result[name] = copy.deepcopy(declaration.default)
                else:
                    result[name] = declaration.zero_value()
            elif isinstance(declaration, Nested):
                result[name] = self.apply_defaults(data.get(name) or {}, declaration.fields)
            elif isinstance(declaration, Sequence):
                result[name] = []
            else:
                result[name] = None
        if root:
            if not self._ids_enabled:
                result.pop(ID_FIELD, None)
            elif ID_FIELD in data:
                result[ID_FIELD] = data[ID_FIELD]
            else:
                result[ID_FIELD] = identity.generate()
        return result

    # Validation --------------------------------------------------------
    def validate(
        self,
        data: Mapping[str, Any],
        fields: Mapping[str, FieldDeclaration] | None = None,
        path: str = "",
    ) -> None:
        """Raise a :class:`~vunshdb.exceptions.SchemaViolation` if ``data`` does not conform.

        ``_id`` and integer-like keys are ignored. Fields whose value is
        ``None`` count as absent and are never type checked.
        """
        declared = self._fields if fields is None else fields
        if not isinstance(data, Mapping):
            field = path.rstrip(".") or "<document>"
            raise TypeMismatch(
                f"Invalid type for {field}: Expected object, got {describe_type(data)}",
                field=field,
                expected=FieldKind.OBJECT.value,
                actual=describe_type(data),
            )
        for key, value in data.items():
            if key == ID_FIELD or is_array_index(key):
                continue
            field = f"{path}{key}"
            declaration = declared.get(key)
            if declaration is None:
                raise UndeclaredField(f'Field "{field}" is not defined in the schema', field=field)
            self._check_value(declaration, value, field)
        if self._strict_required:
            for name, declaration in declared.items():
                if (
                    isinstance(declaration, Described)
                    and declaration.required
                    and data.get(name) is None
                ):
                    raise MissingRequiredField(
                        f'Field "{path}{name}" is required', field=f"{path}{name}"
                    )

    def is_valid(self, data: Mapping[str, Any]) -> bool:
        try:
            self.validate(data)
        except SchemaViolation:
            return False
        return True

    def _check_value(self, declaration: FieldDeclaration, value: Any, field: str) -> None:
        if value is None:
            return
        if isinstance(declaration, Nested):
            self.validate(value, declaration.fields, f"{field}.")
        elif isinstance(declaration, Sequence):
            self._check_kind(FieldKind.ARRAY, value, field)
            if declaration.element is not None:
                for index, item in enumerate(value):
                    self._check_value(declaration.element, item, f"{field}[{index}]")
        else:
            self._check_kind(declaration.kind, value, field)

    @staticmethod
    def _check_kind(kind: FieldKind, value: Any, field: str) -> None:
        if _matches_kind(kind, value):
            return
        actual = describe_type(value)
        raise TypeMismatch(
            f"Invalid type for {field}: Expected {kind.value}, got {actual}",
            field=field,
            expected=kind.value,
            actual=actual,
        )


SchemaLike = Union[Schema, Mapping[str, Any], type[BaseModel]]


def as_schema(value: SchemaLike) -> Schema:
    if isinstance(value, Schema):
        return value
    if isinstance(value, type) and issubclass(value, BaseModel):
        return Schema.from_model(value)
    if isinstance(value, Mapping):
        return Schema(value)
    raise SchemaDefinitionError(
        f"Expected a Schema, a mapping or a Pydantic model, got {type(value).__name__}"
    )


# Pydantic integration ------------------------------------------------------
def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
        return typing.Any
    return annotation


def _declaration_from_annotation(annotation: Any) -> FieldDeclaration:
    annotation = _unwrap_optional(annotation)
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return Nested(_fields_from_model(annotation))
    origin = get_origin(annotation)
    if origin in (list, tuple, set, frozenset):
        args = [arg for arg in get_args(annotation) if arg is not Ellipsis]
        element = _declaration_from_annotation(args[0]) if len(args) == 1 else None
        return Sequence(element)
    if origin in (dict, Mapping):
        return Primitive(FieldKind.OBJECT)
    if origin is CallableABC:
        return Primitive(FieldKind.FUNCTION)
    kind = _lookup_marker(annotation)
    if kind is FieldKind.ARRAY:
        return Sequence()
    return Primitive(kind or FieldKind.ANY)


def _fields_from_model(model: type[BaseModel]) -> Mapping[str, FieldDeclaration]:
    fields: dict[str, FieldDeclaration] = {}
    for name, info in model.model_fields.items():
        declaration = _declaration_from_annotation(info.annotation)
        if isinstance(declaration, Primitive):
            required = info.is_required()
            default = NO_DEFAULT if required else info.get_default(call_default_factory=True)
            if isinstance(default, BaseModel):
                default = default.model_dump(mode="json")
            declaration = Described(kind=declaration.kind, default=default, required=required)
        fields[name] = declaration
    return types.MappingProxyType(fields)


