"""
Embedded JSON document store with schema-validated models.

Each collection is a JSON array persisted to one file. :class:`Schema`
describes and defaults documents, :class:`Model` binds a schema to a
collection and offers create/find/save/delete, and :class:`VunshDB` wires the
store to its configuration and bookkeeping.
"""

from . import identity
from .config import Settings
from .database import InitResult, VunshDB
from .exceptions import (
    CorruptCollection,
    IdentifierFormatError,
    MissingCollection,
    SchemaViolation,
    TypeMismatch,
    UndeclaredField,
    VunshDBError,
)
from .model import DocumentHandle, Model
from .predicates import Predicate, where
from .schema import FieldKind, Schema
from .store import CollectionStore

__all__ = (
    "CollectionStore",
    "CorruptCollection",
    "DocumentHandle",
    "FieldKind",
    "IdentifierFormatError",
    "InitResult",
    "MissingCollection",
    "Model",
    "Predicate",
    "Schema",
    "SchemaViolation",
    "Settings",
    "TypeMismatch",
    "UndeclaredField",
    "VunshDB",
    "VunshDBError",
    "identity",
    "where",
)
