from __future__ import annotations


class VunshDBError(Exception):
    """Base exception for vunshdb errors."""


class SchemaDefinitionError(VunshDBError):
    """Raised when a schema definition cannot be parsed."""


class SchemaViolation(VunshDBError):
    """Raised when a document does not conform to its schema."""

    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message)
        self.field = field


class UndeclaredField(SchemaViolation):
    """Raised when a document carries a field the schema does not declare."""


class TypeMismatch(SchemaViolation):
    """Raised when a field value has the wrong runtime type."""

    def __init__(self, message: str, *, field: str, expected: str, actual: str) -> None:
        super().__init__(message, field=field)
        self.expected = expected
        self.actual = actual


class MissingRequiredField(SchemaViolation):
    """Raised in strict mode when a required field has no value."""


class CollectionError(VunshDBError):
    """Base exception for collection file problems."""


class CorruptCollection(CollectionError):
    """Raised when a collection file does not hold a document sequence."""


class MissingCollection(CollectionError):
    """Raised when a built-in collection file is expected but absent."""


class CollectionIOError(CollectionError):
    """Raised when the file system refuses a collection read or write."""


class InvalidCollectionName(CollectionError):
    """Raised when a collection name cannot be mapped to a file."""


class UnknownCollectionAlias(CollectionError):
    """Raised when a built-in collection alias is not recognised."""


class IdentifierFormatError(VunshDBError):
    """Raised when a string is not a well-formed document identifier."""


class SerializationError(VunshDBError):
    """Raised when documents contain values JSON cannot encode."""
