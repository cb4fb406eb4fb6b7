from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, TypeVar

import orjson
from pydantic import BaseModel, ValidationError

from .exceptions import CollectionIOError, CorruptCollection, MissingCollection, SerializationError

T = TypeVar("T")


def _dump(payload: Any, path: Path) -> bytes:
    try:
        return orjson.dumps(payload, option=orjson.OPT_INDENT_2) + b"\n"
    except orjson.JSONEncodeError as exc:
        raise SerializationError(f"Cannot serialize data for {path}: {exc}") from exc


def _write_bytes(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise CollectionIOError(f"Error writing to collection file {path}: {exc}") from exc


def _read_bytes(path: Path) -> bytes:
    try:
        with path.open("rb") as fh:
            return fh.read()
    except FileNotFoundError as exc:
        raise MissingCollection(f"Collection file {path} not found.") from exc
    except OSError as exc:
        raise CollectionIOError(f"Error reading collection file {path}: {exc}") from exc


class FileHandler(ABC, Generic[T]):
    """Abstract interface for translating between files and Python values."""

    extension: str

    @abstractmethod
    def read(self, path: Path) -> T:
        """Read the file and return its payload."""

    @abstractmethod
    def write(self, path: Path, payload: T) -> None:
        """Persist a payload to disk, replacing the whole file."""

    @abstractmethod
    def empty(self) -> T:
        """Payload written when a file is created lazily."""


class DocumentArrayHandler(FileHandler[list[dict[str, Any]]]):
    """Collection files: one pretty-printed JSON array of objects."""

    extension = ".vunsh.db"

    def read(self, path: Path) -> list[dict[str, Any]]:
        raw = _read_bytes(path)
        try:
            payload = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CorruptCollection(f"Collection file {path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise CorruptCollection(
                f"Collection file {path} must contain a JSON array, got {type(payload).__name__}"
            )
        for position, document in enumerate(payload):
            if not isinstance(document, dict):
                raise CorruptCollection(
                    f"Collection file {path} holds a non-object entry at position {position}"
                )
        return payload

    def write(self, path: Path, payload: list[dict[str, Any]]) -> None:
        _write_bytes(path, _dump(list(payload), path))

    def empty(self) -> list[dict[str, Any]]:
        return []


class MetadataRecord(BaseModel):
    """Content of a built-in metadata file."""

    collection: Any


class MetadataHandler(FileHandler[MetadataRecord]):
    """Built-in metadata files: ``{"collection": <value>}``."""

    extension = ".json"

    def read(self, path: Path) -> MetadataRecord:
        raw = _read_bytes(path)
        try:
            return MetadataRecord.model_validate_json(raw)
        except ValidationError as exc:
            raise CorruptCollection(f"'collection' field not found in {path}: {exc}") from exc

    def write(self, path: Path, payload: MetadataRecord) -> None:
        _write_bytes(path, _dump(payload.model_dump(mode="json"), path))

    def empty(self) -> MetadataRecord:
        return MetadataRecord(collection=0)
