from __future__ import annotations

import copy
from collections.abc import MutableMapping
from typing import Any, Iterator, List, Mapping, Optional

from . import identity
from .logging import get_logger
from .metadata import InteractionRecorder
from .predicates import Criteria, Document, as_predicate, same_value, where
from .schema import ID_FIELD, SchemaLike, as_schema
from .store import CollectionStore

logger = get_logger(__name__)


class DocumentHandle(MutableMapping):
    """A document returned by :class:`Model` together with where it came from.

    The handle behaves like the document mapping itself. Edits made through it
    are persisted with :meth:`save`. ``origin_id`` is the identifier the
    document was stored under, so changing ``_id`` and saving moves the record
    instead of duplicating it. ``origin`` is the record as it was stored; it
    locates documents of schemas without identifiers.
    """

    __slots__ = ("document", "model", "origin_id", "origin")

    def __init__(
        self,
        document: Document,
        model: "Model",
        origin_id: Any = None,
        origin: Document | None = None,
    ) -> None:
        self.document = document
        self.model = model
        self.origin_id = origin_id
        self.origin = origin

    def __getitem__(self, key: str) -> Any:
        return self.document[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.document[key] = value

    def __delitem__(self, key: str) -> None:
        del self.document[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.document)

    def __len__(self) -> int:
        return len(self.document)

    def __repr__(self) -> str:
        return f"DocumentHandle({self.model.name!r}, {self.document!r})"

    @property
    def id(self) -> Any:
        return self.document.get(ID_FIELD)

    def save(self) -> "DocumentHandle":
        self.model.persist(self)
        return self

    def to_dict(self) -> Document:
        return copy.deepcopy(self.document)


class Model:
    """CRUD access to one collection, shaped by one schema.

    Every operation reads the whole collection file, works on the in-memory
    list and, when it mutates, writes the whole list back. The file is created
    on first use.

    Parameters
    ----------
    name:
        Collection name, or one of the built-in shorthands.
    schema:
        A :class:`~vunshdb.schema.Schema`, a schema definition mapping or a
        Pydantic model class.
    store:
        Collection store holding the file.
    interactions:
        Optional recorder notified of every operation. The notification is
        sent before the operation runs, so calls that fail (a rejected
        ``create``, a corrupt file) are counted too.
    """

    def __init__(
        self,
        name: str,
        schema: SchemaLike,
        *,
        store: CollectionStore,
        interactions: InteractionRecorder | None = None,
    ) -> None:
        self.name = name
        self.schema = as_schema(schema)
        self.store = store
        self.interactions = interactions
        store.path_for(name)

    def __repr__(self) -> str:
        return f"Model({self.name!r})"

    # Create ------------------------------------------------------------
    def create(self, data: Mapping[str, Any] | None = None) -> DocumentHandle:
        self._notify("create")
        documents = self._load()
        document = self.schema.apply_defaults(copy.deepcopy(dict(data or {})))
        self.schema.validate(document)
        if not self.schema.ids_enabled:
            document.pop(ID_FIELD, None)
        elif document.get(ID_FIELD) is None:
            document[ID_FIELD] = self._new_id()
        documents.append(document)
        self.store.save(self.name, documents)
        logger.debug("document_created", collection=self.name, id=document.get(ID_FIELD))
        return DocumentHandle(
            copy.deepcopy(document), self, document.get(ID_FIELD), copy.deepcopy(document)
        )

    # Read --------------------------------------------------------------
    def find_one(self, criteria: Criteria = None) -> Optional[DocumentHandle]:
        self._notify("find_one")
        predicate = as_predicate(criteria)
        for document in self._load():
            if predicate(document):
                return self._handle(document)
        return None

    def find_by_id(self, document_id: Any) -> Optional[DocumentHandle]:
        self._notify("find_by_id")
        predicate = where({ID_FIELD: document_id})
        for document in self._load():
            if predicate(document):
                return self._handle(document)
        return None

    def find_many(self, criteria: Criteria = None) -> List[Document]:
        self._notify("find_many")
        predicate = as_predicate(criteria)
        return [self.schema.apply_defaults(document) for document in self._load() if predicate(document)]

    def count(self, criteria: Criteria = None) -> int:
        self._notify("count")
        predicate = as_predicate(criteria)
        return sum(1 for document in self._load() if predicate(document))

    # Update ------------------------------------------------------------
    def save(self, document: Mapping[str, Any]) -> Mapping[str, Any]:
        """Insert ``document`` or replace the stored one with the same ``_id``."""
        self._notify("save")
        self._upsert(document, origin_id=None)
        return document

    def persist(self, handle: DocumentHandle) -> DocumentHandle:
        """Save a handle, following its ``_id`` if it was changed since loading."""
        self._notify("persist")
        handle.origin = self._upsert(handle.document, origin_id=handle.origin_id, origin=handle.origin)
        handle.origin_id = handle.document.get(ID_FIELD)
        return handle

    # Delete ------------------------------------------------------------
    def delete_one(self, criteria: Criteria = None) -> bool:
        self._notify("delete_one")
        predicate = as_predicate(criteria)
        documents = self._load()
        for index, document in enumerate(documents):
            if predicate(document):
                del documents[index]
                self.store.save(self.name, documents)
                logger.debug("document_deleted", collection=self.name, id=document.get(ID_FIELD))
                return True
        return False

    def delete_many(self, criteria: Criteria = None) -> int:
        self._notify("delete_many")
        predicate = as_predicate(criteria)
        documents = self._load()
        kept = [document for document in documents if not predicate(document)]
        removed = len(documents) - len(kept)
        if removed:
            self.store.save(self.name, kept)
            logger.debug("documents_deleted", collection=self.name, count=removed)
        return removed

    def wipe(self) -> bool:
        self._notify("wipe")
        self.store.ensure(self.name)
        self.store.wipe(self.name)
        return True

    # Internal helpers --------------------------------------------------
    def _load(self) -> List[Document]:
        return self.store.load(self.name)

    def _handle(self, document: Document) -> DocumentHandle:
        defaulted = self.schema.apply_defaults(document)
        return DocumentHandle(defaulted, self, defaulted.get(ID_FIELD), copy.deepcopy(document))

    def _new_id(self) -> str:
        return identity.generate()

    def _upsert(
        self,
        document: Mapping[str, Any],
        *,
        origin_id: Any,
        origin: Document | None = None,
    ) -> Document:
        self.schema.validate(document)
        stored = copy.deepcopy(dict(document))
        documents = self._load()
        document_id = stored.get(ID_FIELD)
        index = self._index_of(documents, document_id)
        if index is None and document_id is None and origin is not None:
            index = next(
                (position for position, existing in enumerate(documents) if existing == origin),
                None,
            )
        if index is None:
            if origin_id is not None and origin_id != document_id:
                previous = self._index_of(documents, origin_id)
                if previous is not None:
                    del documents[previous]
            documents.append(stored)
        else:
            documents[index] = stored
        self.store.save(self.name, documents)
        logger.debug("document_saved", collection=self.name, id=document_id, replaced=index is not None)
        return copy.deepcopy(stored)

    @staticmethod
    def _index_of(documents: List[Document], document_id: Any) -> Optional[int]:
        if document_id is None:
            return None
        for index, document in enumerate(documents):
            if same_value(document.get(ID_FIELD), document_id):
                return index
        return None

    def _notify(self, operation: str) -> None:
        if self.interactions is None:
            return
        try:
            self.interactions.record_interaction(operation)
        except Exception:
            logger.exception("interaction_notify_failed", collection=self.name, operation=operation)
