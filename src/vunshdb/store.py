from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List, Mapping

from .exceptions import CollectionIOError, InvalidCollectionName
from .handlers import DocumentArrayHandler
from .logging import get_logger

logger = get_logger(__name__)

ALIASES: Mapping[str, str] = {
    "ci": "cinteractions",
    "ti": "totalinteractions",
    "cr": "cruntime",
    "st": "settings",
}


def resolve_name(name: str) -> str:
    """Map a built-in shorthand (``ci``, ``ti``, ``cr``, ``st``) to its canonical name."""
    return ALIASES.get(name, name)


class CollectionStore:
    """Directory of collection files, one JSON array per collection.

    Every read returns the whole collection and every write replaces the whole
    file. There is no locking: concurrent writers lose updates, the last full
    rewrite wins. Writes are not atomic; a crash mid-write can leave a
    truncated file behind, which the next :meth:`load` reports as
    :class:`~vunshdb.exceptions.CorruptCollection`.
    """

    def __init__(self, path: Path | str) -> None:
        self.root = Path(path).expanduser()
        self._handler = DocumentArrayHandler()

    @property
    def extension(self) -> str:
        return self._handler.extension

    def ensure_path(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CollectionIOError(f"Couldn't create database directory {self.root}: {exc}") from exc

    def path_for(self, name: str) -> Path:
        canonical = resolve_name(name)
        if not canonical or canonical in {".", ".."} or any(sep in canonical for sep in ("/", "\\")):
            raise InvalidCollectionName(f"Invalid collection name {name!r}")
        return self.root / f"{canonical}{self.extension}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def ensure(self, name: str) -> Path:
        """Return the collection file, creating it with an empty array if missing."""
        path = self.path_for(name)
        if not path.exists():
            self.ensure_path()
            self._handler.write(path, self._handler.empty())
            logger.info("collection_created", collection=resolve_name(name), path=str(path))
        return path

    def load(self, name: str) -> List[dict[str, Any]]:
        path = self.ensure(name)
        return self._handler.read(path)

    def save(self, name: str, documents: Iterable[Mapping[str, Any]]) -> None:
        path = self.path_for(name)
        payload = [dict(document) for document in documents]
        self._handler.write(path, payload)
        logger.debug("collection_saved", collection=resolve_name(name), documents=len(payload))

    def wipe(self, name: str) -> None:
        path = self.path_for(name)
        self._handler.write(path, self._handler.empty())
        logger.info("collection_wiped", collection=resolve_name(name))

    def drop(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise CollectionIOError(f"Couldn't delete collection file {path}: {exc}") from exc
        logger.info("collection_dropped", collection=resolve_name(name))
        return True

    def names(self) -> List[str]:
        if not self.root.is_dir():
            return []
        suffix = self.extension
        return sorted(
            path.name[: -len(suffix)]
            for path in self.root.glob(f"*{suffix}")
            if path.is_file()
        )
