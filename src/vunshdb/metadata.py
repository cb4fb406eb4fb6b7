"""
Built-in metadata collections and the bookkeeping that maintains them.

The metadata directory holds one small JSON file per built-in collection:

``ci``  current interactions (reset on every :meth:`VunshDB.initialize`)
``ti``  total interactions
``cr``  current runtime, in ticks of the runtime clock
``st``  settings snapshot

Unlike user collections these files are never created lazily by reads:
:meth:`MetadataStore.get` on a missing file raises
:class:`~vunshdb.exceptions.MissingCollection`.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Mapping

from .exceptions import CollectionIOError, UnknownCollectionAlias, VunshDBError
from .handlers import MetadataHandler, MetadataRecord
from .logging import get_logger
from .store import ALIASES

logger = get_logger(__name__)

BUILTIN_DEFAULTS: Mapping[str, Any] = {
    "ci": 0,
    "ti": 0,
    "cr": 0,
    "st": {},
}


class MetadataStore:
    def __init__(self, path: Path | str) -> None:
        self.root = Path(path).expanduser()
        self._handler = MetadataHandler()

    def path_for(self, alias: str) -> Path:
        if alias not in BUILTIN_DEFAULTS:
            valid = ", ".join(f"{key} ({ALIASES[key]})" for key in BUILTIN_DEFAULTS)
            raise UnknownCollectionAlias(
                f"Expected one of the built-in collections, received {alias!r}. Valid names: {valid}"
            )
        return self.root / f"{ALIASES[alias]}{self._handler.extension}"

    def bootstrap(self) -> list[str]:
        """Create missing metadata files with their initial values.

        Returns the aliases that were created.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CollectionIOError(f"Couldn't create metadata directory {self.root}: {exc}") from exc
        created = []
        for alias, initial in BUILTIN_DEFAULTS.items():
            path = self.path_for(alias)
            if not path.exists():
                self._handler.write(path, MetadataRecord(collection=initial))
                created.append(alias)
        if created:
            logger.info("metadata_bootstrapped", created=created, path=str(self.root))
        return created

    def get(self, alias: str) -> Any:
        return self._handler.read(self.path_for(alias)).collection

    def set(self, alias: str, value: Any) -> None:
        path = self.path_for(alias)
        # existing content is read first so a missing or corrupt file is reported, not replaced
        self._handler.read(path)
        self._handler.write(path, MetadataRecord(collection=value))

    def increment(self, alias: str, step: int = 1) -> int:
        value = self.get(alias)
        updated = int(value) + step
        self.set(alias, updated)
        return updated


class InteractionRecorder:
    """Counts CRUD interactions in the ``ci`` and ``ti`` collections.

    Recording is best-effort: failures are logged and swallowed so that the
    operation being counted is never aborted by its bookkeeping.
    """

    def __init__(self, metadata: MetadataStore, *, enabled: bool = True) -> None:
        self.metadata = metadata
        self.enabled = enabled

    def record_interaction(self, operation: str | None = None) -> bool:
        if not self.enabled:
            return False
        try:
            self.metadata.increment("ci")
            self.metadata.increment("ti")
        except (VunshDBError, OSError, TypeError, ValueError) as exc:
            logger.warning("interaction_record_failed", operation=operation, error=str(exc))
            return False
        return True


class RuntimeClock:
    """Periodically increments the ``cr`` collection from an asyncio task."""

    def __init__(self, metadata: MetadataStore, *, interval: float = 1.0) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.metadata = metadata
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Start ticking on the running event loop. Idempotent."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run(), name="vunshdb-runtime-clock")
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def tick(self) -> bool:
        try:
            self.metadata.increment("cr")
        except (VunshDBError, OSError, TypeError, ValueError) as exc:
            logger.error("runtime_tick_failed", error=str(exc))
            return False
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            # an in-flight tick finishes its write before the task ends
            tick = asyncio.ensure_future(asyncio.to_thread(self.tick))
            try:
                await asyncio.shield(tick)
            except asyncio.CancelledError:
                await tick
                raise
