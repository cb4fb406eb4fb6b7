from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from .config import Settings
from .exceptions import VunshDBError
from .logging import configure_logging, get_logger
from .metadata import InteractionRecorder, MetadataStore, RuntimeClock
from .model import Model
from .schema import Schema, SchemaLike, as_schema
from .store import CollectionStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class InitResult:
    status: bool
    duration: float


class VunshDB:
    """Entry point wiring the collection store and its bookkeeping together.

    Parameters
    ----------
    settings:
        Configuration. Loaded from the environment when omitted.
    configure_logs:
        When ``True``, :meth:`initialize` also configures structlog from
        ``settings``.

    Example::

        db = VunshDB(Settings(db_path="data"))
        await db.initialize()
        users = db.model("users", {"username": str, "age": int})
        user = users.create({"username": "JohnDoe", "age": 25})
    """

    def __init__(self, settings: Settings | None = None, *, configure_logs: bool = False) -> None:
        self.settings = settings or Settings()
        self._configure_logs = configure_logs
        self.store = CollectionStore(self.settings.db_path)
        self.metadata = MetadataStore(self.settings.metadata_path)
        self.interactions = InteractionRecorder(
            self.metadata, enabled=self.settings.interaction_count
        )
        self.clock = RuntimeClock(self.metadata, interval=self.settings.tick_interval)

    async def initialize(self) -> InitResult:
        """Create directories and metadata files, reset session counters, start the clock."""
        started = time.monotonic()
        if self._configure_logs:
            configure_logging(self.settings)
        try:
            self.store.ensure_path()
            self.metadata.bootstrap()
            self.metadata.set("cr", 0)
            self.metadata.set("ci", 0)
            self.metadata.set("st", self.settings.snapshot())
        except VunshDBError as exc:
            raise VunshDBError(f"Error initializing VunshDB: {exc}") from exc
        if self.settings.runtime:
            self.clock.start()
        duration = time.monotonic() - started
        logger.info(
            "database_initialized",
            db_path=str(self.store.root),
            runtime=self.settings.runtime,
            duration=duration,
        )
        return InitResult(status=True, duration=duration)

    async def close(self) -> None:
        await self.clock.stop()

    async def __aenter__(self) -> "VunshDB":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def schema(self, definition: SchemaLike) -> Schema:
        """Build a schema honouring the ``strict_required`` setting."""
        if isinstance(definition, Schema):
            return definition
        if isinstance(definition, type) and issubclass(definition, BaseModel):
            return Schema.from_model(definition, strict_required=self.settings.strict_required)
        if isinstance(definition, Mapping):
            return Schema(definition, strict_required=self.settings.strict_required)
        return as_schema(definition)

    def model(self, name: str, schema: SchemaLike) -> Model:
        return Model(
            name,
            self.schema(schema),
            store=self.store,
            interactions=self.interactions,
        )

    def get_collection(self, alias: str) -> Any:
        """Return the value held by a built-in metadata collection."""
        return self.metadata.get(alias)
