from __future__ import annotations

from pathlib import Path

import pytest

from vunshdb import CollectionStore, Model, Schema
from vunshdb.config import Settings


@pytest.fixture
def store(tmp_path: Path) -> CollectionStore:
    return CollectionStore(tmp_path / "dbs")


@pytest.fixture
def users(store: CollectionStore) -> Model:
    return Model("users", Schema({"username": str, "age": int}), store=store)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "dbs",
        metadata_path=tmp_path / "cltns",
        runtime=False,
        tick_interval=0.01,
    )
