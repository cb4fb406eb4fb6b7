"""Configuration for vunshdb.

Settings are read from ``VUNSHDB_*`` environment variables and an optional
``.env`` file, or from a YAML file via :meth:`Settings.from_yaml`. A settings
instance is passed explicitly to whatever needs it; there is no global copy.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import VunshDBError


class Settings(BaseSettings):
    """Database configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VUNSHDB_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Storage
    db_path: Path = Path("dbs")
    metadata_path: Path = Path("cltns")

    # Bookkeeping
    runtime: bool = Field(default=True, description="Tick the current runtime counter every interval")
    interaction_count: bool = Field(default=True, description="Count CRUD interactions")
    tick_interval: float = Field(default=1.0, gt=0)

    # Validation
    strict_required: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @classmethod
    def from_yaml(cls, path: Path | str, **overrides: Any) -> "Settings":
        """Load settings from a YAML mapping; explicit ``overrides`` win."""
        source = Path(path).expanduser()
        try:
            with source.open("r", encoding="utf-8") as fh:
                payload = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise VunshDBError(f"Couldn't read settings file {source}: {exc}") from exc
        if not isinstance(payload, dict):
            raise VunshDBError(f"Settings file {source} did not produce a mapping")
        payload.update(overrides)
        return cls(**payload)

    def snapshot(self) -> dict[str, Any]:
        """Settings persisted to the ``settings`` metadata collection."""
        return {"runtime": self.runtime, "interaction_count": self.interaction_count}
