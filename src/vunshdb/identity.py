"""Document identifiers: ``vdb:`` followed by a version 4 UUID."""

from __future__ import annotations

import re
from typing import Any
from uuid import uuid4

from .exceptions import IdentifierFormatError

PREFIX = "vdb"

IDENTIFIER_PATTERN = re.compile(
    rf"{PREFIX}:[0-9a-f]{{8}}-[0-9a-f]{{4}}-4[0-9a-f]{{3}}-[89ab][0-9a-f]{{3}}-[0-9a-f]{{12}}",
    re.IGNORECASE,
)


def generate() -> str:
    """Return a fresh identifier. Existing collections are not consulted."""
    return f"{PREFIX}:{uuid4()}"


def is_valid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return IDENTIFIER_PATTERN.fullmatch(value) is not None


def ensure_valid(value: Any) -> str:
    if not is_valid(value):
        raise IdentifierFormatError(
            f"'{value}' is not a valid identifier, expected "
            f"'{PREFIX}:xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx'"
        )
    return value
