from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Union

Document = dict[str, Any]
Predicate = Callable[[Document], bool]
Criteria = Union[Predicate, Mapping[str, Any], None]

_MISSING = object()


def everything(document: Document) -> bool:
    return True


def same_value(left: Any, right: Any) -> bool:
    """Equality that keeps booleans apart from the numbers 0 and 1."""
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def where(fields: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Predicate:
    """Build a predicate matching documents whose fields equal the given values.

    ``where({"username": "JohnDoe"})`` and ``where(username="JohnDoe")`` are
    equivalent. A field the document lacks never matches, even against ``None``.
    """
    expected = dict(fields or {})
    expected.update(kwargs)

    def _matches(document: Document) -> bool:
        for key, value in expected.items():
            if document.get(key, _MISSING) is _MISSING or not same_value(document[key], value):
                return False
        return True

    return _matches


def as_predicate(criteria: Criteria) -> Predicate:
    """Normalize a callable, a field mapping or ``None`` into a predicate."""
    if criteria is None:
        return everything
    if isinstance(criteria, Mapping):
        return where(criteria)
    if callable(criteria):
        return criteria
    raise TypeError(
        f"Expected a callable or a field mapping as criteria, got {type(criteria).__name__}"
    )
