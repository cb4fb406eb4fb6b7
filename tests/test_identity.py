from __future__ import annotations

import pytest

from vunshdb import identity
from vunshdb.exceptions import IdentifierFormatError


def test_generated_identifiers_are_unique_and_valid() -> None:
    generated = [identity.generate() for _ in range(10_000)]
    assert len(set(generated)) == 10_000
    assert all(identity.is_valid(value) for value in generated)


def test_generated_identifier_layout() -> None:
    value = identity.generate()
    prefix, _, body = value.partition(":")
    assert prefix == "vdb"
    groups = body.split("-")
    assert [len(group) for group in groups] == [8, 4, 4, 4, 12]
    assert groups[2][0] == "4"
    assert groups[3][0] in "89ab"


@pytest.mark.parametrize(
    "value",
    [
        "vdb:3F2504E0-4F89-41D3-9A0C-0305E82C3301",
        "vdb:3f2504e0-4f89-41d3-ba0c-0305e82c3301",
    ],
)
def test_is_valid_accepts_any_case(value: str) -> None:
    assert identity.is_valid(value)


@pytest.mark.parametrize(
    "value",
    [
        "3f2504e0-4f89-41d3-9a0c-0305e82c3301",
        "abc:3f2504e0-4f89-41d3-9a0c-0305e82c3301",
        "vdb:3f2504e0-4f89-11d3-9a0c-0305e82c3301",
        "vdb:3f2504e0-4f89-41d3-7a0c-0305e82c3301",
        "vdb:3f2504e0-4f89-41d3-9a0c-0305e82c330",
        "vdb:3f2504e0-4f89-41d3-9a0c-0305e82c3301\n",
        "",
        None,
        42,
    ],
)
def test_is_valid_rejects_malformed(value: object) -> None:
    assert not identity.is_valid(value)


def test_ensure_valid() -> None:
    value = identity.generate()
    assert identity.ensure_valid(value) == value
    with pytest.raises(IdentifierFormatError):
        identity.ensure_valid("vdb:nope")
