"""Equality helpers shared by the attribute-based selectors."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .nodes import QName


def both_none_or_equal(first: Any, second: Any) -> bool:
    """Return True when both values are ``None`` or when they compare equal."""
    if first is None:
        return second is None
    return second is not None and first == second


def identity_equal(first: Optional[QName], second: Optional[QName]) -> bool:
    return both_none_or_equal(first, second)


def attributes_equal_for_keys(
    control: Mapping[QName, str],
    test: Mapping[QName, str],
    keys: Iterable[QName],
) -> bool:
    """Check that ``control`` and ``test`` agree on every key in ``keys``.

    A key missing from both mappings counts as equal; missing from only one
    side does not. Stops at the first mismatch.
    """
    for key in keys:
        if not both_none_or_equal(control.get(key), test.get(key)):
            return False
    return True
