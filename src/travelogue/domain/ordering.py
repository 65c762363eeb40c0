"""
Order index allocation for sibling sets.

Order indices are decimal strings (``"1.0"``, ``"2.0"``, ``"1.5"``). Siblings
sort by the parsed numeric value, never by raw string comparison, so both
storage backends fetch and then sort with ``order_key``.
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Iterable, Sequence

FIRST_INDEX = "1.0"


class OrderPrecisionExhausted(ValueError):
    """Raised when two neighbours are too close to fit another index between them."""


class _FallbackClock:
    """Millisecond timestamps that never repeat or go backwards within a process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            now = time.time_ns() // 1_000_000
            self._last = max(now, self._last + 1)
            return self._last


_fallback_clock = _FallbackClock()


def parse_index(index: str | None) -> float | None:
    """Return the finite numeric value of ``index`` or ``None``."""
    if index is None:
        return None
    try:
        value = float(index)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def format_index(value: float) -> str:
    one_decimal = f"{value:.1f}"
    if float(one_decimal) == value:
        return one_decimal
    return repr(value)


def order_key(index: str) -> tuple[int, float, str]:
    """Sort key: numeric indices by value first, unparseable legacy ones after."""
    value = parse_index(index)
    if value is None:
        return (1, 0.0, index)
    return (0, value, index)


def last_index(indices: Iterable[str]) -> str | None:
    ordered = sorted(indices, key=order_key)
    return ordered[-1] if ordered else None


def next_append_index(last: str | None) -> str:
    """Index for a new sibling placed after ``last``."""
    if not last:
        return FIRST_INDEX
    value = parse_index(last)
    if value is not None:
        return f"{value + 1.0:.1f}"
    return f"{_fallback_clock.next()}.0"


def insert_between(lower: str, upper: str) -> str:
    """Arithmetic midpoint of two neighbouring indices.

    Repeated insertion between the same neighbours halves the gap every time;
    once the midpoint is no longer distinguishable from a neighbour this
    raises ``OrderPrecisionExhausted`` and the sibling set needs a
    ``sequential_reindex``.
    """
    low = parse_index(lower)
    high = parse_index(upper)
    if low is None or high is None:
        raise ValueError(f"Cannot insert between non-numeric indices {lower!r} and {upper!r}")
    if low >= high:
        raise ValueError(f"Lower index {lower!r} must sort before upper index {upper!r}")
    midpoint = (low + high) / 2
    if not low < midpoint < high:
        raise OrderPrecisionExhausted(f"No room left between {lower!r} and {upper!r}")
    return format_index(midpoint)


def sequential_reindex(ordered_ids: Sequence[str]) -> dict[str, str]:
    """Assign ``"1.0", "2.0", ...`` in input order."""
    return {entity_id: f"{position:.1f}" for position, entity_id in enumerate(ordered_ids, start=1)}
