"""Unit tests for counting-selection quantiles."""

from __future__ import annotations

import math
from typing import Iterator

import pytest

from core.errors import ComputationCancelledError, UndefinedStatisticError
from stats.cancellation import CancellationToken
from stats.selection import CountingSelector, float_from_key, float_key


class _ListScan:
    """Restartable scan over an in-memory list that counts passes."""

    def __init__(self, values: list[float]) -> None:
        self.values = values
        self.scans = 0

    def scan(self) -> Iterator[float]:
        self.scans += 1
        yield from self.values


def _selector(values: list, integral: bool, token: CancellationToken | None = None) -> CountingSelector:
    return CountingSelector(
        _ListScan(values),
        count=len(values),
        minimum=min(values),
        maximum=max(values),
        integral=integral,
        token=token,
    )


def test_quartiles_of_one_to_nine() -> None:
    """Quartiles of 1..9 in shuffled order are 3, 5 and 7."""
    selector = _selector([5, 3, 9, 1, 7, 2, 8, 4, 6], integral=True)

    assert selector.quantiles((0.25, 0.5, 0.75)) == (3, 5, 7)


def test_even_count_median_is_midpoint() -> None:
    """The median of an even-length column interpolates the middle pair."""
    selector = _selector([4, 1, 3, 2], integral=True)

    assert selector.quantile(0.5) == 2.5


def test_duplicates_do_not_break_selection() -> None:
    """Repeated values resolve to the repeated value at every rank."""
    selector = _selector([5, 5, 1, 5], integral=True)

    assert [selector.select(rank) for rank in range(4)] == [1, 5, 5, 5]
    assert selector.quantile(0.5) == 5


def test_float_selection_orders_negatives_and_zero() -> None:
    """Float ranks follow numeric order across the sign boundary."""
    values = [3.5, -0.0, 1.25, -2.5, 0.0]
    selector = _selector(values, integral=False)

    selected = [selector.select(rank) for rank in range(len(values))]

    assert selected == sorted(values)
    assert selector.quantile(0.5) == 0.0


def test_float_key_preserves_order_and_round_trips() -> None:
    """The float key mapping is monotonic and invertible."""
    values = [-1e300, -3.5, -1e-300, 0.0, 5e-324, 1.0, 2.5, 1e300]

    keys = [float_key(value) for value in values]

    assert keys == sorted(keys)
    assert len(set(keys)) == len(keys)
    assert [float_from_key(key) for key in keys] == values
    assert float_key(-0.0) == float_key(0.0)


def test_float_median_stays_within_pass_bound() -> None:
    """A float median needs at most one pass per key bit plus one."""
    values = [math.sin(index) * 1000.0 for index in range(101)]
    selector = _selector(values, integral=False)

    median = selector.quantile(0.5)

    assert median == sorted(values)[50]
    assert selector.passes <= 65


def test_integer_passes_scale_with_value_range() -> None:
    """Integer selection only searches between the column extrema."""
    selector = _selector(list(range(1, 1025)), integral=True)

    selector.select(511)

    assert selector.passes <= 11


def test_rank_outside_column_is_undefined() -> None:
    """Ranks past the non-null count are rejected."""
    selector = _selector([1, 2, 3], integral=True)

    with pytest.raises(UndefinedStatisticError):
        selector.select(3)
    with pytest.raises(UndefinedStatisticError):
        selector.quantile(1.5)


def test_cancelled_token_stops_before_next_pass() -> None:
    """A cancelled token raises instead of returning a partial answer."""
    token = CancellationToken()
    token.cancel()
    selector = _selector([1, 2, 3, 4, 5], integral=True, token=token)

    with pytest.raises(ComputationCancelledError, match="cancelled after 0 passes"):
        selector.quantile(0.5)
