"""Order statistics by counting selection over the value domain.

Instead of sorting, the value at rank ``k`` is isolated by binary search
over an ordered integer key space: each step is one full scan counting
values at or below a pivot key. Integers use their own value as key;
floats use a monotonic mapping of their IEEE-754 bit pattern, so at
most 64 counting passes isolate any rank. Memory stays constant.
"""

from __future__ import annotations

import math
import struct
from typing import Callable, Iterator, Protocol, Sequence

from core.errors import UndefinedStatisticError
from core.logging_config import get_logger
from stats.cancellation import CancellationToken, check_token
from store.cursor import ColumnCursor

_LOGGER = get_logger(__name__)
_SIGN_FLIP = 0x7FFF_FFFF_FFFF_FFFF
_DOUBLE = struct.Struct(">d")
_INT64 = struct.Struct(">q")

Number = int | float


class ValueScan(Protocol):
    """Restartable source of non-null numeric values."""

    def scan(self) -> Iterator[Number]:
        """Start a new full pass and yield every non-null value."""
        ...


class CursorScan:
    """Adapt a column cursor into a restartable numeric scan."""

    def __init__(self, cursor: ColumnCursor) -> None:
        self._cursor = cursor

    def scan(self) -> Iterator[Number]:
        self._cursor.reset()
        for cell in self._cursor:
            if cell.value is not None:
                yield cell.value  # type: ignore[misc]


def float_key(value: float) -> int:
    """Map a finite float onto an int64 with identical ordering."""
    (bits,) = _INT64.unpack(_DOUBLE.pack(value + 0.0))
    return bits ^ _SIGN_FLIP if bits < 0 else bits


def float_from_key(key: int) -> float:
    """Invert ``float_key``."""
    bits = key ^ _SIGN_FLIP if key < 0 else key
    (value,) = _DOUBLE.unpack(_INT64.pack(bits))
    return value


class CountingSelector:
    """Multi-pass rank selection over one numeric scan."""

    def __init__(
        self,
        source: ValueScan,
        count: int,
        minimum: Number,
        maximum: Number,
        integral: bool,
        token: CancellationToken | None = None,
        label: str = "column",
    ) -> None:
        """Bind a selector to a scan and its already-known extent.

        Args:
            source: Restartable value scan.
            count: Number of non-null values.
            minimum: Smallest value, from the moments pass.
            maximum: Largest value, from the moments pass.
            integral: Whether values are integers (identity keys).
            token: Optional cancellation token checked per pass.
            label: Column name used in logs and errors.
        """
        self._source = source
        self._count = count
        self._to_key: Callable[[Number], int] = (lambda value: int(value)) if integral else float_key
        self._from_key: Callable[[int], Number] = (lambda key: key) if integral else float_from_key
        self._lowest = self._to_key(minimum)
        self._highest = self._to_key(maximum)
        self._token = token
        self._label = label
        self.passes = 0

    def select(self, rank: int, floor: Number | None = None) -> Number:
        """Return the value at zero-based ``rank`` in ascending order.

        Args:
            rank: Target rank among non-null values.
            floor: Known lower bound for the answer, narrowing the search.

        Raises:
            ComputationCancelledError: If cancelled between passes.
        """
        if rank < 0 or rank >= self._count:
            raise UndefinedStatisticError(
                f"Rank {rank} is outside 0..{self._count - 1} for column '{self._label}'."
            )
        low = self._lowest if floor is None else max(self._lowest, self._to_key(floor))
        high = self._highest
        while low < high:
            pivot = (low + high) // 2
            at_or_below = self._count_at_or_below(pivot)
            if at_or_below > rank:
                high = pivot
            else:
                low = pivot + 1
        return self._from_key(low)

    def quantile(self, probability: float, floor: Number | None = None) -> Number:
        """Return the linearly interpolated quantile at ``probability``.

        Uses the inclusive convention ``h = (n - 1) * p``, so medians of
        even-length columns are the midpoint of the two middle values.
        """
        return self._interpolate(probability, floor)[0]

    def quantiles(self, probabilities: Sequence[float]) -> tuple[Number, ...]:
        """Return several quantiles in one sweep of increasing ranks.

        The lower-rank value behind each answer bounds the next search.
        """
        answers: dict[float, Number] = {}
        floor: Number | None = None
        for probability in sorted(set(probabilities)):
            answers[probability], floor = self._interpolate(probability, floor)
        return tuple(answers[probability] for probability in probabilities)

    def _interpolate(self, probability: float, floor: Number | None) -> tuple[Number, Number]:
        if not 0.0 <= probability <= 1.0:
            raise UndefinedStatisticError(
                f"Quantile probability {probability} must be between 0 and 1."
            )
        position = (self._count - 1) * probability
        lower_rank = math.floor(position)
        fraction = position - lower_rank
        lower = self.select(lower_rank, floor)
        if fraction == 0.0:
            return lower, lower
        upper = self._next_rank_value(lower, lower_rank + 1)
        return lower + fraction * (upper - lower), lower

    def _count_at_or_below(self, pivot: int) -> int:
        self._begin_pass()
        to_key = self._to_key
        counted = sum(1 for value in self._source.scan() if to_key(value) <= pivot)
        self._end_pass("count_at_or_below", pivot=pivot, counted=counted)
        return counted

    def _next_rank_value(self, value: Number, rank: int) -> Number:
        """Return the value at ``rank`` given the value at ``rank - 1``."""
        self._begin_pass()
        key = self._to_key(value)
        at_or_below = 0
        successor: int | None = None
        for candidate in self._source.scan():
            candidate_key = self._to_key(candidate)
            if candidate_key <= key:
                at_or_below += 1
            elif successor is None or candidate_key < successor:
                successor = candidate_key
        self._end_pass("next_rank", rank=rank, counted=at_or_below)
        if at_or_below > rank or successor is None:
            return value
        return self._from_key(successor)

    def _begin_pass(self) -> None:
        check_token(self._token, f"Quartile computation for '{self._label}'", self.passes)

    def _end_pass(self, step: str, **fields: object) -> None:
        self.passes += 1
        _LOGGER.debug(
            "quartile_pass_completed",
            column=self._label,
            step=step,
            passes=self.passes,
            **fields,
        )
