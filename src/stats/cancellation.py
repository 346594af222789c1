"""Cooperative cancellation for multi-pass computations.

Checks happen only at pass boundaries. A cancelled computation raises
instead of returning, so no partial result is ever surfaced.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from core.errors import ComputationCancelledError


class CancellationToken:
    """Cancellation flag with an optional caller-supplied deadline."""

    def __init__(
        self,
        deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create a token.

        Args:
            deadline_seconds: Seconds allowed from now; ``None`` for none.
            clock: Monotonic clock, replaceable in tests.
        """
        self._event = threading.Event()
        self._clock = clock
        self._deadline = None if deadline_seconds is None else clock() + deadline_seconds

    @property
    def cancelled(self) -> bool:
        """Return whether ``cancel`` was called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; observed at the next pass boundary."""
        self._event.set()

    def check(self, operation: str, passes_done: int) -> None:
        """Raise if cancelled or past the deadline.

        Raises:
            ComputationCancelledError: If the computation must stop.
        """
        if self._event.is_set():
            raise ComputationCancelledError(
                f"{operation} cancelled after {passes_done} passes; no result was produced."
            )
        if self._deadline is not None and self._clock() >= self._deadline:
            raise ComputationCancelledError(
                f"{operation} exceeded its deadline after {passes_done} passes; "
                "no result was produced. Allow a longer deadline."
            )


def check_token(token: CancellationToken | None, operation: str, passes_done: int) -> None:
    """Check an optional token."""
    if token is not None:
        token.check(operation, passes_done)
