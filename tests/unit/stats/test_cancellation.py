"""Unit tests for cancellation tokens."""

from __future__ import annotations

import pytest

from core.errors import ComputationCancelledError
from stats.cancellation import CancellationToken, check_token


def test_fresh_token_allows_work() -> None:
    """A token without deadline or cancel never raises."""
    token = CancellationToken()

    token.check("scan", 3)

    assert not token.cancelled


def test_cancel_is_observed_at_next_check() -> None:
    """Cancelling raises at the next pass boundary."""
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ComputationCancelledError, match="scan cancelled after 2 passes"):
        token.check("scan", 2)


def test_deadline_uses_injected_clock() -> None:
    """Passing the deadline raises with a hint to allow more time."""
    now = [100.0]
    token = CancellationToken(deadline_seconds=5.0, clock=lambda: now[0])
    token.check("scan", 0)
    now[0] = 105.0

    with pytest.raises(ComputationCancelledError, match="deadline"):
        token.check("scan", 1)


def test_check_token_accepts_missing_token() -> None:
    """Operations without a token are never cancelled."""
    check_token(None, "scan", 10)
