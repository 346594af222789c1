"""Distinct-value counting with an on-disk spill.

Counts stay in a dictionary until the distinct set outgrows its limit,
then the dictionary is flushed into a temporary SQLite table and starts
over. This is the one documented escape hatch from constant memory:
memory stays bounded by the limit while the disk table grows with the
number of distinct values.
"""

from __future__ import annotations

import os
import sqlite3
import tempfile
from pathlib import Path
from types import TracebackType

from core.errors import TabstoreStatsError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_CREATE_TABLE = "CREATE TABLE counts (value TEXT PRIMARY KEY, count INTEGER NOT NULL)"
_UPSERT = (
    "INSERT INTO counts (value, count) VALUES (?, ?) "
    "ON CONFLICT(value) DO UPDATE SET count = count + excluded.count"
)


class FrequencyCounter:
    """Count occurrences of text values with bounded memory."""

    def __init__(self, max_in_memory: int, spill_dir: Path | None = None) -> None:
        """Create an empty counter.

        Args:
            max_in_memory: Distinct values held before spilling to disk.
            spill_dir: Directory for the spill database; system temp if omitted.
        """
        if max_in_memory < 1:
            raise TabstoreStatsError(
                f"max_in_memory must be positive, got {max_in_memory}."
            )
        self._max_in_memory = max_in_memory
        self._spill_dir = spill_dir
        self._buffer: dict[str, int] = {}
        self._connection: sqlite3.Connection | None = None
        self._spill_path: Path | None = None
        self.total = 0

    @property
    def spilled(self) -> bool:
        """Return whether counts have moved to the on-disk table."""
        return self._connection is not None

    def add(self, value: str) -> None:
        """Count one occurrence."""
        self.total += 1
        self._buffer[value] = self._buffer.get(value, 0) + 1
        if len(self._buffer) > self._max_in_memory:
            self._flush()

    def distinct_count(self) -> int:
        """Return the number of distinct values seen."""
        if self._connection is None:
            return len(self._buffer)
        self._flush()
        (distinct,) = self._connection.execute("SELECT COUNT(*) FROM counts").fetchone()
        return int(distinct)

    def most_common(self, limit: int | None = None) -> list[tuple[str, int]]:
        """Return values by descending count, ties broken by value.

        Args:
            limit: Maximum rows; all rows when ``None``.
        """
        if self._connection is None:
            ranked = sorted(self._buffer.items(), key=lambda item: (-item[1], item[0]))
            return ranked if limit is None else ranked[:limit]
        self._flush()
        query = "SELECT value, count FROM counts ORDER BY count DESC, value ASC"
        if limit is None:
            rows = self._connection.execute(query).fetchall()
        else:
            rows = self._connection.execute(query + " LIMIT ?", (limit,)).fetchall()
        return [(str(value), int(count)) for value, count in rows]

    def modes(self) -> list[str]:
        """Return every value tied for the highest count, ordered by value."""
        if self._connection is None:
            peak = max(self._buffer.values(), default=0)
            return sorted(value for value, count in self._buffer.items() if count == peak)
        self._flush()
        rows = self._connection.execute(
            "SELECT value FROM counts WHERE count = (SELECT MAX(count) FROM counts) ORDER BY value ASC"
        ).fetchall()
        return [str(value) for (value,) in rows]

    def close(self) -> None:
        """Release the spill database, if any."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._spill_path is not None:
            self._spill_path.unlink(missing_ok=True)
            self._spill_path = None

    def __enter__(self) -> "FrequencyCounter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _flush(self) -> None:
        if self._connection is None:
            self._connection = self._open_spill()
        if not self._buffer:
            return
        with self._connection:
            self._connection.executemany(_UPSERT, self._buffer.items())
        self._buffer.clear()

    def _open_spill(self) -> sqlite3.Connection:
        handle, name = tempfile.mkstemp(prefix="tabstore-freq-", suffix=".sqlite3", dir=self._spill_dir)
        os.close(handle)
        self._spill_path = Path(name)
        connection = sqlite3.connect(name)
        connection.execute("PRAGMA journal_mode = OFF")
        connection.execute("PRAGMA synchronous = OFF")
        connection.execute(_CREATE_TABLE)
        _LOGGER.info(
            "frequency_spill_started",
            path=name,
            max_in_memory=self._max_in_memory,
        )
        return connection
