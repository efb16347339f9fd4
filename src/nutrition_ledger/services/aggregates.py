"""Materialized per-day nutrient aggregates kept in step with line items."""

import logging
import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from nutrition_ledger.domain.errors import RangeTooLarge, StorageTimeout
from nutrition_ledger.domain.nutrients import NutrientTotals
from nutrition_ledger.services.calendar import anchor, anchor_date, days_between
from nutrition_ledger.services.ledger import LedgerReader

MAX_RANGE_DAYS = 92

_logger = logging.getLogger(__name__)


class AggregateRepository(Protocol):
    """Persistence interface for daily aggregate rows."""

    def get_aggregate(
        self, user_id: UUID, day_anchor: datetime
    ) -> NutrientTotals | None:
        """Return the cached row for a day, if present."""

    def list_aggregates(
        self, user_id: UUID, start_anchor: datetime, end_anchor: datetime
    ) -> dict[datetime, NutrientTotals]:
        """Return cached rows between two anchors inclusive."""

    def upsert_aggregate(
        self, user_id: UUID, day_anchor: datetime, totals: NutrientTotals
    ) -> None:
        """Create or replace the row for a day."""

    def delete_aggregate(self, user_id: UUID, day_anchor: datetime) -> None:
        """Delete the row for a day; no-op when absent."""


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """One lock per key, dropped once nobody holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[object, _KeyLock] = {}

    @contextmanager
    def hold(self, key: object, timeout: float) -> Iterator[None]:
        """Hold the lock for a key, raising StorageTimeout if it stays busy."""
        with self._guard:
            entry = self._locks.setdefault(key, _KeyLock())
            entry.holders += 1
        try:
            if not entry.lock.acquire(timeout=timeout):
                raise StorageTimeout(f"Timed out waiting for aggregate lock: {key}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


@dataclass
class AggregateCache:
    """Read-through cache of daily totals rebuilt from the ledger."""

    ledger: LedgerReader
    repository: AggregateRepository
    max_range_days: int = MAX_RANGE_DAYS
    range_workers: int = 8
    lock_timeout_seconds: float = 30.0
    locks: KeyedLocks = field(default_factory=KeyedLocks, repr=False)

    def recompute(self, user_id: UUID, day_anchor: datetime) -> NutrientTotals:
        """Rebuild a day's row from its line items.

        A day without line items has no row. The read and the write happen
        under the day's lock, and nothing is written when the read fails.
        """
        with self.locks.hold((user_id, day_anchor), self.lock_timeout_seconds):
            day = self.ledger.read_day(user_id, day_anchor)
            if day.is_empty:
                self.repository.delete_aggregate(user_id, day_anchor)
                _logger.debug(
                    "Evicted daily aggregate",
                    extra={"user_id": str(user_id), "day": day_anchor.isoformat()},
                )
                return NutrientTotals()
            self.repository.upsert_aggregate(user_id, day_anchor, day.totals)
            _logger.debug(
                "Stored daily aggregate",
                extra={
                    "user_id": str(user_id),
                    "day": day_anchor.isoformat(),
                    "lines": day.line_count,
                },
            )
            return day.totals

    def read(self, user_id: UUID, day_anchor: datetime) -> NutrientTotals:
        """Return the cached totals, recomputing on a miss."""
        cached = self.repository.get_aggregate(user_id, day_anchor)
        if cached is not None:
            return cached
        return self.recompute(user_id, day_anchor)

    def read_range(
        self, user_id: UUID, start_anchor: datetime, end_anchor: datetime
    ) -> list[tuple[datetime, NutrientTotals]]:
        """Return ordered totals for every day in an inclusive range.

        Days without a cached row are recomputed concurrently.
        """
        anchors = self.range_anchors(start_anchor, end_anchor)
        present = self.repository.list_aggregates(user_id, anchors[0], anchors[-1])
        missing = [day_anchor for day_anchor in anchors if day_anchor not in present]
        totals = dict(present)
        if missing:
            workers = max(1, min(self.range_workers, len(missing)))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = pool.map(
                    lambda day_anchor: self.recompute(user_id, day_anchor), missing
                )
                totals.update(zip(missing, results, strict=True))
        return [(day_anchor, totals[day_anchor]) for day_anchor in anchors]

    def range_anchors(
        self, start_anchor: datetime, end_anchor: datetime
    ) -> list[datetime]:
        """Validate a range and return its day anchors."""
        days = days_between(anchor_date(start_anchor), anchor_date(end_anchor))
        if len(days) > self.max_range_days:
            raise RangeTooLarge(len(days), self.max_range_days)
        return [anchor(day) for day in days]
