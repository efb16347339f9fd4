"""Ledger reader that reduces a day's line items to nutrient totals."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from nutrition_ledger.domain.nutrients import LedgerLine, MealSlot, NutrientTotals


class LineItemSource(Protocol):
    """Read interface for the line items logged on a day."""

    def list_line_items(self, user_id: UUID, day_anchor: datetime) -> list[LedgerLine]:
        """Return every line item of the user's meals on a day."""


@dataclass(frozen=True)
class DayLedger:
    """A day's totals, per-slot totals and contributing line count."""

    totals: NutrientTotals
    by_slot: dict[MealSlot, NutrientTotals]
    line_count: int

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0


@dataclass
class LedgerReader:
    """Reduces line items to totals for a user and day."""

    source: LineItemSource

    def read_day(self, user_id: UUID, day_anchor: datetime) -> DayLedger:
        """Read a day's line items once and reduce them."""
        lines = self.source.list_line_items(user_id, day_anchor)
        by_slot = {slot: NutrientTotals() for slot in MealSlot}
        totals = NutrientTotals()
        for line in lines:
            by_slot[line.slot] = by_slot[line.slot].add(line.values)
            totals = totals.add(line.values)
        return DayLedger(totals=totals, by_slot=by_slot, line_count=len(lines))

    def sum_day(self, user_id: UUID, day_anchor: datetime) -> NutrientTotals:
        """Return the day's totals; all zero when nothing was logged."""
        return self.read_day(user_id, day_anchor).totals

    def sum_day_by_slot(
        self, user_id: UUID, day_anchor: datetime
    ) -> dict[MealSlot, NutrientTotals]:
        """Return totals per meal slot, zero-filled for empty slots."""
        return self.read_day(user_id, day_anchor).by_slot
