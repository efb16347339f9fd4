"""Domain models for statistics."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from nutrition_ledger.domain.goals import Targets
from nutrition_ledger.domain.nutrients import MealSlot, NutrientTotals


@dataclass(frozen=True)
class DayWindow:
    """A local calendar day and its UTC bounds."""

    local_date: date
    utc_start: datetime
    utc_end: datetime


@dataclass(frozen=True)
class NutrientProgress:
    """Progress of one nutrient against its target."""

    used: Decimal
    target: Decimal
    remaining: Decimal
    over_by: Decimal


@dataclass(frozen=True)
class DailySummary:
    """Targets, actuals and progress for one day."""

    date: date
    timezone: str
    window: DayWindow
    target: Targets | None
    actual: NutrientTotals
    by_slot: dict[MealSlot, NutrientTotals] | None
    progress: dict[str, NutrientProgress]


@dataclass(frozen=True)
class RangeSummary:
    """Ordered daily summaries for an inclusive range."""

    start: date
    end: date
    timezone: str
    days: list[DailySummary]
