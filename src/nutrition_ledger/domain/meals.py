"""Domain models for meal logging."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from nutrition_ledger.domain.nutrients import MealSlot, NutrientValues, Unit


@dataclass(frozen=True)
class MealRecord:
    """A user's meal for one day and slot."""

    id: UUID
    user_id: UUID
    day: datetime
    slot: MealSlot


@dataclass(frozen=True)
class LineItemRecord:
    """Line item row with frozen nutrient values."""

    id: UUID
    meal_id: UUID
    position: int
    unit: Unit
    quantity: Decimal
    values: NutrientValues
    product_ref: str | None = None
    custom_food_ref: str | None = None


@dataclass(frozen=True)
class NewLineItem:
    """Line item to append to a meal."""

    unit: Unit
    quantity: Decimal
    values: NutrientValues
    product_ref: str | None = None
    custom_food_ref: str | None = None


@dataclass(frozen=True)
class LineItemChanges:
    """Partial update for a line item.

    ``values`` replaces the whole snapshot. ``nutrients`` holds single values
    to set over the current snapshot; nutrients not named keep their value.
    """

    unit: Unit | None = None
    quantity: Decimal | None = None
    values: NutrientValues | None = None
    nutrients: dict[str, int | Decimal | None] = field(default_factory=dict)


@dataclass(frozen=True)
class MealDetail:
    """Meal with its line items ordered by position."""

    meal: MealRecord
    items: list[LineItemRecord]


@dataclass(frozen=True)
class MealDay:
    """All meals logged on a local calendar day."""

    date: date
    meals: list[MealDetail]
    total_kcal: int


@dataclass(frozen=True)
class MealWriteResult:
    """Outcome of a meal mutation."""

    meal_id: UUID | None
    affected_days: list[date]
    stale_days: list[date] = field(default_factory=list)

    @property
    def stats_stale(self) -> bool:
        """True when the line items were saved but daily stats did not refresh."""
        return bool(self.stale_days)
