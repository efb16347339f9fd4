"""Nutrient value types shared by line items and daily totals."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum
from uuid import UUID

NUTRIENT_FIELDS = ("kcal", "protein", "carb", "fat", "sugars", "fiber", "salt")
DECIMAL_FIELDS = NUTRIENT_FIELDS[1:]

ZERO = Decimal(0)


class MealSlot(StrEnum):
    """Meal slot within a day."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class Unit(StrEnum):
    """Unit a line item quantity is expressed in."""

    GRAM = "gram"
    ML = "ml"
    PIECE = "piece"


@dataclass(frozen=True)
class NutrientValues:
    """Frozen nutrient values of a line item; None means not recorded."""

    kcal: int | None = None
    protein: Decimal | None = None
    carb: Decimal | None = None
    fat: Decimal | None = None
    sugars: Decimal | None = None
    fiber: Decimal | None = None
    salt: Decimal | None = None


@dataclass(frozen=True)
class NutrientTotals:
    """Summed nutrients for a day or a slot."""

    kcal: int = 0
    protein: Decimal = ZERO
    carb: Decimal = ZERO
    fat: Decimal = ZERO
    sugars: Decimal = ZERO
    fiber: Decimal = ZERO
    salt: Decimal = ZERO

    def add(self, values: NutrientValues) -> "NutrientTotals":
        """Return totals with a line item's values added.

        Absent values contribute zero.
        """
        return NutrientTotals(
            kcal=self.kcal + _int_or_zero(values.kcal),
            protein=self.protein + _decimal_or_zero(values.protein),
            carb=self.carb + _decimal_or_zero(values.carb),
            fat=self.fat + _decimal_or_zero(values.fat),
            sugars=self.sugars + _decimal_or_zero(values.sugars),
            fiber=self.fiber + _decimal_or_zero(values.fiber),
            salt=self.salt + _decimal_or_zero(values.salt),
        )

    def merge(self, other: "NutrientTotals") -> "NutrientTotals":
        """Return the field-wise sum of two totals."""
        return NutrientTotals(
            kcal=self.kcal + other.kcal,
            protein=self.protein + other.protein,
            carb=self.carb + other.carb,
            fat=self.fat + other.fat,
            sugars=self.sugars + other.sugars,
            fiber=self.fiber + other.fiber,
            salt=self.salt + other.salt,
        )

    def is_zero(self) -> bool:
        return self.kcal == 0 and all(
            getattr(self, name) == ZERO for name in DECIMAL_FIELDS
        )

    def get(self, name: str) -> Decimal:
        """Return a nutrient by field name as a Decimal."""
        return Decimal(getattr(self, name))


@dataclass(frozen=True)
class LedgerLine:
    """A line item's frozen values tagged with its meal slot."""

    meal_id: UUID
    slot: MealSlot
    values: NutrientValues


def to_decimal(value: object) -> Decimal | None:
    """Convert a stored numeric value to Decimal, keeping None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, int | float | str):
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a numeric value: {value!r}") from exc
    raise ValueError(f"Not a numeric value: {value!r}")


def to_int(value: object) -> int | None:
    """Convert a stored kcal value to int, keeping None."""
    if value is None:
        return None
    decimal_value = to_decimal(value)
    if decimal_value is None:
        return None
    return int(decimal_value.to_integral_value(rounding=ROUND_HALF_UP))


def _int_or_zero(value: int | None) -> int:
    if value is None:
        return 0
    return value


def _decimal_or_zero(value: Decimal | None) -> Decimal:
    if value is None:
        return ZERO
    return value
