"""Pydantic models for API request payloads."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from nutrition_ledger.domain.goals import ActivityLevel, Sex
from nutrition_ledger.domain.meals import LineItemChanges, NewLineItem
from nutrition_ledger.domain.nutrients import MealSlot, NutrientValues, Unit, to_int


class NutrientsPayload(BaseModel):
    """Frozen nutrient values for a line item; omitted values stay unknown."""

    model_config = ConfigDict(extra="forbid")

    kcal: Decimal | None = Field(default=None, ge=0)
    protein: Decimal | None = Field(default=None, ge=0)
    carb: Decimal | None = Field(default=None, ge=0)
    fat: Decimal | None = Field(default=None, ge=0)
    sugars: Decimal | None = Field(default=None, ge=0)
    fiber: Decimal | None = Field(default=None, ge=0)
    salt: Decimal | None = Field(default=None, ge=0)

    def to_domain(self) -> NutrientValues:
        return NutrientValues(
            kcal=to_int(self.kcal),
            protein=self.protein,
            carb=self.carb,
            fat=self.fat,
            sugars=self.sugars,
            fiber=self.fiber,
            salt=self.salt,
        )

    def to_changes(self) -> dict[str, int | Decimal | None]:
        """Return only the nutrients the client sent."""
        sent = {name: getattr(self, name) for name in self.model_fields_set}
        if "kcal" in sent:
            sent["kcal"] = to_int(sent["kcal"])
        return sent


class LineItemPayload(BaseModel):
    """A line item to log."""

    model_config = ConfigDict(extra="forbid")

    unit: Unit = Unit.GRAM
    quantity: Decimal = Field(gt=0)
    nutrients: NutrientsPayload = Field(default_factory=NutrientsPayload)
    product_ref: str | None = None
    custom_food_ref: str | None = None

    def to_domain(self) -> NewLineItem:
        return NewLineItem(
            unit=self.unit,
            quantity=self.quantity,
            values=self.nutrients.to_domain(),
            product_ref=self.product_ref,
            custom_food_ref=self.custom_food_ref,
        )


class AddMealRequest(BaseModel):
    """Items to append to a day's meal slot."""

    date: str
    slot: MealSlot
    items: list[LineItemPayload] = Field(min_length=1)


class UpdateItemRequest(BaseModel):
    """Partial line item update; nutrients left out keep their frozen value."""

    model_config = ConfigDict(extra="forbid")

    unit: Unit | None = None
    quantity: Decimal | None = Field(default=None, gt=0)
    nutrients: NutrientsPayload | None = None

    def to_domain(self) -> LineItemChanges:
        return LineItemChanges(
            unit=self.unit,
            quantity=self.quantity,
            nutrients=self.nutrients.to_changes() if self.nutrients else {},
        )


class MoveMealRequest(BaseModel):
    """New day and slot for a meal."""

    date: str
    slot: MealSlot


class GoalsUpdate(BaseModel):
    """Partial update of the biometric profile.

    Only fields present in the payload are applied.
    """

    model_config = ConfigDict(extra="forbid")

    sex: Sex | None = None
    date_of_birth: date | None = None
    height_cm: Decimal | None = Field(default=None, gt=0)
    current_weight_kg: Decimal | None = Field(default=None, gt=0)
    target_weight_kg: Decimal | None = Field(default=None, gt=0)
    target_date: date | None = None
    activity_level: ActivityLevel | None = None
    low_salt: bool = False
    low_sugar: bool = False
    vegetarian: bool = False
    vegan: bool = False
    allergens: list[str] = Field(default_factory=list)
    daily_calories: Decimal | None = Field(default=None, gt=0)
    protein_percent: int | None = Field(default=None, ge=0, le=100)
    carb_percent: int | None = Field(default=None, ge=0, le=100)
    fat_percent: int | None = Field(default=None, ge=0, le=100)

    def to_changes(self) -> dict[str, object]:
        """Return only the fields the client sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}
