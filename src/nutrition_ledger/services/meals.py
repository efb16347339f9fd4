"""Meal logging service."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from nutrition_ledger.domain.errors import MealNotFound
from nutrition_ledger.domain.meals import (
    LineItemChanges,
    LineItemRecord,
    MealDay,
    MealDetail,
    MealRecord,
    MealWriteResult,
    NewLineItem,
)
from nutrition_ledger.domain.nutrients import MealSlot, NutrientTotals
from nutrition_ledger.services.calendar import anchor, anchor_date, parse_local_date
from nutrition_ledger.services.mutations import MutationHook

_SLOT_ORDER = {slot: index for index, slot in enumerate(MealSlot)}


class MealRepository(Protocol):
    """Persistence interface for meals and their line items."""

    def upsert_meal(
        self, user_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord:
        """Return the meal for a day and slot, creating it if needed."""

    def get_meal(self, meal_id: UUID) -> MealRecord | None:
        """Return a meal by id."""

    def find_meal(
        self, user_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord | None:
        """Return the meal for a day and slot, if present."""

    def list_meals(self, user_id: UUID, day_anchor: datetime) -> list[MealRecord]:
        """Return the user's meals on a day."""

    def list_items(self, meal_id: UUID) -> list[LineItemRecord]:
        """Return a meal's line items ordered by position."""

    def create_items(
        self, meal_id: UUID, items: list[NewLineItem], first_position: int
    ) -> list[LineItemRecord]:
        """Append line items to a meal."""

    def get_item(self, item_id: UUID) -> LineItemRecord | None:
        """Return a line item by id."""

    def update_item(self, item_id: UUID, changes: LineItemChanges) -> LineItemRecord:
        """Apply a partial update to a line item."""

    def move_meal(
        self, meal_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord:
        """Change a meal's day and slot."""

    def reassign_items(
        self, source_meal_id: UUID, target_meal_id: UUID, first_position: int
    ) -> None:
        """Move every line item of one meal to the end of another."""

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal and its line items."""

    def delete_item(self, item_id: UUID) -> None:
        """Delete a line item."""


@dataclass
class MealLogService:
    """Logs meals and refreshes the affected daily aggregates."""

    repository: MealRepository
    hook: MutationHook

    def add_items(
        self,
        user_id: UUID,
        date_string: str,
        slot: MealSlot,
        items: list[NewLineItem],
    ) -> MealWriteResult:
        """Append items to the day's meal for a slot."""
        day_anchor = anchor(date_string)
        meal = self.repository.upsert_meal(user_id, day_anchor, slot)
        existing = self.repository.list_items(meal.id)
        self.repository.create_items(meal.id, items, _next_position(existing))
        return self._refresh(user_id, meal.id, [day_anchor])

    def get_day(self, user_id: UUID, date_string: str) -> MealDay:
        """Return the day's meals with items and the kcal total."""
        local_date = parse_local_date(date_string)
        meals = sorted(
            self.repository.list_meals(user_id, anchor(local_date)),
            key=lambda meal: _SLOT_ORDER[meal.slot],
        )
        details = [
            MealDetail(meal=meal, items=self.repository.list_items(meal.id))
            for meal in meals
        ]
        totals = NutrientTotals()
        for detail in details:
            for item in detail.items:
                totals = totals.add(item.values)
        return MealDay(date=local_date, meals=details, total_kcal=totals.kcal)

    def get_meal(self, user_id: UUID, meal_id: UUID) -> MealDetail:
        """Return one of the user's meals with its items."""
        meal = self._owned_meal(user_id, meal_id)
        return MealDetail(meal=meal, items=self.repository.list_items(meal.id))

    def update_item(
        self, user_id: UUID, item_id: UUID, changes: LineItemChanges
    ) -> MealWriteResult:
        """Edit a line item's quantity, unit or frozen values."""
        item, meal = self._owned_item(user_id, item_id)
        if changes.nutrients:
            merged = replace(changes.values or item.values, **changes.nutrients)
            changes = replace(changes, values=merged, nutrients={})
        self.repository.update_item(item.id, changes)
        return self._refresh(user_id, meal.id, [meal.day])

    def move_meal(
        self, user_id: UUID, meal_id: UUID, date_string: str, slot: MealSlot
    ) -> MealWriteResult:
        """Move a meal to another day or slot.

        When the destination slot already has a meal the items are appended to
        it and the moved meal is removed, keeping one meal per day and slot.
        """
        meal = self._owned_meal(user_id, meal_id)
        new_anchor = anchor(date_string)
        destination = self.repository.find_meal(user_id, new_anchor, slot)
        if destination is None:
            moved = self.repository.move_meal(meal.id, new_anchor, slot)
            target_id = moved.id
        elif destination.id == meal.id:
            target_id = meal.id
        else:
            existing = self.repository.list_items(destination.id)
            self.repository.reassign_items(
                meal.id, destination.id, _next_position(existing)
            )
            self.repository.delete_meal(meal.id)
            target_id = destination.id
        return self._refresh(user_id, target_id, [meal.day, new_anchor])

    def delete_meal(self, user_id: UUID, meal_id: UUID) -> MealWriteResult:
        """Delete a meal with all its items."""
        meal = self._owned_meal(user_id, meal_id)
        self.repository.delete_meal(meal.id)
        return self._refresh(user_id, None, [meal.day])

    def delete_item(self, user_id: UUID, item_id: UUID) -> MealWriteResult:
        """Delete a single line item."""
        item, meal = self._owned_item(user_id, item_id)
        self.repository.delete_item(item.id)
        return self._refresh(user_id, meal.id, [meal.day])

    def _refresh(
        self, user_id: UUID, meal_id: UUID | None, day_anchors: list[datetime]
    ) -> MealWriteResult:
        outcome = self.hook.after_commit(user_id, day_anchors)
        return MealWriteResult(
            meal_id=meal_id,
            affected_days=[anchor_date(day) for day in dict.fromkeys(day_anchors)],
            stale_days=outcome.stale,
        )

    def _owned_meal(self, user_id: UUID, meal_id: UUID) -> MealRecord:
        meal = self.repository.get_meal(meal_id)
        if meal is None or meal.user_id != user_id:
            raise MealNotFound("Meal", meal_id)
        return meal

    def _owned_item(
        self, user_id: UUID, item_id: UUID
    ) -> tuple[LineItemRecord, MealRecord]:
        item = self.repository.get_item(item_id)
        if item is None:
            raise MealNotFound("Line item", item_id)
        meal = self.repository.get_meal(item.meal_id)
        if meal is None or meal.user_id != user_id:
            raise MealNotFound("Line item", item_id)
        return item, meal


def _next_position(items: list[LineItemRecord]) -> int:
    return max((item.position for item in items), default=0) + 1
