"""Supabase repository for meals and line items."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.adapters.supabase_support import (
    decimal_json,
    parse_anchor,
    parse_values,
    storage_call,
    values_payload,
)
from nutrition_ledger.domain.errors import MealNotFound
from nutrition_ledger.domain.meals import (
    LineItemChanges,
    LineItemRecord,
    MealRecord,
    NewLineItem,
)
from nutrition_ledger.domain.nutrients import (
    ZERO,
    LedgerLine,
    MealSlot,
    Unit,
    to_decimal,
)
from nutrition_ledger.services.ledger import LineItemSource
from nutrition_ledger.services.meals import MealRepository

_MEAL_COLUMNS = "id, user_id, day, slot"
_ITEM_COLUMNS = (
    "id, meal_id, position, unit, quantity, kcal, protein, carb, fat, sugars, "
    "fiber, salt, product_ref, custom_food_ref"
)
_NUTRIENT_COLUMNS = "kcal, protein, carb, fat, sugars, fiber, salt"


@dataclass
class SupabaseMealRepository(MealRepository, LineItemSource):
    """Supabase implementation for meals, line items and the day ledger."""

    client: Client

    def upsert_meal(
        self, user_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord:
        """Return the meal for a day and slot, creating it if needed."""
        with storage_call("upsert_meal"):
            response = (
                self.client.table("meals")
                .upsert(
                    {
                        "user_id": str(user_id),
                        "day": day_anchor.isoformat(),
                        "slot": slot.value,
                    },
                    on_conflict="user_id,day,slot",
                )
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to upsert meal")
        return _parse_meal(response.data[0])

    def get_meal(self, meal_id: UUID) -> MealRecord | None:
        """Return a meal by id."""
        with storage_call("get_meal"):
            response = (
                self.client.table("meals")
                .select(_MEAL_COLUMNS)
                .eq("id", str(meal_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def find_meal(
        self, user_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord | None:
        """Return the meal for a day and slot, if present."""
        with storage_call("find_meal"):
            response = (
                self.client.table("meals")
                .select(_MEAL_COLUMNS)
                .eq("user_id", str(user_id))
                .eq("day", day_anchor.isoformat())
                .eq("slot", slot.value)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def list_meals(self, user_id: UUID, day_anchor: datetime) -> list[MealRecord]:
        """Return the user's meals on a day."""
        with storage_call("list_meals"):
            response = (
                self.client.table("meals")
                .select(_MEAL_COLUMNS)
                .eq("user_id", str(user_id))
                .eq("day", day_anchor.isoformat())
                .execute()
            )
        return [_parse_meal(row) for row in response.data or []]

    def list_items(self, meal_id: UUID) -> list[LineItemRecord]:
        """Return a meal's line items ordered by position."""
        with storage_call("list_items"):
            response = (
                self.client.table("meal_items")
                .select(_ITEM_COLUMNS)
                .eq("meal_id", str(meal_id))
                .order("position", desc=False)
                .execute()
            )
        return [_parse_item(row) for row in response.data or []]

    def create_items(
        self, meal_id: UUID, items: list[NewLineItem], first_position: int
    ) -> list[LineItemRecord]:
        """Insert line items after the meal's existing ones."""
        payload = [
            {
                "meal_id": str(meal_id),
                "position": first_position + offset,
                "unit": item.unit.value,
                "quantity": decimal_json(item.quantity),
                "product_ref": item.product_ref,
                "custom_food_ref": item.custom_food_ref,
                **values_payload(item.values),
            }
            for offset, item in enumerate(items)
        ]
        if not payload:
            return []
        with storage_call("create_items"):
            response = self.client.table("meal_items").insert(payload).execute()
        return [_parse_item(row) for row in response.data or []]

    def get_item(self, item_id: UUID) -> LineItemRecord | None:
        """Return a line item by id."""
        with storage_call("get_item"):
            response = (
                self.client.table("meal_items")
                .select(_ITEM_COLUMNS)
                .eq("id", str(item_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_item(response.data[0])

    def update_item(self, item_id: UUID, changes: LineItemChanges) -> LineItemRecord:
        """Apply a partial update to a line item."""
        payload: dict[str, object] = {}
        if changes.unit is not None:
            payload["unit"] = changes.unit.value
        if changes.quantity is not None:
            payload["quantity"] = decimal_json(changes.quantity)
        if changes.values is not None:
            payload.update(values_payload(changes.values))
        if not payload:
            current = self.get_item(item_id)
            if current is None:
                raise MealNotFound("Line item", item_id)
            return current
        with storage_call("update_item"):
            response = (
                self.client.table("meal_items")
                .update(payload)
                .eq("id", str(item_id))
                .execute()
            )
        if not response.data:
            raise MealNotFound("Line item", item_id)
        return _parse_item(response.data[0])

    def move_meal(
        self, meal_id: UUID, day_anchor: datetime, slot: MealSlot
    ) -> MealRecord:
        """Change a meal's day and slot."""
        with storage_call("move_meal"):
            response = (
                self.client.table("meals")
                .update({"day": day_anchor.isoformat(), "slot": slot.value})
                .eq("id", str(meal_id))
                .execute()
            )
        if not response.data:
            raise MealNotFound("Meal", meal_id)
        return _parse_meal(response.data[0])

    def reassign_items(
        self, source_meal_id: UUID, target_meal_id: UUID, first_position: int
    ) -> None:
        """Move every line item of one meal to the end of another."""
        items = self.list_items(source_meal_id)
        with storage_call("reassign_items"):
            for offset, item in enumerate(items):
                self.client.table("meal_items").update(
                    {
                        "meal_id": str(target_meal_id),
                        "position": first_position + offset,
                    }
                ).eq("id", str(item.id)).execute()

    def delete_meal(self, meal_id: UUID) -> None:
        """Delete a meal and its line items."""
        with storage_call("delete_meal"):
            self.client.table("meal_items").delete().eq(
                "meal_id", str(meal_id)
            ).execute()
            self.client.table("meals").delete().eq("id", str(meal_id)).execute()

    def delete_item(self, item_id: UUID) -> None:
        """Delete a line item."""
        with storage_call("delete_item"):
            self.client.table("meal_items").delete().eq("id", str(item_id)).execute()

    def list_line_items(self, user_id: UUID, day_anchor: datetime) -> list[LedgerLine]:
        """Return every line item of the user's meals on a day."""
        with storage_call("list_line_items"):
            response = (
                self.client.table("meals")
                .select(f"id, slot, meal_items({_NUTRIENT_COLUMNS})")
                .eq("user_id", str(user_id))
                .eq("day", day_anchor.isoformat())
                .execute()
            )
        lines: list[LedgerLine] = []
        for row in response.data or []:
            meal_id = UUID(str(row["id"]))
            slot = MealSlot(str(row["slot"]))
            for item in row.get("meal_items") or []:
                lines.append(
                    LedgerLine(meal_id=meal_id, slot=slot, values=parse_values(item))
                )
        return lines


def _parse_meal(row: dict[str, object]) -> MealRecord:
    return MealRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        day=parse_anchor(row.get("day")),
        slot=MealSlot(str(row["slot"])),
    )


def _parse_item(row: dict[str, object]) -> LineItemRecord:
    return LineItemRecord(
        id=UUID(str(row["id"])),
        meal_id=UUID(str(row["meal_id"])),
        position=int(row.get("position") or 0),
        unit=Unit(str(row.get("unit") or Unit.GRAM.value)),
        quantity=to_decimal(row.get("quantity")) or ZERO,
        values=parse_values(row),
        product_ref=row.get("product_ref"),
        custom_food_ref=row.get("custom_food_ref"),
    )
