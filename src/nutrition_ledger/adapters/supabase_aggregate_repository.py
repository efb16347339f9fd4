"""Supabase repository for daily aggregate rows."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.adapters.supabase_support import (
    decimal_json,
    parse_anchor,
    parse_values,
    storage_call,
)
from nutrition_ledger.domain.nutrients import NutrientTotals
from nutrition_ledger.services.aggregates import AggregateRepository

_COLUMNS = "day, kcal, protein, carb, fat, sugars, fiber, salt"


@dataclass
class SupabaseAggregateRepository(AggregateRepository):
    """Supabase implementation for the daily_aggregates table."""

    client: Client

    def get_aggregate(
        self, user_id: UUID, day_anchor: datetime
    ) -> NutrientTotals | None:
        """Return the cached row for a day, if present."""
        with storage_call("get_aggregate"):
            response = (
                self.client.table("daily_aggregates")
                .select(_COLUMNS)
                .eq("user_id", str(user_id))
                .eq("day", day_anchor.isoformat())
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_totals(response.data[0])

    def list_aggregates(
        self, user_id: UUID, start_anchor: datetime, end_anchor: datetime
    ) -> dict[datetime, NutrientTotals]:
        """Return cached rows between two anchors inclusive."""
        with storage_call("list_aggregates"):
            response = (
                self.client.table("daily_aggregates")
                .select(_COLUMNS)
                .eq("user_id", str(user_id))
                .gte("day", start_anchor.isoformat())
                .lte("day", end_anchor.isoformat())
                .order("day", desc=False)
                .execute()
            )
        return {
            parse_anchor(row.get("day")): _parse_totals(row)
            for row in response.data or []
        }

    def upsert_aggregate(
        self, user_id: UUID, day_anchor: datetime, totals: NutrientTotals
    ) -> None:
        """Create or replace the row for a day."""
        payload = {
            "user_id": str(user_id),
            "day": day_anchor.isoformat(),
            "kcal": totals.kcal,
            "protein": decimal_json(totals.protein),
            "carb": decimal_json(totals.carb),
            "fat": decimal_json(totals.fat),
            "sugars": decimal_json(totals.sugars),
            "fiber": decimal_json(totals.fiber),
            "salt": decimal_json(totals.salt),
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        with storage_call("upsert_aggregate"):
            self.client.table("daily_aggregates").upsert(
                payload, on_conflict="user_id,day"
            ).execute()

    def delete_aggregate(self, user_id: UUID, day_anchor: datetime) -> None:
        """Delete the row for a day."""
        with storage_call("delete_aggregate"):
            self.client.table("daily_aggregates").delete().eq(
                "user_id", str(user_id)
            ).eq("day", day_anchor.isoformat()).execute()


def _parse_totals(row: dict[str, object]) -> NutrientTotals:
    return NutrientTotals().add(parse_values(row))
