"""Supabase repository for biometric profiles."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from supabase import Client

from nutrition_ledger.adapters.supabase_support import decimal_json, storage_call
from nutrition_ledger.domain.goals import ActivityLevel, BiometricProfile, Sex
from nutrition_ledger.domain.nutrients import to_decimal
from nutrition_ledger.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for the user_goals table."""

    client: Client

    def get_profile(self, user_id: UUID) -> BiometricProfile | None:
        """Return the stored profile for a user."""
        with storage_call("get_profile"):
            response = (
                self.client.table("user_goals")
                .select("*")
                .eq("user_id", str(user_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(
        self, user_id: UUID, profile: BiometricProfile
    ) -> BiometricProfile:
        """Create or replace the profile row."""
        payload = {
            "user_id": str(user_id),
            "sex": profile.sex.value if profile.sex else None,
            "date_of_birth": _iso(profile.date_of_birth),
            "height_cm": decimal_json(profile.height_cm),
            "current_weight_kg": decimal_json(profile.current_weight_kg),
            "target_weight_kg": decimal_json(profile.target_weight_kg),
            "target_date": _iso(profile.target_date),
            "activity_level": (
                profile.activity_level.value if profile.activity_level else None
            ),
            "low_salt": profile.low_salt,
            "low_sugar": profile.low_sugar,
            "vegetarian": profile.vegetarian,
            "vegan": profile.vegan,
            "allergens": list(profile.allergens),
            "daily_calories": decimal_json(profile.daily_calories),
            "protein_percent": profile.protein_percent,
            "carb_percent": profile.carb_percent,
            "fat_percent": profile.fat_percent,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        with storage_call("upsert_profile"):
            response = (
                self.client.table("user_goals")
                .upsert(payload, on_conflict="user_id")
                .execute()
            )
        if not response.data:
            raise RuntimeError("Failed to upsert profile")
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> BiometricProfile:
    return BiometricProfile(
        sex=_parse_enum(Sex, row.get("sex")),
        date_of_birth=_parse_date(row.get("date_of_birth")),
        height_cm=to_decimal(row.get("height_cm")),
        current_weight_kg=to_decimal(row.get("current_weight_kg")),
        target_weight_kg=to_decimal(row.get("target_weight_kg")),
        target_date=_parse_date(row.get("target_date")),
        activity_level=_parse_enum(ActivityLevel, row.get("activity_level")),
        low_salt=bool(row.get("low_salt")),
        low_sugar=bool(row.get("low_sugar")),
        vegetarian=bool(row.get("vegetarian")),
        vegan=bool(row.get("vegan")),
        allergens=[str(value) for value in row.get("allergens") or []],
        daily_calories=to_decimal(row.get("daily_calories")),
        protein_percent=_parse_int(row.get("protein_percent")),
        carb_percent=_parse_int(row.get("carb_percent")),
        fat_percent=_parse_int(row.get("fat_percent")),
    )


def _parse_enum(enum_type, value: object):  # type: ignore[no-untyped-def]
    if not isinstance(value, str) or not value:
        return None
    try:
        return enum_type(value.lower())
    except ValueError:
        return None


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    return date.fromisoformat(value[:10])


def _parse_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None
