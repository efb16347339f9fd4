"""Shared helpers for Supabase repositories."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal

import httpx
from postgrest.exceptions import APIError

from nutrition_ledger.domain.errors import StorageTimeout, StorageUnavailable
from nutrition_ledger.domain.nutrients import NutrientValues, to_decimal, to_int


@contextmanager
def storage_call(action: str) -> Iterator[None]:
    """Translate client failures into storage errors."""
    try:
        yield
    except httpx.TimeoutException as exc:
        raise StorageTimeout(f"Storage call timed out: {action}") from exc
    except (httpx.HTTPError, APIError) as exc:
        raise StorageUnavailable(f"Storage call failed: {action}: {exc}") from exc


def parse_anchor(raw: object) -> datetime:
    """Parse a stored day value into a UTC-midnight anchor."""
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"Invalid day value: {raw!r}")
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def decimal_json(value: Decimal | None) -> str | None:
    """Serialize a Decimal for a numeric column without float rounding."""
    if value is None:
        return None
    return str(value)


def parse_values(row: dict[str, object]) -> NutrientValues:
    """Parse nutrient columns, keeping absent values as None."""
    return NutrientValues(
        kcal=to_int(row.get("kcal")),
        protein=to_decimal(row.get("protein")),
        carb=to_decimal(row.get("carb")),
        fat=to_decimal(row.get("fat")),
        sugars=to_decimal(row.get("sugars")),
        fiber=to_decimal(row.get("fiber")),
        salt=to_decimal(row.get("salt")),
    )


def values_payload(values: NutrientValues) -> dict[str, object]:
    """Serialize nutrient values for an insert or update."""
    return {
        "kcal": values.kcal,
        "protein": decimal_json(values.protein),
        "carb": decimal_json(values.carb),
        "fat": decimal_json(values.fat),
        "sugars": decimal_json(values.sugars),
        "fiber": decimal_json(values.fiber),
        "salt": decimal_json(values.salt),
    }
