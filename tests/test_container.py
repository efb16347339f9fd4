"""Tests for container wiring."""

import pytest
from pydantic import ValidationError

from nutrition_ledger.config import Settings
from nutrition_ledger.containers import build_container
from tests.conftest import SERVICE_KEY


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.stats_service.aggregates is container.aggregate_cache
    assert container.meal_log_service.hook.aggregates is container.aggregate_cache
    assert container.aggregate_cache.max_range_days == 92
    assert container.settings.default_timezone == "UTC"


def test_settings_override_range_limits() -> None:
    settings = Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=SERVICE_KEY,
        max_range_days=31,
        range_workers=2,
    )

    container = build_container(settings)

    assert container.aggregate_cache.max_range_days == 31
    assert container.aggregate_cache.range_workers == 2


def test_settings_reject_invalid_limits() -> None:
    with pytest.raises(ValidationError):
        Settings(
            supabase_url="https://example.supabase.co",
            supabase_service_key=SERVICE_KEY,
            max_range_days=0,
        )
