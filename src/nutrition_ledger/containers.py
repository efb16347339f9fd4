"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import ClientOptions, create_client

from nutrition_ledger.adapters.supabase_aggregate_repository import (
    SupabaseAggregateRepository,
)
from nutrition_ledger.adapters.supabase_meal_repository import SupabaseMealRepository
from nutrition_ledger.adapters.supabase_profile_repository import (
    SupabaseProfileRepository,
)
from nutrition_ledger.config import Settings
from nutrition_ledger.services.aggregates import AggregateCache
from nutrition_ledger.services.ledger import LedgerReader
from nutrition_ledger.services.meals import MealLogService
from nutrition_ledger.services.mutations import MutationHook
from nutrition_ledger.services.profiles import ProfileService
from nutrition_ledger.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    profile_service: ProfileService
    meal_log_service: MealLogService
    stats_service: StatsService
    aggregate_cache: AggregateCache


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(
            postgrest_client_timeout=resolved_settings.storage_timeout_seconds
        ),
    )
    meal_repository = SupabaseMealRepository(supabase_client)
    aggregate_repository = SupabaseAggregateRepository(supabase_client)
    profile_repository = SupabaseProfileRepository(supabase_client)
    ledger = LedgerReader(meal_repository)
    aggregate_cache = AggregateCache(
        ledger=ledger,
        repository=aggregate_repository,
        max_range_days=resolved_settings.max_range_days,
        range_workers=resolved_settings.range_workers,
        lock_timeout_seconds=resolved_settings.storage_timeout_seconds * 3,
    )
    profile_service = ProfileService(profile_repository)
    meal_log_service = MealLogService(
        repository=meal_repository,
        hook=MutationHook(aggregate_cache),
    )
    stats_service = StatsService(
        profiles=profile_service,
        aggregates=aggregate_cache,
        ledger=ledger,
    )

    return AppContainer(
        settings=resolved_settings,
        profile_service=profile_service,
        meal_log_service=meal_log_service,
        stats_service=stats_service,
        aggregate_cache=aggregate_cache,
    )
