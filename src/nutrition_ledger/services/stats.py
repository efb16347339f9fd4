"""Statistics service combining targets with daily actuals."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from nutrition_ledger.domain.errors import IncompleteProfile, ProfileNotFound
from nutrition_ledger.domain.goals import Targets
from nutrition_ledger.domain.nutrients import NutrientTotals
from nutrition_ledger.domain.stats import (
    DailySummary,
    NutrientProgress,
    RangeSummary,
)
from nutrition_ledger.services.aggregates import AggregateCache
from nutrition_ledger.services.calendar import (
    anchor,
    anchor_date,
    load_timezone,
    parse_local_date,
    resolve_day,
    today_in,
    utc_now,
    window_for,
)
from nutrition_ledger.services.ledger import LedgerReader
from nutrition_ledger.services.profiles import ProfileService

_ZERO = Decimal(0)

_logger = logging.getLogger(__name__)


@dataclass
class StatsService:
    """Service for daily and range summaries in the user's timezone."""

    profiles: ProfileService
    aggregates: AggregateCache
    ledger: LedgerReader
    clock: Callable[[], datetime] = utc_now

    def get_daily(
        self, user_id: UUID, date_string: str | None, timezone_name: str
    ) -> DailySummary:
        """Return targets, actuals, per-slot totals and progress for a day."""
        now = self.clock()
        window = resolve_day(date_string, timezone_name, now=now)
        day_anchor = anchor(window.local_date)
        target = self._target_or_none(user_id, timezone_name, now)
        actual = self.aggregates.read(user_id, day_anchor)
        by_slot = self.ledger.sum_day_by_slot(user_id, day_anchor)
        return DailySummary(
            date=window.local_date,
            timezone=timezone_name,
            window=window,
            target=target,
            actual=actual,
            by_slot=by_slot,
            progress=compute_progress(actual, target),
        )

    def get_range(
        self, user_id: UUID, start: str, end: str, timezone_name: str
    ) -> RangeSummary:
        """Return one summary per local day in an inclusive range."""
        tz = load_timezone(timezone_name)
        start_date = parse_local_date(start)
        end_date = parse_local_date(end)
        now = self.clock()
        series = self.aggregates.read_range(
            user_id, anchor(start_date), anchor(end_date)
        )
        target = self._target_or_none(user_id, timezone_name, now)
        days = []
        for day_anchor, actual in series:
            local_date = anchor_date(day_anchor)
            days.append(
                DailySummary(
                    date=local_date,
                    timezone=timezone_name,
                    window=window_for(local_date, tz),
                    target=target,
                    actual=actual,
                    by_slot=None,
                    progress=compute_progress(actual, target),
                )
            )
        return RangeSummary(
            start=start_date, end=end_date, timezone=timezone_name, days=days
        )

    def get_recommended(self, user_id: UUID, timezone_name: str) -> Targets:
        """Return the user's computed targets."""
        return self.profiles.get_targets(
            user_id, today_in(timezone_name, now=self.clock())
        )

    def _target_or_none(
        self, user_id: UUID, timezone_name: str, now: datetime
    ) -> Targets | None:
        try:
            return self.profiles.get_targets(user_id, today_in(timezone_name, now=now))
        except (ProfileNotFound, IncompleteProfile) as exc:
            _logger.debug(
                "No targets for summary",
                extra={"user_id": str(user_id), "reason": str(exc)},
            )
            return None


def compute_progress(
    actual: NutrientTotals, target: Targets | None
) -> dict[str, NutrientProgress]:
    """Compare actuals with targets; empty when there is no target."""
    if target is None:
        return {}
    goals = {
        "kcal": target.target_kcal,
        "protein": target.macro_grams.protein,
        "carb": target.macro_grams.carb,
        "fat": target.macro_grams.fat,
        "sugars": target.limits.sugar_max_g,
        "fiber": target.limits.fiber_min_g,
        "salt": target.limits.salt_max_g,
    }
    return {
        name: _progress(actual.get(name), Decimal(goal)) for name, goal in goals.items()
    }


def _progress(used: Decimal, target: Decimal) -> NutrientProgress:
    return NutrientProgress(
        used=used,
        target=target,
        remaining=max(_ZERO, target - used),
        over_by=max(_ZERO, used - target),
    )
