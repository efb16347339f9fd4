"""Post-commit hook that refreshes daily aggregates after meal mutations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from nutrition_ledger.domain.errors import StorageError
from nutrition_ledger.services.aggregates import AggregateCache
from nutrition_ledger.services.calendar import anchor_date

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationOutcome:
    """Days refreshed after a mutation and days left stale."""

    refreshed: list[date] = field(default_factory=list)
    stale: list[date] = field(default_factory=list)


@dataclass
class MutationHook:
    """Recomputes every day a committed meal mutation touched."""

    aggregates: AggregateCache

    def after_commit(
        self, user_id: UUID, day_anchors: Iterable[datetime]
    ) -> MutationOutcome:
        """Recompute each affected day once.

        Storage failures are logged and reported as stale days; the committed
        line items stay as they are and the next read-through repairs the row.
        """
        refreshed: list[date] = []
        stale: list[date] = []
        for day_anchor in dict.fromkeys(day_anchors):
            day = anchor_date(day_anchor)
            try:
                self.aggregates.recompute(user_id, day_anchor)
            except StorageError:
                _logger.exception(
                    "Failed to refresh daily aggregate after meal change",
                    extra={"user_id": str(user_id), "day": day.isoformat()},
                )
                stale.append(day)
                continue
            refreshed.append(day)
        return MutationOutcome(refreshed=refreshed, stale=stale)
