"""Biometric profile service."""

from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol
from uuid import UUID

from nutrition_ledger.domain.errors import ProfileNotFound
from nutrition_ledger.domain.goals import BiometricProfile, Targets
from nutrition_ledger.services.targets import compute_targets


class ProfileRepository(Protocol):
    """Persistence interface for biometric profiles."""

    def get_profile(self, user_id: UUID) -> BiometricProfile | None:
        """Return the user's profile, if present."""

    def upsert_profile(
        self, user_id: UUID, profile: BiometricProfile
    ) -> BiometricProfile:
        """Create or replace the user's profile."""


@dataclass
class ProfileService:
    """Reads and updates profiles and derives targets from them."""

    repository: ProfileRepository

    def get_profile(self, user_id: UUID) -> BiometricProfile:
        """Return the user's profile or raise ProfileNotFound."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    def upsert_profile(
        self, user_id: UUID, changes: dict[str, object]
    ) -> BiometricProfile:
        """Apply a partial update, creating the profile if needed."""
        current = self.repository.get_profile(user_id) or BiometricProfile()
        return self.repository.upsert_profile(user_id, replace(current, **changes))

    def get_targets(self, user_id: UUID, today: date) -> Targets:
        """Compute the user's targets as of a date."""
        return compute_targets(self.get_profile(user_id), today)
