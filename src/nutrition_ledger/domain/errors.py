"""Domain exceptions for the nutrition ledger."""


class NutritionLedgerError(Exception):
    """Base exception for nutrition ledger errors."""


class InvalidDate(NutritionLedgerError):
    """Raised when a date input is malformed or out of order."""


class InvalidTimezone(InvalidDate):
    """Raised when a timezone name is not a known IANA zone."""

    def __init__(self, timezone_name: str):
        super().__init__(f"Unknown timezone: {timezone_name}")
        self.timezone_name = timezone_name


class RangeTooLarge(NutritionLedgerError):
    """Raised when a range request exceeds the maximum window."""

    def __init__(self, days: int, max_days: int):
        super().__init__(f"Range of {days} days exceeds the maximum of {max_days}")
        self.days = days
        self.max_days = max_days


class IncompleteProfile(NutritionLedgerError):
    """Raised when biometrics are insufficient to compute targets."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing biometrics: {', '.join(missing)}")
        self.missing = missing


class ProfileNotFound(NutritionLedgerError):
    """Raised when a user has no biometric profile."""

    def __init__(self, user_id: object):
        super().__init__(f"Profile not found for user: {user_id}")
        self.user_id = user_id


class MealNotFound(NutritionLedgerError):
    """Raised when a meal or line item does not exist for the user."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(NutritionLedgerError):
    """Base class for transient storage failures."""


class StorageUnavailable(StorageError):
    """Raised when the storage backend rejects or fails a call."""


class StorageTimeout(StorageError):
    """Raised when a storage call exceeds its timeout."""
