"""Domain models for biometric profiles and daily targets."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum


class Sex(StrEnum):
    """Biological sex used by the BMR formula."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(StrEnum):
    """Activity tiers for the TDEE multiplier."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class TargetStrategy(StrEnum):
    """Which branch produced the calorie target."""

    MANUAL = "manual"
    MAINTENANCE = "maintenance"
    GOAL = "goal"


@dataclass(frozen=True)
class BiometricProfile:
    """A user's biometrics, goals, and overrides."""

    sex: Sex | None = None
    date_of_birth: date | None = None
    height_cm: Decimal | None = None
    current_weight_kg: Decimal | None = None
    target_weight_kg: Decimal | None = None
    target_date: date | None = None
    activity_level: ActivityLevel | None = None
    low_salt: bool = False
    low_sugar: bool = False
    vegetarian: bool = False
    vegan: bool = False
    allergens: list[str] = field(default_factory=list)
    daily_calories: Decimal | None = None
    protein_percent: int | None = None
    carb_percent: int | None = None
    fat_percent: int | None = None


@dataclass(frozen=True)
class MacroSplit:
    """Macro distribution as percentages of target kcal."""

    protein: Decimal
    carb: Decimal
    fat: Decimal


@dataclass(frozen=True)
class MacroGrams:
    """Macro targets in grams."""

    protein: int
    carb: int
    fat: int


@dataclass(frozen=True)
class NutrientLimits:
    """Daily ceilings and floors derived from target kcal."""

    sugar_max_g: int
    saturated_fat_max_g: int
    fiber_min_g: int
    salt_max_g: int


@dataclass(frozen=True)
class Targets:
    """Computed daily targets for a profile."""

    bmr: Decimal | None
    tdee: int | None
    target_kcal: int
    adjustment: Decimal
    strategy: TargetStrategy
    macro_percent: MacroSplit
    macro_grams: MacroGrams
    limits: NutrientLimits
