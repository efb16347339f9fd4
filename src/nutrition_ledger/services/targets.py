"""Daily energy and macro targets derived from a biometric profile."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from nutrition_ledger.domain.errors import IncompleteProfile
from nutrition_ledger.domain.goals import (
    ActivityLevel,
    BiometricProfile,
    MacroGrams,
    MacroSplit,
    NutrientLimits,
    Sex,
    Targets,
    TargetStrategy,
)

KCAL_PER_KG = Decimal(7700)

SEX_OFFSETS = {
    Sex.MALE: Decimal(5),
    Sex.FEMALE: Decimal(-161),
    Sex.OTHER: Decimal(-78),
}

ACTIVITY_FACTORS = {
    ActivityLevel.SEDENTARY: Decimal("1.2"),
    ActivityLevel.LIGHT: Decimal("1.375"),
    ActivityLevel.MODERATE: Decimal("1.55"),
    ActivityLevel.ACTIVE: Decimal("1.725"),
    ActivityLevel.VERY_ACTIVE: Decimal("1.9"),
}
DEFAULT_ACTIVITY_FACTOR = ACTIVITY_FACTORS[ActivityLevel.SEDENTARY]

MANUAL_FLOOR_KCAL = 1000
MIN_TARGET_KCAL = 1200
MAINTENANCE_TOLERANCE_KG = Decimal("0.5")
MIN_HORIZON_DAYS = 3
MAX_HORIZON_DAYS = 730
DEFAULT_LOSS_ADJUSTMENT = Decimal(-500)
DEFAULT_GAIN_ADJUSTMENT = Decimal(300)
LOSS_ADJUSTMENT_RANGE = (Decimal(-700), Decimal(-300))
GAIN_ADJUSTMENT_RANGE = (Decimal(250), Decimal(500))

PROTEIN_G_PER_KG = Decimal("1.6")
PROTEIN_PERCENT_RANGE = (Decimal(15), Decimal(35))
DEFAULT_FAT_PERCENT = Decimal(30)
KCAL_PER_G_PROTEIN = Decimal(4)
KCAL_PER_G_CARB = Decimal(4)
KCAL_PER_G_FAT = Decimal(9)

SUGAR_SHARE = Decimal("0.10")
SATURATED_FAT_SHARE = Decimal("0.10")
FIBER_G_PER_1000_KCAL = Decimal(14)
MIN_FIBER_G = 25
SALT_MAX_G = 5

_HUNDRED = Decimal(100)
_PERCENT_STEP = Decimal("0.1")
_CENT = Decimal("0.01")


def compute_targets(profile: BiometricProfile, today: date) -> Targets:
    """Compute BMR, TDEE, the goal-adjusted kcal target and macro split.

    A manual ``daily_calories`` override wins over every other field. Without
    one, sex, date of birth, height and current weight are required.
    """
    missing = missing_biometrics(profile)
    bmr: Decimal | None = None
    tdee: int | None = None
    if not missing:
        bmr = basal_metabolic_rate(
            sex=profile.sex,
            weight_kg=profile.current_weight_kg,
            height_cm=profile.height_cm,
            age_years=age_in_years(profile.date_of_birth, today),
        )
        tdee = round_half_up(bmr * activity_factor(profile.activity_level))

    adjustment = Decimal(0)
    if profile.daily_calories is not None:
        strategy = TargetStrategy.MANUAL
        target_kcal = max(MANUAL_FLOOR_KCAL, round_half_up(profile.daily_calories))
    else:
        if missing or tdee is None:
            raise IncompleteProfile(missing)
        goal_adjustment = weight_goal_adjustment(profile, today)
        if goal_adjustment is None:
            strategy = TargetStrategy.MAINTENANCE
            target_kcal = tdee
        else:
            strategy = TargetStrategy.GOAL
            adjustment = goal_adjustment
            target_kcal = max(MIN_TARGET_KCAL, round_to_ten(tdee + adjustment))

    split = macro_split(profile, target_kcal)
    return Targets(
        bmr=bmr,
        tdee=tdee,
        target_kcal=target_kcal,
        adjustment=adjustment.quantize(_CENT, rounding=ROUND_HALF_UP),
        strategy=strategy,
        macro_percent=split,
        macro_grams=macro_grams(split, target_kcal),
        limits=nutrient_limits(target_kcal),
    )


def missing_biometrics(profile: BiometricProfile) -> list[str]:
    """Return the names of BMR fields the profile lacks."""
    required = {
        "sex": profile.sex,
        "date_of_birth": profile.date_of_birth,
        "height_cm": profile.height_cm,
        "current_weight_kg": profile.current_weight_kg,
    }
    return [name for name, value in required.items() if value is None]


def basal_metabolic_rate(
    sex: Sex, weight_kg: Decimal, height_cm: Decimal, age_years: int
) -> Decimal:
    """Mifflin-St Jeor BMR in kcal/day."""
    base = (
        Decimal(10) * Decimal(weight_kg)
        + Decimal("6.25") * Decimal(height_cm)
        - Decimal(5) * age_years
    )
    return base + SEX_OFFSETS.get(sex, SEX_OFFSETS[Sex.OTHER])


def activity_factor(level: ActivityLevel | str | None) -> Decimal:
    """Return the TDEE multiplier; unknown levels count as sedentary."""
    if level is None:
        return DEFAULT_ACTIVITY_FACTOR
    try:
        return ACTIVITY_FACTORS[ActivityLevel(level)]
    except ValueError:
        return DEFAULT_ACTIVITY_FACTOR


def age_in_years(date_of_birth: date, today: date) -> int:
    """Whole years elapsed since a date of birth."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def weight_goal_adjustment(profile: BiometricProfile, today: date) -> Decimal | None:
    """Daily kcal adjustment toward the target weight, or None for maintenance."""
    if profile.target_weight_kg is None or profile.current_weight_kg is None:
        return None
    delta_kg = Decimal(profile.target_weight_kg) - Decimal(profile.current_weight_kg)
    if abs(delta_kg) < MAINTENANCE_TOLERANCE_KG:
        return None

    horizon = _horizon_days(profile.target_date, today)
    if horizon is not None:
        adjustment = delta_kg * KCAL_PER_KG / horizon
    elif delta_kg < 0:
        adjustment = DEFAULT_LOSS_ADJUSTMENT
    else:
        adjustment = DEFAULT_GAIN_ADJUSTMENT

    low, high = LOSS_ADJUSTMENT_RANGE if delta_kg < 0 else GAIN_ADJUSTMENT_RANGE
    return _clamp(adjustment, low, high)


def macro_split(profile: BiometricProfile, target_kcal: int) -> MacroSplit:
    """Resolve protein/carb/fat percentages; carb takes the remainder."""
    if profile.protein_percent is not None:
        protein = Decimal(profile.protein_percent)
    else:
        protein = _default_protein_percent(profile.current_weight_kg, target_kcal)
    fat = (
        Decimal(profile.fat_percent)
        if profile.fat_percent is not None
        else DEFAULT_FAT_PERCENT
    )
    if profile.carb_percent is not None:
        carb = Decimal(profile.carb_percent)
    else:
        carb = max(Decimal(0), _HUNDRED - protein - fat)
    return MacroSplit(protein=protein, carb=carb, fat=fat)


def macro_grams(split: MacroSplit, target_kcal: int) -> MacroGrams:
    """Convert percentages of target kcal to grams."""
    kcal = Decimal(target_kcal)
    return MacroGrams(
        protein=round_half_up(kcal * split.protein / _HUNDRED / KCAL_PER_G_PROTEIN),
        carb=round_half_up(kcal * split.carb / _HUNDRED / KCAL_PER_G_CARB),
        fat=round_half_up(kcal * split.fat / _HUNDRED / KCAL_PER_G_FAT),
    )


def nutrient_limits(target_kcal: int) -> NutrientLimits:
    """Sugar, saturated fat and salt ceilings plus the fiber floor."""
    kcal = Decimal(target_kcal)
    fiber = round_half_up(kcal * FIBER_G_PER_1000_KCAL / Decimal(1000))
    return NutrientLimits(
        sugar_max_g=round_half_up(kcal * SUGAR_SHARE / KCAL_PER_G_CARB),
        saturated_fat_max_g=round_half_up(kcal * SATURATED_FAT_SHARE / KCAL_PER_G_FAT),
        fiber_min_g=max(MIN_FIBER_G, fiber),
        salt_max_g=SALT_MAX_G,
    )


def round_half_up(value: Decimal | int | float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP))


def round_to_ten(value: Decimal) -> int:
    """Round to the nearest multiple of 10 kcal."""
    return round_half_up(Decimal(value) / 10) * 10


def _default_protein_percent(weight_kg: Decimal | None, target_kcal: int) -> Decimal:
    low, high = PROTEIN_PERCENT_RANGE
    if weight_kg is None or target_kcal <= 0:
        return low
    protein_kcal = Decimal(weight_kg) * PROTEIN_G_PER_KG * KCAL_PER_G_PROTEIN
    percent = protein_kcal / Decimal(target_kcal) * _HUNDRED
    return _clamp(percent, low, high).quantize(_PERCENT_STEP, rounding=ROUND_HALF_UP)


def _horizon_days(target_date: date | None, today: date) -> int | None:
    if target_date is None:
        return None
    days = (target_date - today).days
    if MIN_HORIZON_DAYS <= days <= MAX_HORIZON_DAYS:
        return days
    return None


def _clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(high, value))
