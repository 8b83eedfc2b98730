"""Personalized nutrition target computation."""

import logging
import math
import re
from collections.abc import Iterable, Mapping

from nutrition_engine.domain.nutrients import NutrientId, NutrientNature, validate_amount
from nutrition_engine.domain.targets import (
    ActivityLevel,
    LifeStage,
    MacroPercentages,
    PersonalizedTargets,
    PersonUserContext,
)
from nutrition_engine.errors import NutrientValidationError
from nutrition_engine.reference import get_dri, get_nature, life_stage, life_stage_targets

_logger = logging.getLogger(__name__)

GLASS_OF_WATER_GRAMS = 240

DEFAULT_TARGETS: Mapping[NutrientId, float] = {
    NutrientId.CALORIES: 2000,
    NutrientId.PROTEIN: 50,
    NutrientId.CARBS: 250,
    NutrientId.FAT: 65,
    NutrientId.FIBER: 28,
    NutrientId.SODIUM: 2300,
    NutrientId.WATER: 8 * GLASS_OF_WATER_GRAMS,
    NutrientId.SATURATED_FAT: 20,
    NutrientId.SUGAR: 50,
    NutrientId.CHOLESTEROL: 300,
}

CONDITION_ADJUSTMENTS: Mapping[str, Mapping[NutrientId, float]] = {
    "hypertension": {NutrientId.SODIUM: 1500},
    "diabetes": {
        NutrientId.CARBS: 180,
        NutrientId.SUGAR: 25,
        NutrientId.FIBER: 35,
    },
    "heart_disease": {
        NutrientId.SATURATED_FAT: 13,
        NutrientId.CHOLESTEROL: 200,
        NutrientId.SODIUM: 1500,
        NutrientId.FIBER: 30,
    },
    "obesity": {
        NutrientId.CALORIES: 1500,
        NutrientId.CARBS: 150,
        NutrientId.FIBER: 35,
    },
    "kidney_disease": {NutrientId.PROTEIN: 40, NutrientId.SODIUM: 1500},
    "high_cholesterol": {
        NutrientId.SATURATED_FAT: 13,
        NutrientId.CHOLESTEROL: 200,
        NutrientId.FIBER: 30,
    },
}

GOAL_ADJUSTMENTS: Mapping[str, Mapping[NutrientId, float]] = {
    "weight_loss": {
        NutrientId.CALORIES: 1500,
        NutrientId.CARBS: 150,
        NutrientId.FIBER: 35,
    },
    "muscle_gain": {NutrientId.CALORIES: 2500, NutrientId.PROTEIN: 120},
    "heart_health": {
        NutrientId.SATURATED_FAT: 13,
        NutrientId.FIBER: 30,
        NutrientId.SODIUM: 1500,
    },
    "blood_sugar_control": {
        NutrientId.CARBS: 150,
        NutrientId.SUGAR: 25,
        NutrientId.FIBER: 35,
    },
    "energy_boost": {
        NutrientId.CALORIES: 2200,
        NutrientId.CARBS: 275,
        NutrientId.PROTEIN: 70,
    },
}

ACTIVITY_MULTIPLIERS: Mapping[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

WEIGHT_LOSS_GOAL = "weight_loss"
MUSCLE_GAIN_GOAL = "muscle_gain"
WEIGHT_LOSS_DEFICIT_KCAL = 500
MUSCLE_GAIN_SURPLUS_KCAL = 300
CALORIE_FLOOR_KCAL = 1200

_WHITESPACE = re.compile(r"\s+")


def normalize_key(raw: str) -> str:
    """Normalize a free-text condition or goal to its table key."""
    return _WHITESPACE.sub("_", raw.strip().lower())


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def compute_targets(context: PersonUserContext) -> PersonalizedTargets:
    """Compute personalized targets for a user context.

    Stages run in a fixed order: baseline defaults, life-stage DRIs (when age
    and sex are both known), custom targets, condition adjustments, goal
    adjustments, then the metabolic-rate calorie correction.
    Each stage merges whole override dictionaries, last one wins per nutrient.
    The calorie correction always runs last.
    """
    targets: dict[NutrientId, float] = dict(DEFAULT_TARGETS)
    stage = _resolve_life_stage(context)
    if stage is not None:
        targets.update(life_stage_targets(stage, context.sex))
    targets.update(_parse_custom_targets(context.custom_targets))

    applied_conditions = _apply_adjustments(
        targets, context.health_conditions, CONDITION_ADJUSTMENTS
    )
    goal_keys = [normalize_key(goal) for goal in context.dietary_goals]
    applied_goals = _apply_adjustments(targets, goal_keys, GOAL_ADJUSTMENTS)

    corrected = False
    tdee = total_daily_energy_expenditure(
        context.basal_metabolic_rate, context.activity_level
    )
    if tdee is not None:
        targets[NutrientId.CALORIES] = _goal_calories(tdee, goal_keys)
        corrected = True

    return PersonalizedTargets(
        values=targets,
        applied_conditions=tuple(applied_conditions),
        applied_goals=tuple(applied_goals),
        metabolic_correction=corrected,
        life_stage=stage,
    )


def _resolve_life_stage(context: PersonUserContext) -> LifeStage | None:
    if context.age_years is None or context.sex is None:
        return None
    stage = life_stage(context.age_years)
    if stage is None:
        _logger.warning(
            "No life-stage reference intakes below one year, using adult defaults"
        )
    return stage


def total_daily_energy_expenditure(
    basal_metabolic_rate: float | None, activity_level: ActivityLevel | str | None
) -> int | None:
    """Return TDEE from BMR and activity level, or None if either is missing."""
    if basal_metabolic_rate is None or activity_level is None:
        return None
    try:
        level = ActivityLevel(activity_level)
    except ValueError:
        _logger.warning("Unknown activity level %r, using moderate", activity_level)
        level = ActivityLevel.MODERATE
    return round_half_up(basal_metabolic_rate * ACTIVITY_MULTIPLIERS[level])


def _goal_calories(tdee: int, goal_keys: list[str]) -> int:
    if WEIGHT_LOSS_GOAL in goal_keys:
        return max(CALORIE_FLOOR_KCAL, tdee - WEIGHT_LOSS_DEFICIT_KCAL)
    if MUSCLE_GAIN_GOAL in goal_keys:
        return tdee + MUSCLE_GAIN_SURPLUS_KCAL
    return tdee


def _apply_adjustments(
    targets: dict[NutrientId, float],
    keys: Iterable[str],
    table: Mapping[str, Mapping[NutrientId, float]],
) -> list[str]:
    applied = []
    for raw in keys:
        key = normalize_key(raw)
        adjustment = table.get(key)
        if adjustment is None:
            continue
        targets.update(adjustment)
        applied.append(key)
    return applied


def _parse_custom_targets(
    custom: Mapping[NutrientId | str, object],
) -> dict[NutrientId, float]:
    parsed: dict[NutrientId, float] = {}
    for key, value in custom.items():
        nutrient_id = NutrientId.parse(key)
        if nutrient_id is None:
            raise NutrientValidationError(f"Unknown nutrient target: {key}")
        parsed[nutrient_id] = validate_amount(value, nutrient_id)
    return parsed


def reference_target(
    nutrient_id: NutrientId, targets: PersonalizedTargets | None = None
) -> float | None:
    """Return the figure a nutrient amount is measured against.

    The personalized target wins when present. Otherwise beneficial nutrients
    use the RDA/AI and risk nutrients use the upper limit, falling back to the
    RDA/AI when no limit is defined.
    """
    if targets is not None:
        personalized = targets.get(nutrient_id)
        if personalized is not None:
            return personalized
    dri = get_dri(nutrient_id)
    if dri is None:
        return None
    if get_nature(nutrient_id) == NutrientNature.RISK:
        return dri.upper_limit if dri.upper_limit is not None else dri.rda_or_ai
    return dri.rda_or_ai


def calorie_target(targets: PersonalizedTargets) -> float:
    """Return only the calorie target."""
    return targets.calories


def macro_percentages(targets: PersonalizedTargets) -> MacroPercentages:
    """Return the calorie share of protein, carbs and fat targets."""
    protein_kcal = (targets.get(NutrientId.PROTEIN) or 0) * 4
    carbs_kcal = (targets.get(NutrientId.CARBS) or 0) * 4
    fat_kcal = (targets.get(NutrientId.FAT) or 0) * 9
    total = protein_kcal + carbs_kcal + fat_kcal
    if total <= 0:
        return MacroPercentages(protein=0, carbs=0, fat=0)
    return MacroPercentages(
        protein=round_half_up(protein_kcal / total * 100),
        carbs=round_half_up(carbs_kcal / total * 100),
        fat=round_half_up(fat_kcal / total * 100),
    )


def percent_of_target(
    amount: float, nutrient_id: NutrientId, targets: PersonalizedTargets
) -> int:
    """Return the amount as a whole percent of its target, 0 when undefined."""
    reference = reference_target(nutrient_id, targets)
    if not reference:
        return 0
    return round_half_up(amount / reference * 100)
