"""Nutrient classification against personalized targets."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from nutrition_engine.domain.nutrients import (
    NutrientId,
    NutrientNature,
    NutrientProfile,
    validate_amount,
)
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.reference import (
    BENEFICIAL_HIGH_PERCENT,
    BENEFICIAL_MODERATE_PERCENT,
    RISK_HIGH_PERCENT,
    RISK_MODERATE_PERCENT,
    get_nature,
    nutrient_label,
)
from nutrition_engine.services.targets import reference_target


class Classification(StrEnum):
    """Classification of a nutrient amount relative to its target."""

    BENEFICIAL_HIGH = "beneficial_high"
    BENEFICIAL_MODERATE = "beneficial_moderate"
    BENEFICIAL_LOW = "beneficial_low"
    RISK_HIGH = "risk_high"
    RISK_MODERATE = "risk_moderate"
    RISK_LOW = "risk_low"
    NEUTRAL = "neutral"
    NOT_APPLICABLE = "not_applicable"
    INSUFFICIENT_DATA = "insufficient_data"


SEVERITY_RANKS: dict[Classification, int] = {
    Classification.BENEFICIAL_HIGH: 3,
    Classification.RISK_HIGH: 3,
    Classification.BENEFICIAL_MODERATE: 2,
    Classification.RISK_MODERATE: 2,
    Classification.BENEFICIAL_LOW: 1,
    Classification.RISK_LOW: 1,
    Classification.NEUTRAL: 1,
    Classification.NOT_APPLICABLE: 0,
    Classification.INSUFFICIENT_DATA: 0,
}


@dataclass(frozen=True)
class NutrientEvaluation:
    """Classification of one nutrient in a profile."""

    nutrient_id: NutrientId
    label: str
    amount: float
    nature: NutrientNature
    reference: float | None
    percent_of_reference: float | None
    classification: Classification


def classify(
    amount: object,
    nutrient_id: NutrientId | str,
    targets: PersonalizedTargets | None = None,
) -> Classification:
    """Classify an amount as a beneficial, risk or not-applicable tier."""
    value = validate_amount(amount, str(nutrient_id))
    nature = get_nature(nutrient_id)
    parsed = NutrientId.parse(nutrient_id)
    if nature == NutrientNature.NEUTRAL or parsed is None:
        return Classification.NOT_APPLICABLE
    reference = reference_target(parsed, targets)
    if not reference:
        return Classification.NOT_APPLICABLE

    percent = value / reference * 100
    if nature == NutrientNature.BENEFICIAL:
        if percent > BENEFICIAL_HIGH_PERCENT:
            return Classification.BENEFICIAL_HIGH
        if percent >= BENEFICIAL_MODERATE_PERCENT:
            return Classification.BENEFICIAL_MODERATE
        return Classification.BENEFICIAL_LOW
    if percent > RISK_HIGH_PERCENT:
        return Classification.RISK_HIGH
    if percent >= RISK_MODERATE_PERCENT:
        return Classification.RISK_MODERATE
    return Classification.RISK_LOW


def severity_rank(classification: Classification) -> int:
    """Return the sort priority of a classification."""
    return SEVERITY_RANKS.get(classification, 0)


def evaluate(
    profile: NutrientProfile, targets: PersonalizedTargets | None = None
) -> list[NutrientEvaluation]:
    """Classify every nutrient reported in a profile."""
    evaluations = []
    for nutrient_id, amount in profile.amounts.items():
        reference = reference_target(nutrient_id, targets)
        percent = amount / reference * 100 if reference else None
        evaluations.append(
            NutrientEvaluation(
                nutrient_id=nutrient_id,
                label=nutrient_label(nutrient_id),
                amount=amount,
                nature=get_nature(nutrient_id),
                reference=reference,
                percent_of_reference=percent,
                classification=classify(amount, nutrient_id, targets),
            )
        )
    return evaluations


def sort_by_severity(
    evaluations: Iterable[NutrientEvaluation],
) -> list[NutrientEvaluation]:
    """Sort evaluations by severity, highest first, keeping input order on ties."""
    return sorted(
        evaluations, key=lambda item: severity_rank(item.classification), reverse=True
    )


def highlights(
    evaluations: Iterable[NutrientEvaluation],
) -> tuple[list[NutrientEvaluation], list[NutrientEvaluation]]:
    """Split evaluations into notable benefits and concerns."""
    ordered = sort_by_severity(evaluations)
    beneficial = [
        item
        for item in ordered
        if item.classification
        in {Classification.BENEFICIAL_HIGH, Classification.BENEFICIAL_MODERATE}
    ]
    concerns = [
        item
        for item in ordered
        if item.classification
        in {Classification.RISK_HIGH, Classification.RISK_MODERATE}
    ]
    return beneficial, concerns
