"""Food health grading with a remote grader and an algorithmic fallback."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from nutrition_engine.domain.grading import (
    GRADE_SCORES,
    ConditionImpact,
    FocusGrade,
    FocusImpact,
    FoodAlternative,
    FoodHealthProfile,
    GradingSource,
    HealthGrade,
    NutrientScore,
    RemoteGradingResult,
    WellnessFocus,
)
from nutrition_engine.domain.nutrients import NutrientId, NutrientProfile
from nutrition_engine.domain.targets import PersonalizedTargets

_logger = logging.getLogger(__name__)

BASELINE_SCORE = 50
FOCUS_BASELINE_SCORE = 60
SATURATED_FAT_SHARE = 0.3
EMPTY_CALORIE_PENALTY = 5
GRILLED_CALORIE_THRESHOLD = 500

# (threshold, points) pairs, checked in order with a strict ">" comparison.
PROTEIN_BONUS = ((5, 20), (3, 15), (2, 10), (1, 5))
FIBER_BONUS = ((3, 15), (2, 10), (1, 5))
SUGAR_PENALTY = ((10, 20), (5, 15), (3, 10), (1, 5))
SODIUM_PENALTY = ((500, 15), (300, 10), (150, 5))
SATURATED_FAT_PENALTY = ((5, 10), (3, 5))

GRADE_BRACKETS = (
    (75, HealthGrade.A),
    (60, HealthGrade.B),
    (45, HealthGrade.C),
    (30, HealthGrade.D),
)
FOCUS_GRADE_BRACKETS = (
    (80, HealthGrade.A),
    (65, HealthGrade.B),
    (50, HealthGrade.C),
    (35, HealthGrade.D),
)
GRADE_REASONS: Mapping[HealthGrade, str] = {
    HealthGrade.A: "Excellent choice - nutrient-dense with little to limit",
    HealthGrade.B: "Good option with solid nutritional value",
    HealthGrade.C: "Average nutritional value - balance with other foods",
    HealthGrade.D: "Below average - limit portions and pair with whole foods",
    HealthGrade.F: "Poor nutritional value - consume sparingly",
}
REMOTE_DEFAULT_REASON = "AI-graded for your wellness focus"


@dataclass(frozen=True)
class FocusWeights:
    """Per-nutrient weights for one wellness focus."""

    protein: float
    fiber: float
    potassium: float
    calcium: float
    iron: float
    magnesium: float
    omega3: float
    vitamin_d: float
    saturated_fat: float
    trans_fat: float
    sugar: float
    sodium: float
    cholesterol: float
    calorie_density_penalty: float


FOCUS_WEIGHTS: Mapping[WellnessFocus, FocusWeights] = {
    WellnessFocus.MUSCLE_BUILDING: FocusWeights(
        4.0, 0.5, 0.5, 0.8, 1.2, 1.0, 0.5, 1.0, -0.5, -3.0, -0.5, -0.3, -0.3, 0
    ),
    WellnessFocus.HEART_HEALTH: FocusWeights(
        1.0, 3.0, 2.5, 0.5, 0.5, 1.5, 3.0, 0.5, -4.0, -5.0, -1.5, -3.0, -2.5, 1.0
    ),
    WellnessFocus.ENERGY_ENDURANCE: FocusWeights(
        1.5, 1.0, 1.5, 0.5, 2.0, 2.0, 0.5, 0.5, -1.0, -3.0, -1.0, -0.8, -0.5, 0.3
    ),
    WellnessFocus.WEIGHT_MANAGEMENT: FocusWeights(
        2.5, 3.0, 0.5, 0.5, 0.5, 0.5, 0.5, 0.5, -2.0, -3.0, -3.0, -1.5, -1.0, 2.0
    ),
    WellnessFocus.BRAIN_FOCUS: FocusWeights(
        1.5, 1.0, 1.0, 0.5, 1.5, 2.0, 4.0, 1.5, -2.0, -4.0, -2.5, -1.0, -1.0, 0.5
    ),
    WellnessFocus.GUT_HEALTH: FocusWeights(
        1.0, 5.0, 0.5, 0.5, 0.5, 1.0, 1.0, 0.5, -1.5, -3.0, -2.0, -1.0, -0.5, 0.3
    ),
    WellnessFocus.BLOOD_SUGAR_BALANCE: FocusWeights(
        2.0, 4.0, 0.5, 0.5, 0.5, 1.5, 1.0, 0.5, -1.5, -3.0, -5.0, -1.0, -1.0, 1.0
    ),
    WellnessFocus.BONE_JOINT_SUPPORT: FocusWeights(
        1.5, 0.5, 1.0, 4.0, 0.5, 2.0, 2.0, 3.0, -1.0, -2.0, -1.5, -1.5, -0.5, 0.5
    ),
    WellnessFocus.ANTI_INFLAMMATORY: FocusWeights(
        1.0, 2.0, 1.0, 0.5, 0.5, 2.0, 5.0, 1.5, -3.0, -5.0, -3.0, -2.0, -1.5, 0.5
    ),
    WellnessFocus.BALANCED: FocusWeights(
        1.5, 2.0, 1.0, 1.0, 1.0, 1.0, 1.5, 1.0, -2.0, -4.0, -2.0, -1.5, -1.0, 0.8
    ),
}


class RemoteGrader(Protocol):
    """Interface for the remote grading collaborator."""

    async def grade_remote(
        self, profile: NutrientProfile, targets: PersonalizedTargets | None = None
    ) -> RemoteGradingResult:
        """Return letter grades for a profile."""


@dataclass(frozen=True)
class RemoteOutcome:
    """Result of a remote grading attempt: data on success, error on failure."""

    result: RemoteGradingResult | None = None
    error: Exception | None = None

    @classmethod
    def succeeded(cls, result: RemoteGradingResult) -> "RemoteOutcome":
        return cls(result=result)

    @classmethod
    def failed(cls, error: Exception) -> "RemoteOutcome":
        return cls(error=error)

    @classmethod
    def skipped(cls) -> "RemoteOutcome":
        return cls()

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class AlgorithmicGrade:
    """Headline grade computed by the deterministic formula."""

    grade: HealthGrade
    score: int
    reason: str


@dataclass
class GradingService:
    """Grades nutrient profiles, preferring the remote grader when present."""

    remote_grader: RemoteGrader | None = None

    async def grade(
        self,
        profile: NutrientProfile,
        active_focus: WellnessFocus = WellnessFocus.BALANCED,
        targets: PersonalizedTargets | None = None,
    ) -> FoodHealthProfile:
        """Build a full health profile for a nutrient profile."""
        outcome = await self.try_remote(profile, targets)
        if outcome.ok:
            return build_remote_profile(profile, active_focus, outcome.result)
        return build_algorithmic_profile(profile, active_focus)

    async def try_remote(
        self, profile: NutrientProfile, targets: PersonalizedTargets | None = None
    ) -> RemoteOutcome:
        """Attempt remote grading and capture the outcome without raising."""
        if self.remote_grader is None:
            return RemoteOutcome.skipped()
        try:
            result = await self.remote_grader.grade_remote(profile, targets)
        except Exception as exc:
            _logger.warning(
                "Remote grading failed for %s, using algorithmic grade: %s",
                profile.name,
                exc,
            )
            return RemoteOutcome.failed(exc)
        return RemoteOutcome.succeeded(result)


def build_remote_profile(
    profile: NutrientProfile,
    active_focus: WellnessFocus,
    remote: RemoteGradingResult,
) -> FoodHealthProfile:
    """Build a health profile whose headline grades come from the remote result."""
    focus_grades: dict[WellnessFocus, HealthGrade] = {}
    for focus in WellnessFocus:
        detail = remote.focus_grades.get(focus)
        focus_grades[focus] = detail.grade if detail is not None else HealthGrade.C
    focus_scores = {focus: GRADE_SCORES[grade] for focus, grade in focus_grades.items()}
    reason_parts = [*remote.concerns[:2], *remote.strengths[:2]]
    reason = "; ".join(reason_parts) if reason_parts else REMOTE_DEFAULT_REASON
    return _assemble(
        profile,
        active_focus,
        grade=remote.overall_grade,
        reason=reason,
        score=GRADE_SCORES[remote.overall_grade],
        focus_scores=focus_scores,
        focus_grades=focus_grades,
        source=GradingSource.REMOTE,
        remote=remote,
        focus_details=remote.focus_grades,
    )


def build_algorithmic_profile(
    profile: NutrientProfile, active_focus: WellnessFocus
) -> FoodHealthProfile:
    """Build a health profile using only the deterministic formulas."""
    headline = algorithmic_grade(profile)
    focus_scores = calculate_focus_scores(profile)
    focus_grades = {
        focus: score_to_grade(score, FOCUS_GRADE_BRACKETS)
        for focus, score in focus_scores.items()
    }
    return _assemble(
        profile,
        active_focus,
        grade=headline.grade,
        reason=headline.reason,
        score=headline.score,
        focus_scores=focus_scores,
        focus_grades=focus_grades,
        source=GradingSource.ALGORITHMIC,
        remote=None,
    )


def _assemble(  # noqa: PLR0913
    profile: NutrientProfile,
    active_focus: WellnessFocus,
    *,
    grade: HealthGrade,
    reason: str,
    score: int,
    focus_scores: Mapping[WellnessFocus, int],
    focus_grades: Mapping[WellnessFocus, HealthGrade],
    source: GradingSource,
    remote: RemoteGradingResult | None,
    focus_details: Mapping[WellnessFocus, FocusGrade] | None = None,
) -> FoodHealthProfile:
    nutrient_scores = tuple(calculate_nutrient_scores(profile))
    focus_impacts = tuple(calculate_focus_impacts(profile, [active_focus]))
    alternatives = tuple(generate_alternatives(profile, grade))
    return FoodHealthProfile(
        nutrients=profile,
        active_focus=active_focus,
        overall_grade=grade,
        grade_reason=reason,
        overall_score=score,
        focus_scores=dict(focus_scores),
        focus_grades=dict(focus_grades),
        grading_source=source,
        focus_details=dict(focus_details or {}),
        nutrient_scores=nutrient_scores,
        focus_impacts=focus_impacts,
        condition_impacts=tuple(calculate_condition_impacts(profile)),
        alternatives=alternatives,
        recommendation=generate_recommendation(
            grade, nutrient_scores, focus_impacts, alternatives
        ),
        remote_grading=remote,
    )


def _density(profile: NutrientProfile) -> float:
    return max(profile.calories / 100, 1)


def estimated_saturated_fat(profile: NutrientProfile) -> float:
    """Reported saturated fat, else 30% of total fat."""
    known = profile.get(NutrientId.SATURATED_FAT)
    if known is not None:
        return known
    return profile.amount(NutrientId.FAT) * SATURATED_FAT_SHARE


def _tier(value: float, tiers: Sequence[tuple[float, int]]) -> int:
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def score_to_grade(
    score: float, brackets: Sequence[tuple[float, HealthGrade]] = GRADE_BRACKETS
) -> HealthGrade:
    """Map a 0-100 score to a letter grade."""
    for minimum, grade in brackets:
        if score >= minimum:
            return grade
    return HealthGrade.F


def algorithmic_grade(profile: NutrientProfile) -> AlgorithmicGrade:
    """Grade a profile with the density-based formula.

    Densities are per 100 kcal, with the denominator floored at 1 so small
    portions are not inflated.
    """
    density = _density(profile)
    protein_bonus = _tier(profile.amount(NutrientId.PROTEIN) / density, PROTEIN_BONUS)
    fiber_bonus = _tier(profile.amount(NutrientId.FIBER) / density, FIBER_BONUS)
    sugar_penalty = _tier(profile.amount(NutrientId.SUGAR) / density, SUGAR_PENALTY)
    sodium_penalty = _tier(profile.amount(NutrientId.SODIUM) / density, SODIUM_PENALTY)
    saturated_fat_penalty = _tier(
        estimated_saturated_fat(profile) / density, SATURATED_FAT_PENALTY
    )

    score = BASELINE_SCORE + protein_bonus + fiber_bonus
    score -= sugar_penalty + sodium_penalty + saturated_fat_penalty
    # Top-tier sugar with nothing to offset it is empty calories.
    if sugar_penalty == SUGAR_PENALTY[0][1] and not protein_bonus and not fiber_bonus:
        score -= EMPTY_CALORIE_PENALTY
    score = max(0, min(100, score))
    grade = score_to_grade(score)
    return AlgorithmicGrade(grade=grade, score=score, reason=GRADE_REASONS[grade])


def calculate_focus_score(profile: NutrientProfile, focus: WellnessFocus) -> int:
    """Score a profile for one wellness focus on a 0-100 scale."""
    weights = FOCUS_WEIGHTS[focus]
    per_100 = max(profile.calories, 100) / 100
    saturated_fat = estimated_saturated_fat(profile)
    trans_fat = profile.amount(NutrientId.TRANS_FAT)
    omega3 = profile.get(NutrientId.OMEGA3)
    if omega3 is None:
        omega3 = profile.amount(NutrientId.FAT) * 0.02

    score = float(FOCUS_BASELINE_SCORE)
    score += min(12, profile.amount(NutrientId.PROTEIN) / per_100 * weights.protein * 0.8)
    score += min(10, profile.amount(NutrientId.FIBER) / per_100 * weights.fiber * 0.8)
    score += min(6, profile.amount(NutrientId.POTASSIUM) / per_100 / 100 * weights.potassium)
    score += min(5, profile.amount(NutrientId.CALCIUM) / per_100 / 50 * weights.calcium)
    score += min(4, profile.amount(NutrientId.IRON) / per_100 * weights.iron)
    score += min(4, profile.amount(NutrientId.MAGNESIUM) / per_100 / 20 * weights.magnesium)
    score += min(6, omega3 / per_100 * weights.omega3)
    score += min(4, profile.amount(NutrientId.VITAMIN_D) / per_100 / 2 * weights.vitamin_d)

    score += max(-15, saturated_fat / per_100 * weights.saturated_fat * 0.6)
    score += max(-12, trans_fat * weights.trans_fat)
    score += max(-12, profile.amount(NutrientId.SUGAR) / per_100 * weights.sugar * 0.6)
    score += max(-10, profile.amount(NutrientId.SODIUM) / per_100 / 100 * weights.sodium * 0.5)
    score += max(-6, profile.amount(NutrientId.CHOLESTEROL) / per_100 / 50 * weights.cholesterol)

    score -= processing_penalty(profile)

    calorie_density = profile.calories / 100
    if calorie_density > 3 and weights.calorie_density_penalty > 0:
        score -= min(8, (calorie_density - 3) * weights.calorie_density_penalty * 2)

    return max(0, min(100, round(score)))


def calculate_focus_scores(profile: NutrientProfile) -> dict[WellnessFocus, int]:
    """Score a profile for every wellness focus in one pass."""
    return {focus: calculate_focus_score(profile, focus) for focus in WellnessFocus}


def processing_penalty(profile: NutrientProfile) -> int:
    """Penalty for nutrient combinations typical of processed foods."""
    per_100 = max(profile.calories, 100) / 100
    sodium = profile.amount(NutrientId.SODIUM) / per_100
    saturated_fat = estimated_saturated_fat(profile) / per_100
    sugar = profile.amount(NutrientId.SUGAR) / per_100
    trans_fat = profile.amount(NutrientId.TRANS_FAT)

    penalty = 0
    if sodium > 250 and saturated_fat > 3:
        penalty += 12
    elif sodium > 200 and saturated_fat > 2:
        penalty += 6
    if trans_fat > 0.5:
        penalty += 15
    elif trans_fat > 0.1:
        penalty += 8
    if sugar > 8 and saturated_fat > 2:
        penalty += 10
    return penalty


def score_to_rating(score: int) -> str:
    if score >= 75:
        return "excellent"
    if score >= 55:
        return "good"
    if score >= 40:
        return "moderate"
    return "poor"


def calculate_nutrient_scores(profile: NutrientProfile) -> list[NutrientScore]:
    """Score protein, fiber, sugar, sodium and saturated fat density."""
    density = _density(profile)
    protein = profile.amount(NutrientId.PROTEIN) / density
    fiber = profile.amount(NutrientId.FIBER) / density
    sugar = profile.amount(NutrientId.SUGAR) / density
    sodium = profile.amount(NutrientId.SODIUM) / density
    saturated_fat = estimated_saturated_fat(profile) / density

    return [
        _nutrient_score(
            "Protein",
            min(100, protein * 20),
            _band(protein, 2.5, 1.5, higher_is_better=True),
            ("High protein density", "Moderate protein", "Low protein content"),
        ),
        _nutrient_score(
            "Fiber",
            min(100, fiber * 30),
            _band(fiber, 2, 1, higher_is_better=True),
            ("Excellent fiber source", "Good fiber content", "Low in fiber"),
        ),
        _nutrient_score(
            "Sugar",
            max(0, 100 - sugar * 12),
            _band(sugar, 2, 5, higher_is_better=False),
            ("Low sugar content", "Moderate sugar", "High in sugar"),
        ),
        _nutrient_score(
            "Sodium",
            max(0, 100 - sodium / 4),
            _band(sodium, 150, 300, higher_is_better=False),
            ("Low sodium", "Moderate sodium", "High sodium content"),
        ),
        _nutrient_score(
            "Sat. Fat",
            max(0, 100 - saturated_fat * 15),
            _band(saturated_fat, 1.5, 3, higher_is_better=False),
            ("Low saturated fat", "Moderate saturated fat", "High saturated fat"),
        ),
    ]


def _band(value: float, good: float, fair: float, *, higher_is_better: bool) -> int:
    """Return 0 for positive, 1 for neutral, 2 for negative."""
    if higher_is_better:
        if value > good:
            return 0
        return 1 if value > fair else 2
    if value < good:
        return 0
    return 1 if value < fair else 2


def _nutrient_score(
    name: str, score: float, band: int, reasons: tuple[str, str, str]
) -> NutrientScore:
    impacts = ("positive", "neutral", "negative")
    return NutrientScore(
        name=name, score=round(score, 1), impact=impacts[band], reason=reasons[band]
    )


def calculate_condition_impacts(profile: NutrientProfile) -> list[ConditionImpact]:
    """Heuristic impacts for diabetes, hypertension and heart health."""
    density = _density(profile)
    sugar = profile.amount(NutrientId.SUGAR) / density
    sodium = profile.amount(NutrientId.SODIUM) / density
    saturated_fat = estimated_saturated_fat(profile) / density
    trans_fat = profile.amount(NutrientId.TRANS_FAT)

    impacts = []

    if sugar < 2:
        impacts.append(ConditionImpact("Diabetes", "beneficial", "Low sugar impact"))
    elif sugar < 5:
        impacts.append(
            ConditionImpact(
                "Diabetes", "moderate", "Moderate sugar", "Pair with protein or fiber"
            )
        )
    elif sugar < 10:
        impacts.append(
            ConditionImpact(
                "Diabetes", "caution", "High sugar content", "Keep the portion small"
            )
        )
    else:
        impacts.append(
            ConditionImpact(
                "Diabetes", "avoid", "Very high sugar density", "Choose a low-sugar option"
            )
        )

    if sodium < 150:
        impacts.append(ConditionImpact("Hypertension", "beneficial", "Low sodium"))
    elif sodium < 300:
        impacts.append(
            ConditionImpact(
                "Hypertension", "moderate", "Moderate sodium", "Balance with low-salt meals"
            )
        )
    elif sodium < 500:
        impacts.append(
            ConditionImpact(
                "Hypertension", "caution", "High sodium content", "Limit added salt today"
            )
        )
    else:
        impacts.append(
            ConditionImpact(
                "Hypertension", "avoid", "Very high sodium", "Choose a lower-sodium option"
            )
        )

    if trans_fat > 0:
        impacts.append(
            ConditionImpact(
                "Heart Health", "avoid", "Contains trans fat", "Avoid foods with trans fat"
            )
        )
    elif saturated_fat < 1.5:
        impacts.append(
            ConditionImpact("Heart Health", "beneficial", "Low saturated fat")
        )
    elif saturated_fat < 3:
        impacts.append(
            ConditionImpact(
                "Heart Health",
                "moderate",
                "Moderate saturated fat",
                "Favor unsaturated fats elsewhere",
            )
        )
    elif saturated_fat < 5:
        impacts.append(
            ConditionImpact(
                "Heart Health", "caution", "High saturated fat", "Keep the portion small"
            )
        )
    else:
        impacts.append(
            ConditionImpact(
                "Heart Health",
                "avoid",
                "Very high saturated fat",
                "Choose a leaner option",
            )
        )
    return impacts


def calculate_focus_impacts(  # noqa: PLR0912, PLR0915
    profile: NutrientProfile, focuses: Sequence[WellnessFocus]
) -> list[FocusImpact]:
    """Describe highlights and concerns for each requested focus."""
    per_100 = max(profile.calories, 100) / 100
    protein = profile.amount(NutrientId.PROTEIN) / per_100
    fiber = profile.amount(NutrientId.FIBER) / per_100
    sugar = profile.amount(NutrientId.SUGAR) / per_100
    sodium = profile.amount(NutrientId.SODIUM) / per_100
    carbs = profile.amount(NutrientId.CARBS) / per_100
    saturated_fat = estimated_saturated_fat(profile) / per_100
    trans_fat = profile.amount(NutrientId.TRANS_FAT)
    omega3 = profile.amount(NutrientId.OMEGA3)

    impacts = []
    for focus in focuses:
        highlights: list[str] = []
        concerns: list[str] = []
        match focus:
            case WellnessFocus.MUSCLE_BUILDING:
                if protein > 4:
                    highlights.append("Excellent protein density")
                elif protein > 2:
                    highlights.append("Good protein content")
                if protein < 1.5:
                    concerns.append("Low protein for muscle building")
            case WellnessFocus.HEART_HEALTH:
                if fiber > 2:
                    highlights.append("Heart-healthy fiber")
                if sodium < 100:
                    highlights.append("Low sodium")
                if saturated_fat > 3:
                    concerns.append("High saturated fat")
                if sodium > 250:
                    concerns.append("High sodium content")
                if trans_fat > 0:
                    concerns.append("Contains trans fat")
            case WellnessFocus.WEIGHT_MANAGEMENT:
                if fiber > 2:
                    highlights.append("High fiber aids satiety")
                if protein > 2:
                    highlights.append("Protein helps fullness")
                if profile.calories > 400:
                    concerns.append("Calorie-dense")
                if sugar > 5:
                    concerns.append("High sugar")
            case WellnessFocus.BLOOD_SUGAR_BALANCE:
                if fiber > 2:
                    highlights.append("Fiber slows glucose absorption")
                if sugar < 2:
                    highlights.append("Low sugar impact")
                if sugar > 6:
                    concerns.append("High sugar content")
                if fiber < 1 and carbs > 10:
                    concerns.append("High carb, low fiber")
            case WellnessFocus.GUT_HEALTH:
                if fiber > 3:
                    highlights.append("Excellent fiber for gut health")
                elif fiber > 1.5:
                    highlights.append("Good fiber content")
                if fiber < 1:
                    concerns.append("Low fiber")
                if sugar > 8:
                    concerns.append("High sugar may affect gut balance")
            case WellnessFocus.BRAIN_FOCUS:
                if omega3 > 0.5:
                    highlights.append("Contains omega-3s for brain health")
                if sugar < 3:
                    highlights.append("Low sugar for stable focus")
                if sugar > 6:
                    concerns.append("Sugar can affect concentration")
            case WellnessFocus.BONE_JOINT_SUPPORT:
                if profile.amount(NutrientId.CALCIUM) > 100:
                    highlights.append("Good calcium content")
                if profile.amount(NutrientId.VITAMIN_D) > 2:
                    highlights.append("Contains vitamin D")
                if sodium > 300:
                    concerns.append("High sodium may affect calcium")
            case WellnessFocus.ANTI_INFLAMMATORY:
                if omega3 > 0.5:
                    highlights.append("Anti-inflammatory omega-3s")
                if fiber > 1.5:
                    highlights.append("Fiber supports anti-inflammatory response")
                if saturated_fat > 3:
                    concerns.append("Saturated fat promotes inflammation")
                if trans_fat > 0:
                    concerns.append("Trans fat is highly inflammatory")
                if sugar > 6:
                    concerns.append("High sugar promotes inflammation")
            case WellnessFocus.ENERGY_ENDURANCE:
                if profile.amount(NutrientId.IRON) > 2:
                    highlights.append("Good iron for energy")
                if profile.amount(NutrientId.MAGNESIUM) > 30:
                    highlights.append("Magnesium supports energy metabolism")
                if protein > 2:
                    highlights.append("Protein for sustained energy")
            case WellnessFocus.BALANCED:
                if protein > 3:
                    highlights.append("High protein")
                if fiber > 2:
                    highlights.append("Good fiber")
                if sugar > 6:
                    concerns.append("High sugar")
                if sodium > 300:
                    concerns.append("High sodium")
                if saturated_fat > 3:
                    concerns.append("High saturated fat")

        score = calculate_focus_score(profile, focus)
        impacts.append(
            FocusImpact(
                focus=focus,
                label=focus.label,
                score=score,
                rating=score_to_rating(score),
                highlights=tuple(highlights[:2]),
                concerns=tuple(concerns[:2]),
            )
        )
    return impacts


def generate_alternatives(
    profile: NutrientProfile, grade: HealthGrade
) -> list[FoodAlternative]:
    """Suggest lighter alternatives. Advisory only, not nutrient-accurate."""
    calories = profile.calories
    alternatives = []
    if calories > GRILLED_CALORIE_THRESHOLD:
        alternatives.append(
            FoodAlternative(
                name="Grilled version",
                calories=round(calories * 0.7),
                grade=HealthGrade.B,
                benefit="Lower calories with similar taste",
                calorie_reduction=round(calories * 0.3),
            )
        )
    if grade in {HealthGrade.D, HealthGrade.F}:
        alternatives.append(
            FoodAlternative(
                name="Salad alternative",
                calories=round(calories * 0.4),
                grade=HealthGrade.A,
                benefit="Much lighter option with added vegetables",
                calorie_reduction=round(calories * 0.6),
            )
        )
    return alternatives


def generate_recommendation(
    grade: HealthGrade,
    nutrient_scores: Sequence[NutrientScore],
    focus_impacts: Sequence[FocusImpact],
    alternatives: Sequence[FoodAlternative],
) -> str:
    """Write a one-line recommendation for a graded food."""
    concerning = [
        impact for impact in focus_impacts if impact.rating in {"poor", "moderate"}
    ]
    positive = [score for score in nutrient_scores if score.impact == "positive"]
    negative = [score for score in nutrient_scores if score.impact == "negative"]

    if grade in {HealthGrade.A, HealthGrade.B}:
        if positive:
            reasons = " and ".join(score.reason.lower() for score in positive[:2])
            if concerning and concerning[0].concerns:
                tail = f"Just note: {concerning[0].concerns[0].lower()}."
            else:
                tail = "Enjoy as part of a balanced diet."
            return f"Great choice! This food is {reasons}. {tail}"
        return "This is a nutritious choice. Enjoy as part of your balanced diet."

    if concerning and concerning[0].concerns:
        tail = (
            "Check out healthier alternatives below."
            if alternatives
            else "Try pairing with vegetables to balance the meal."
        )
        return f"Consider: this food has {concerning[0].concerns[0].lower()}. {tail}"

    if negative:
        reasons = " and ".join(score.reason.lower() for score in negative[:2])
        return (
            f"Tip: this food is {reasons}. "
            "Consider smaller portions or balancing with healthier sides."
        )
    return (
        "This is an average nutritional choice. "
        "Consider pairing with vegetables or lean protein."
    )
