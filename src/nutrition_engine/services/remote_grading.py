"""Remote (LLM) food grading against a fixed rubric."""

import hashlib
import logging
from dataclasses import dataclass

from nutrition_engine.domain.grading import (
    FocusGrade,
    HealthGrade,
    RemoteGradingResult,
    WellnessFocus,
)
from nutrition_engine.domain.nutrients import NutrientId, NutrientProfile
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.errors import CollaboratorError
from nutrition_engine.services.cache import Cache
from nutrition_engine.services.structured import StructuredClient, StructuredRequest

_logger = logging.getLogger(__name__)

_GRADE_TEXT = {"type": "string"}
_TEXT_LIST = {"type": "array", "items": {"type": "string"}}
_FOCUS_GRADE = {
    "type": "object",
    "properties": {"grade": _GRADE_TEXT, "pros": _TEXT_LIST, "cons": _TEXT_LIST},
    "required": ["grade", "pros", "cons"],
    "additionalProperties": False,
}

GRADING_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "overall_grade": _GRADE_TEXT,
        "focus_grades": {
            "type": "object",
            "properties": {str(focus): _FOCUS_GRADE for focus in WellnessFocus},
            "required": [str(focus) for focus in WellnessFocus],
            "additionalProperties": False,
        },
        "strengths": _TEXT_LIST,
        "concerns": _TEXT_LIST,
    },
    "required": ["overall_grade", "focus_grades", "strengths", "concerns"],
    "additionalProperties": False,
}

GRADING_INSTRUCTIONS = (
    "You are a nutrition grading assistant. Grade foods with the rubric provided. "
    "Apply its thresholds consistently and answer with JSON only."
)

GRADING_RUBRIC = """\
Grade the food A/B/C/D/F for every focus:
- balanced: reward protein >15g and fiber >5g; penalize sat fat >5g, sodium >600mg, sugar >15g.
- muscle_building: protein >25g A, >18g B, >12g C, <8g F; fat and calories matter little.
- heart_health: sat fat >6g D, >10g F; sodium >700mg D, >1000mg F; reward fiber, potassium, omega-3.
- energy_endurance: reward complex carbs, iron >3mg, magnesium; penalize sugar without fiber.
- weight_management: penalize >250 kcal per serving and sugar; reward protein and fiber.
- brain_focus: reward omega-3 and choline; penalize sugar and trans fat.
- gut_health: fiber >8g A, >5g B, <2g poor; penalize ultra-processed foods.
- blood_sugar_balance: sugar >12g D, >20g F; reward fiber and protein.
- bone_joint_support: reward calcium >150mg, vitamin D, magnesium; penalize excess sodium.
- anti_inflammatory: reward omega-3 and fiber; penalize sat fat >5g, sugar >10g, fried foods.
A = excellent, B = good with minor concerns, C = tradeoffs, D = significant concerns, F = avoid.
For each focus list up to two pros and up to two cons specific to that focus.
Give up to two overall strengths and up to two overall concerns."""

_SUMMARY_FIELDS = (
    (NutrientId.CALORIES, "Calories", ""),
    (NutrientId.PROTEIN, "Protein", "g"),
    (NutrientId.CARBS, "Carbs", "g"),
    (NutrientId.FAT, "Fat", "g"),
    (NutrientId.SATURATED_FAT, "Saturated fat", "g"),
    (NutrientId.FIBER, "Fiber", "g"),
    (NutrientId.SUGAR, "Sugar", "g"),
    (NutrientId.SODIUM, "Sodium", "mg"),
    (NutrientId.CHOLESTEROL, "Cholesterol", "mg"),
    (NutrientId.POTASSIUM, "Potassium", "mg"),
    (NutrientId.CALCIUM, "Calcium", "mg"),
    (NutrientId.IRON, "Iron", "mg"),
)


@dataclass
class RemoteGradingService:
    """Grades profiles through a structured-output client, caching by profile."""

    client: StructuredClient
    cache: Cache
    cache_ttl_seconds: int = 3600

    async def grade_remote(
        self, profile: NutrientProfile, targets: PersonalizedTargets | None = None
    ) -> RemoteGradingResult:
        cache_key = f"grade:{profile_signature(profile, targets)}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, RemoteGradingResult):
            return cached

        raw = await self.client.generate(
            StructuredRequest(
                schema_name="food_grading",
                schema=GRADING_SCHEMA,
                prompt=build_grading_prompt(profile, targets),
                instructions=GRADING_INSTRUCTIONS,
            )
        )
        result = parse_grading_result(raw)
        self.cache.set(cache_key, result, ttl_seconds=self.cache_ttl_seconds)
        _logger.info("Remote grade for %s: %s", profile.name, result.overall_grade)
        return result


def build_grading_prompt(
    profile: NutrientProfile, targets: PersonalizedTargets | None = None
) -> str:
    lines = [f"Food: {profile.name}"]
    for nutrient_id, label, unit in _SUMMARY_FIELDS:
        amount = profile.get(nutrient_id)
        if amount is not None:
            lines.append(f"{label}: {amount:g}{unit}")
    if targets is not None:
        lines.append(f"Daily calorie target: {targets.calories:g}")
    return "\n".join(lines) + "\n\n" + GRADING_RUBRIC


def parse_grading_result(raw: dict[str, object]) -> RemoteGradingResult:
    """Validate a raw grading payload, reading unknown letters as C."""
    if not isinstance(raw, dict) or "overall_grade" not in raw:
        raise CollaboratorError("Remote grading returned no overall grade")
    raw_focus = raw.get("focus_grades") or {}
    focus_grades: dict[WellnessFocus, FocusGrade] = {}
    if isinstance(raw_focus, dict):
        for key, entry in raw_focus.items():
            try:
                focus = WellnessFocus.parse(str(key))
            except ValueError:
                continue
            focus_grades[focus] = parse_focus_grade(entry)
    return RemoteGradingResult(
        overall_grade=HealthGrade.parse(raw["overall_grade"]),
        focus_grades=focus_grades,
        strengths=[str(item) for item in raw.get("strengths") or []],
        concerns=[str(item) for item in raw.get("concerns") or []],
    )


def profile_signature(
    profile: NutrientProfile, targets: PersonalizedTargets | None = None
) -> str:
    """Stable digest of a profile's name, amounts and calorie target."""
    parts = [profile.name.strip().lower()]
    parts.extend(
        f"{key}={value:.1f}" for key, value in sorted(profile.to_dict().items())
    )
    if targets is not None:
        parts.append(f"target={targets.calories:.0f}")
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()[:32]


def parse_focus_grade(entry: object) -> FocusGrade:
    """Read a per-focus entry; a bare letter is accepted with no pros or cons."""
    if not isinstance(entry, dict):
        return FocusGrade(grade=HealthGrade.parse(entry))
    return FocusGrade(
        grade=HealthGrade.parse(entry.get("grade")),
        pros=[str(item) for item in entry.get("pros") or []],
        cons=[str(item) for item in entry.get("cons") or []],
    )
