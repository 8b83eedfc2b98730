"""Domain models for food health grading."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, Field

from nutrition_engine.domain.nutrients import NutrientProfile


class HealthGrade(StrEnum):
    """Letter grade, A best and F worst."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"

    @property
    def rank(self) -> int:
        """Return 0 for A through 4 for F."""
        return _GRADE_ORDER.index(self)

    def better_than(self, other: "HealthGrade") -> bool:
        return self.rank < other.rank

    @classmethod
    def parse(cls, raw: object, default: "HealthGrade | None" = None) -> "HealthGrade":
        """Parse a letter, falling back to ``default`` (or C) for anything else."""
        if isinstance(raw, str):
            try:
                return cls(raw.strip().upper())
            except ValueError:
                pass
        return default if default is not None else cls.C


_GRADE_ORDER = [HealthGrade.A, HealthGrade.B, HealthGrade.C, HealthGrade.D, HealthGrade.F]

GRADE_SCORES: Mapping[HealthGrade, int] = {
    HealthGrade.A: 90,
    HealthGrade.B: 75,
    HealthGrade.C: 60,
    HealthGrade.D: 40,
    HealthGrade.F: 20,
}


class WellnessFocus(StrEnum):
    """Personalization lens a food is graded under."""

    BALANCED = "balanced"
    MUSCLE_BUILDING = "muscle_building"
    HEART_HEALTH = "heart_health"
    ENERGY_ENDURANCE = "energy_endurance"
    WEIGHT_MANAGEMENT = "weight_management"
    BRAIN_FOCUS = "brain_focus"
    GUT_HEALTH = "gut_health"
    BLOOD_SUGAR_BALANCE = "blood_sugar_balance"
    BONE_JOINT_SUPPORT = "bone_joint_support"
    ANTI_INFLAMMATORY = "anti_inflammatory"

    @property
    def label(self) -> str:
        return FOCUS_LABELS[self]

    @classmethod
    def parse(cls, raw: "str | WellnessFocus") -> "WellnessFocus":
        """Parse a focus id, accepting the short aliases."""
        if isinstance(raw, WellnessFocus):
            return raw
        key = raw.strip().lower()
        return cls(_FOCUS_ALIASES.get(key, key))


_FOCUS_ALIASES = {
    "energy": "energy_endurance",
    "blood_sugar": "blood_sugar_balance",
    "bone_joint": "bone_joint_support",
}

FOCUS_LABELS: Mapping[WellnessFocus, str] = {
    WellnessFocus.BALANCED: "Balanced",
    WellnessFocus.MUSCLE_BUILDING: "Muscle Building",
    WellnessFocus.HEART_HEALTH: "Heart Health",
    WellnessFocus.ENERGY_ENDURANCE: "Energy & Endurance",
    WellnessFocus.WEIGHT_MANAGEMENT: "Weight Management",
    WellnessFocus.BRAIN_FOCUS: "Brain & Focus",
    WellnessFocus.GUT_HEALTH: "Gut Health",
    WellnessFocus.BLOOD_SUGAR_BALANCE: "Blood Sugar Balance",
    WellnessFocus.BONE_JOINT_SUPPORT: "Bone & Joint Support",
    WellnessFocus.ANTI_INFLAMMATORY: "Anti-Inflammatory",
}


class GradingSource(StrEnum):
    """Which path produced the headline grade."""

    REMOTE = "remote"
    ALGORITHMIC = "algorithmic"


class FocusGrade(BaseModel):
    """Remote grade for one focus with its benefits and drawbacks."""

    grade: HealthGrade
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class RemoteGradingResult(BaseModel):
    """Structured result from the remote grading collaborator."""

    overall_grade: HealthGrade
    focus_grades: dict[WellnessFocus, FocusGrade] = Field(default_factory=dict)
    strengths: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class NutrientScore:
    """0-100 score for one nutrient's contribution."""

    name: str
    score: float
    impact: str
    reason: str


@dataclass(frozen=True)
class FocusImpact:
    """How a food fits a wellness focus."""

    focus: WellnessFocus
    label: str
    score: int
    rating: str
    highlights: tuple[str, ...]
    concerns: tuple[str, ...]


@dataclass(frozen=True)
class ConditionImpact:
    """Heuristic impact of a food on a health condition."""

    condition: str
    impact: str
    reason: str
    recommendation: str | None = None


@dataclass(frozen=True)
class FoodAlternative:
    """Advisory lighter alternative to a food."""

    name: str
    calories: int
    grade: HealthGrade
    benefit: str
    calorie_reduction: int


@dataclass(frozen=True)
class FoodHealthProfile:
    """Graded nutrient profile for one analyzed item."""

    nutrients: NutrientProfile
    active_focus: WellnessFocus
    overall_grade: HealthGrade
    grade_reason: str
    overall_score: int
    focus_scores: Mapping[WellnessFocus, int]
    focus_grades: Mapping[WellnessFocus, HealthGrade]
    grading_source: GradingSource
    focus_details: Mapping[WellnessFocus, FocusGrade] = field(default_factory=dict)
    nutrient_scores: tuple[NutrientScore, ...] = ()
    focus_impacts: tuple[FocusImpact, ...] = ()
    condition_impacts: tuple[ConditionImpact, ...] = ()
    alternatives: tuple[FoodAlternative, ...] = ()
    recommendation: str = ""
    remote_grading: RemoteGradingResult | None = field(default=None)

    @property
    def name(self) -> str:
        return self.nutrients.name
