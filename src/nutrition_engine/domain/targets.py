"""Domain models for personalized nutrition targets."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from nutrition_engine.domain.nutrients import NutrientId


class ActivityLevel(StrEnum):
    """Physical activity tiers used for energy expenditure."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class Sex(StrEnum):
    """Biological sex for reference intake purposes."""

    MALE = "male"
    FEMALE = "female"


class LifeStage(StrEnum):
    """DRI life-stage group, from age one upward."""

    CHILDREN_1_3 = "children_1_3"
    CHILDREN_4_8 = "children_4_8"
    CHILDREN_9_13 = "children_9_13"
    ADOLESCENTS_14_18 = "adolescents_14_18"
    ADULTS_19_30 = "adults_19_30"
    ADULTS_31_50 = "adults_31_50"
    ADULTS_51_70 = "adults_51_70"
    ADULTS_70_PLUS = "adults_70_plus"


@dataclass(frozen=True)
class PersonUserContext:
    """Demographic and lifestyle inputs supplied by the caller."""

    age_years: int | None = None
    sex: Sex | None = None
    activity_level: ActivityLevel | None = None
    health_conditions: tuple[str, ...] = ()
    dietary_goals: tuple[str, ...] = ()
    basal_metabolic_rate: float | None = None
    custom_targets: Mapping[NutrientId, float] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class PersonalizedTargets:
    """Per-nutrient daily targets derived from a user context."""

    values: Mapping[NutrientId, float]
    applied_conditions: tuple[str, ...] = ()
    applied_goals: tuple[str, ...] = ()
    metabolic_correction: bool = False
    life_stage: LifeStage | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, nutrient_id: NutrientId) -> float | None:
        """Return the personalized target if the pipeline produced one."""
        return self.values.get(nutrient_id)

    @property
    def calories(self) -> float:
        return self.values[NutrientId.CALORIES]

    def to_dict(self) -> dict[str, float]:
        return {str(key): value for key, value in self.values.items()}


@dataclass(frozen=True)
class MacroPercentages:
    """Share of target calories from each macronutrient, in whole percent."""

    protein: int
    carbs: int
    fat: int
