"""Request models for the HTTP API."""

from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, Field

from nutrition_engine.domain.targets import ActivityLevel, PersonUserContext, Sex


class UserContextRequest(BaseModel):
    age_years: int | None = Field(default=None, ge=0)
    sex: Sex | None = None
    activity_level: ActivityLevel | None = None
    health_conditions: list[str] = Field(default_factory=list)
    dietary_goals: list[str] = Field(default_factory=list)
    basal_metabolic_rate: float | None = Field(default=None, gt=0)
    custom_targets: dict[str, float] = Field(default_factory=dict)

    def to_context(self) -> PersonUserContext:
        return PersonUserContext(
            age_years=self.age_years,
            sex=self.sex,
            activity_level=self.activity_level,
            health_conditions=tuple(self.health_conditions),
            dietary_goals=tuple(self.dietary_goals),
            basal_metabolic_rate=self.basal_metabolic_rate,
            custom_targets=MappingProxyType(dict(self.custom_targets)),
        )


class ClassifyRequest(BaseModel):
    nutrient_id: str
    amount: float
    context: UserContextRequest | None = None


class GradeRequest(BaseModel):
    name: str = Field(min_length=1)
    nutrients: dict[str, float]
    focus: str = "balanced"
    context: UserContextRequest | None = None


class CompareItem(BaseModel):
    method: Literal["manual", "text", "lookup", "photo"]
    name: str | None = None
    nutrients: dict[str, float] = Field(default_factory=dict)
    text: str | None = None
    grams: float | None = Field(default=None, gt=0)
    image_base64: str | None = None


class CompareRequest(BaseModel):
    items: list[CompareItem] = Field(min_length=2)
    focus: str = "balanced"
    context: UserContextRequest | None = None
