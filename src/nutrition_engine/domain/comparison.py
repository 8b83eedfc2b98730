"""Domain models for multi-item food comparison."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, Field, field_validator

from nutrition_engine.domain.grading import FoodHealthProfile, HealthGrade, WellnessFocus
from nutrition_engine.domain.nutrients import NutrientId

MAX_SURPRISES = 3


class InputMethod(StrEnum):
    """How a slot's food was supplied."""

    PHOTO = "photo"
    TEXT = "text"
    MANUAL = "manual"
    LOOKUP = "lookup"


class SlotStatus(StrEnum):
    """Lifecycle of a comparison slot."""

    EMPTY = "empty"
    PENDING = "pending"
    ANALYZING = "analyzing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class ExtractionInput:
    """Food input handed to the extraction collaborator."""

    method: InputMethod
    image_bytes: bytes | None = None
    text: str | None = None
    name: str | None = None
    amounts: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    grams: float | None = None

    @classmethod
    def photo(cls, image_bytes: bytes) -> "ExtractionInput":
        return cls(method=InputMethod.PHOTO, image_bytes=image_bytes)

    @classmethod
    def from_text(cls, text: str) -> "ExtractionInput":
        return cls(method=InputMethod.TEXT, text=text)

    @classmethod
    def manual(cls, name: str, amounts: Mapping[str, float]) -> "ExtractionInput":
        return cls(
            method=InputMethod.MANUAL, name=name, amounts=MappingProxyType(dict(amounts))
        )

    @classmethod
    def lookup(cls, query: str, grams: float | None = None) -> "ExtractionInput":
        return cls(method=InputMethod.LOOKUP, text=query, grams=grams)


@dataclass
class ComparisonSlot:
    """One food position in a comparison session."""

    id: str
    status: SlotStatus = SlotStatus.EMPTY
    input: ExtractionInput | None = None
    profile: FoodHealthProfile | None = None
    error: str | None = None

    def clear(self) -> None:
        self.status = SlotStatus.EMPTY
        self.input = None
        self.profile = None
        self.error = None


@dataclass(frozen=True)
class Ranking:
    """Position of one ready slot in the comparison."""

    slot_id: str
    name: str
    rank: int
    score: int
    grade: HealthGrade


@dataclass(frozen=True)
class CategoryComparison:
    """Per-nutrient comparison across ready slots."""

    nutrient_id: NutrientId
    label: str
    lower_is_better: bool
    values: Mapping[str, float]
    best_slot_id: str
    worst_slot_id: str


class FocusInsight(BaseModel):
    """Narrative insight for one wellness focus."""

    focus: str
    insight: str


class ComparisonInsight(BaseModel):
    """Cross-item narrative produced by the insight collaborator."""

    verdict: str
    winner_index: int | None = Field(default=None, ge=0)
    contextual_analysis: str
    focus_insights: list[FocusInsight] = Field(default_factory=list)
    surprises: list[str] = Field(default_factory=list)
    recommendation: str | None = None

    @field_validator("surprises")
    @classmethod
    def _cap_surprises(cls, value: list[str]) -> list[str]:
        return value[:MAX_SURPRISES]


@dataclass(frozen=True)
class ComparisonResult:
    """Ranked comparison of at least two ready items."""

    focus: WellnessFocus
    profiles: Mapping[str, FoodHealthProfile]
    rankings: tuple[Ranking, ...]
    category_comparisons: tuple[CategoryComparison, ...]
    insight: ComparisonInsight | None = None

    @property
    def winner(self) -> Ranking:
        return self.rankings[0]
