"""Nutrient identifiers and nutrient profile models."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from nutrition_engine.errors import NutrientValidationError

COMBINED_NAME_LIMIT = 40


class NutrientId(StrEnum):
    """Stable nutrient keys shared by extraction, targets and grading."""

    CALORIES = "calories"
    PROTEIN = "protein"
    CARBS = "carbs"
    FAT = "fat"
    FIBER = "fiber"
    SUGAR = "sugar"
    ADDED_SUGAR = "addedSugar"
    SATURATED_FAT = "saturatedFat"
    TRANS_FAT = "transFat"
    MONOUNSATURATED_FAT = "monounsaturatedFat"
    POLYUNSATURATED_FAT = "polyunsaturatedFat"
    CHOLESTEROL = "cholesterol"
    OMEGA3 = "omega3"
    SODIUM = "sodium"
    POTASSIUM = "potassium"
    CALCIUM = "calcium"
    IRON = "iron"
    MAGNESIUM = "magnesium"
    ZINC = "zinc"
    PHOSPHORUS = "phosphorus"
    SELENIUM = "selenium"
    COPPER = "copper"
    MANGANESE = "manganese"
    VITAMIN_A = "vitaminA"
    VITAMIN_D = "vitaminD"
    VITAMIN_E = "vitaminE"
    VITAMIN_K = "vitaminK"
    VITAMIN_C = "vitaminC"
    THIAMIN = "thiamin"
    RIBOFLAVIN = "riboflavin"
    NIACIN = "niacin"
    VITAMIN_B6 = "vitaminB6"
    FOLATE = "folate"
    VITAMIN_B12 = "vitaminB12"
    CHOLINE = "choline"
    CAFFEINE = "caffeine"
    ALCOHOL = "alcohol"
    WATER = "water"

    @classmethod
    def parse(cls, raw: "str | NutrientId") -> "NutrientId | None":
        """Return the nutrient for a wire key, or None when unknown."""
        if isinstance(raw, NutrientId):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return None


class NutrientNature(StrEnum):
    """Whether more of a nutrient is better, worse, or context-dependent."""

    BENEFICIAL = "beneficial"
    RISK = "risk"
    NEUTRAL = "neutral"


class ServingKind(StrEnum):
    """Serving context of a nutrient profile."""

    SINGLE = "single"
    COMBINED = "combined"


@dataclass(frozen=True)
class DRIDefinition:
    """Reference intake values for one nutrient."""

    nutrient_id: NutrientId
    unit: str
    rda_or_ai: float | None = None
    upper_limit: float | None = None
    amdr_range: tuple[float, float] | None = None
    reference_type: str = "RDA"


def validate_amount(value: object, nutrient_id: str) -> float:
    """Return a float amount or raise when it is negative or not numeric."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise NutrientValidationError(
            f"Amount for {nutrient_id} must be numeric, got {value!r}"
        )
    amount = float(value)
    if math.isnan(amount) or math.isinf(amount):
        raise NutrientValidationError(f"Amount for {nutrient_id} must be finite")
    if amount < 0:
        raise NutrientValidationError(
            f"Amount for {nutrient_id} must be non-negative, got {amount}"
        )
    return amount


@dataclass(frozen=True)
class NutrientProfile:
    """Nutrient amounts for a food item or a combination of items."""

    name: str
    amounts: Mapping[NutrientId, float]
    serving: ServingKind = ServingKind.SINGLE
    item_names: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        cleaned: dict[NutrientId, float] = {}
        for raw_key, value in self.amounts.items():
            nutrient_id = NutrientId.parse(raw_key)
            if nutrient_id is None:
                raise NutrientValidationError(f"Unknown nutrient: {raw_key}")
            cleaned[nutrient_id] = validate_amount(value, nutrient_id)
        object.__setattr__(self, "amounts", MappingProxyType(cleaned))
        if not self.item_names:
            object.__setattr__(self, "item_names", (self.name,))

    @classmethod
    def from_mapping(
        cls, name: str, values: Mapping[str, object], *, strict: bool = False
    ) -> "NutrientProfile":
        """Build a profile from wire keys, skipping unknown and null entries."""
        amounts: dict[NutrientId, float] = {}
        for key, value in values.items():
            if value is None:
                continue
            nutrient_id = NutrientId.parse(key)
            if nutrient_id is None:
                if strict:
                    raise NutrientValidationError(f"Unknown nutrient: {key}")
                continue
            amounts[nutrient_id] = validate_amount(value, key)
        return cls(name=name, amounts=amounts)

    @classmethod
    def combine(cls, profiles: Iterable["NutrientProfile"]) -> "NutrientProfile":
        """Sum several profiles into one combined virtual item."""
        items = list(profiles)
        if not items:
            raise NutrientValidationError("Cannot combine an empty list of profiles")
        if len(items) == 1:
            return items[0]
        totals: dict[NutrientId, float] = {}
        names: list[str] = []
        for profile in items:
            names.extend(profile.item_names)
            for nutrient_id, amount in profile.amounts.items():
                totals[nutrient_id] = totals.get(nutrient_id, 0.0) + amount
        combined_name = " + ".join(names)
        if len(combined_name) > COMBINED_NAME_LIMIT:
            combined_name = combined_name[: COMBINED_NAME_LIMIT - 3] + "..."
        return cls(
            name=combined_name,
            amounts=totals,
            serving=ServingKind.COMBINED,
            item_names=tuple(names),
        )

    def get(self, nutrient_id: NutrientId) -> float | None:
        """Return the amount if the nutrient was reported."""
        return self.amounts.get(nutrient_id)

    def amount(self, nutrient_id: NutrientId) -> float:
        """Return the amount, treating unreported nutrients as zero."""
        return self.amounts.get(nutrient_id, 0.0)

    @property
    def calories(self) -> float:
        return self.amount(NutrientId.CALORIES)

    def to_dict(self) -> dict[str, float]:
        """Return amounts keyed by wire key."""
        return {str(key): value for key, value in self.amounts.items()}
