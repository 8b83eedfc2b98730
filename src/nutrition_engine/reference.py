"""Reference nutrient data: DRI values, nutrient natures and thresholds.

Values follow FDA Daily Values (21 CFR 101.9) for the adequacy figure and the
adult NIH/USDA tolerable upper intake levels. Tables are read-only; changing a
value means shipping a new table.
"""

from types import MappingProxyType

from nutrition_engine.domain.nutrients import DRIDefinition, NutrientId, NutrientNature
from nutrition_engine.domain.targets import LifeStage, Sex

BENEFICIAL_HIGH_PERCENT = 20.0
BENEFICIAL_MODERATE_PERCENT = 10.0
RISK_HIGH_PERCENT = 20.0
RISK_MODERATE_PERCENT = 10.0


def _dri(  # noqa: PLR0913
    nutrient_id: NutrientId,
    unit: str,
    rda_or_ai: float | None = None,
    upper_limit: float | None = None,
    amdr_range: tuple[float, float] | None = None,
    reference_type: str = "RDA",
) -> tuple[NutrientId, DRIDefinition]:
    return nutrient_id, DRIDefinition(
        nutrient_id=nutrient_id,
        unit=unit,
        rda_or_ai=rda_or_ai,
        upper_limit=upper_limit,
        amdr_range=amdr_range,
        reference_type=reference_type,
    )


DRI_TABLE: MappingProxyType[NutrientId, DRIDefinition] = MappingProxyType(
    dict(
        [
            _dri(NutrientId.CALORIES, "kcal", 2000),
            _dri(NutrientId.PROTEIN, "g", 50, amdr_range=(10, 35)),
            _dri(NutrientId.CARBS, "g", 275, amdr_range=(45, 65)),
            _dri(NutrientId.FAT, "g", 78, amdr_range=(20, 35)),
            _dri(NutrientId.FIBER, "g", 28, reference_type="AI"),
            _dri(NutrientId.SUGAR, "g", upper_limit=50),
            _dri(NutrientId.ADDED_SUGAR, "g", upper_limit=25),
            _dri(NutrientId.SATURATED_FAT, "g", upper_limit=20),
            _dri(NutrientId.TRANS_FAT, "g", upper_limit=2),
            _dri(NutrientId.CHOLESTEROL, "mg", upper_limit=300),
            _dri(NutrientId.MONOUNSATURATED_FAT, "g"),
            _dri(NutrientId.POLYUNSATURATED_FAT, "g"),
            _dri(NutrientId.OMEGA3, "g", 1.6, reference_type="AI"),
            _dri(NutrientId.SODIUM, "mg", 1500, 2300, reference_type="AI"),
            _dri(NutrientId.POTASSIUM, "mg", 4700, reference_type="AI"),
            _dri(NutrientId.CALCIUM, "mg", 1300, 2500),
            _dri(NutrientId.IRON, "mg", 18, 45),
            _dri(NutrientId.MAGNESIUM, "mg", 420, 350),
            _dri(NutrientId.ZINC, "mg", 11, 40),
            _dri(NutrientId.PHOSPHORUS, "mg", 1250, 4000),
            _dri(NutrientId.SELENIUM, "mcg", 55, 400),
            _dri(NutrientId.COPPER, "mg", 0.9, 10),
            _dri(NutrientId.MANGANESE, "mg", 2.3, 11, reference_type="AI"),
            _dri(NutrientId.VITAMIN_A, "mcg", 900, 3000),
            _dri(NutrientId.VITAMIN_D, "mcg", 20, 100),
            _dri(NutrientId.VITAMIN_E, "mg", 15, 1000),
            _dri(NutrientId.VITAMIN_K, "mcg", 120, reference_type="AI"),
            _dri(NutrientId.VITAMIN_C, "mg", 90, 2000),
            _dri(NutrientId.THIAMIN, "mg", 1.2),
            _dri(NutrientId.RIBOFLAVIN, "mg", 1.3),
            _dri(NutrientId.NIACIN, "mg", 16, 35),
            _dri(NutrientId.VITAMIN_B6, "mg", 1.7, 100),
            _dri(NutrientId.FOLATE, "mcg", 400, 1000),
            _dri(NutrientId.VITAMIN_B12, "mcg", 2.4),
            _dri(NutrientId.CHOLINE, "mg", 550, 3500, reference_type="AI"),
            _dri(NutrientId.CAFFEINE, "mg", upper_limit=400),
            _dri(NutrientId.ALCOHOL, "g"),
            _dri(NutrientId.WATER, "g"),
        ]
    )
)

NUTRIENT_NATURE: MappingProxyType[NutrientId, NutrientNature] = MappingProxyType(
    {
        # More is better.
        NutrientId.PROTEIN: NutrientNature.BENEFICIAL,
        NutrientId.FIBER: NutrientNature.BENEFICIAL,
        NutrientId.OMEGA3: NutrientNature.BENEFICIAL,
        NutrientId.POTASSIUM: NutrientNature.BENEFICIAL,
        NutrientId.CALCIUM: NutrientNature.BENEFICIAL,
        NutrientId.IRON: NutrientNature.BENEFICIAL,
        NutrientId.MAGNESIUM: NutrientNature.BENEFICIAL,
        NutrientId.ZINC: NutrientNature.BENEFICIAL,
        NutrientId.PHOSPHORUS: NutrientNature.BENEFICIAL,
        NutrientId.SELENIUM: NutrientNature.BENEFICIAL,
        NutrientId.COPPER: NutrientNature.BENEFICIAL,
        NutrientId.MANGANESE: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_A: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_D: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_E: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_K: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_C: NutrientNature.BENEFICIAL,
        NutrientId.THIAMIN: NutrientNature.BENEFICIAL,
        NutrientId.RIBOFLAVIN: NutrientNature.BENEFICIAL,
        NutrientId.NIACIN: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_B6: NutrientNature.BENEFICIAL,
        NutrientId.FOLATE: NutrientNature.BENEFICIAL,
        NutrientId.VITAMIN_B12: NutrientNature.BENEFICIAL,
        NutrientId.CHOLINE: NutrientNature.BENEFICIAL,
        # Less is better.
        NutrientId.SODIUM: NutrientNature.RISK,
        NutrientId.SATURATED_FAT: NutrientNature.RISK,
        NutrientId.TRANS_FAT: NutrientNature.RISK,
        NutrientId.CHOLESTEROL: NutrientNature.RISK,
        NutrientId.SUGAR: NutrientNature.RISK,
        NutrientId.ADDED_SUGAR: NutrientNature.RISK,
        # Context-dependent.
        NutrientId.CALORIES: NutrientNature.NEUTRAL,
        NutrientId.CARBS: NutrientNature.NEUTRAL,
        NutrientId.FAT: NutrientNature.NEUTRAL,
        NutrientId.MONOUNSATURATED_FAT: NutrientNature.NEUTRAL,
        NutrientId.POLYUNSATURATED_FAT: NutrientNature.NEUTRAL,
        NutrientId.CAFFEINE: NutrientNature.NEUTRAL,
        NutrientId.ALCOHOL: NutrientNature.NEUTRAL,
        NutrientId.WATER: NutrientNature.NEUTRAL,
    }
)

NUTRIENT_LABELS: MappingProxyType[NutrientId, str] = MappingProxyType(
    {
        NutrientId.CALORIES: "Calories",
        NutrientId.PROTEIN: "Protein",
        NutrientId.CARBS: "Carbohydrates",
        NutrientId.FAT: "Total Fat",
        NutrientId.FIBER: "Fiber",
        NutrientId.SUGAR: "Sugar",
        NutrientId.ADDED_SUGAR: "Added Sugar",
        NutrientId.SATURATED_FAT: "Sat. Fat",
        NutrientId.TRANS_FAT: "Trans Fat",
        NutrientId.CHOLESTEROL: "Cholesterol",
        NutrientId.SODIUM: "Sodium",
        NutrientId.POTASSIUM: "Potassium",
        NutrientId.CALCIUM: "Calcium",
        NutrientId.IRON: "Iron",
        NutrientId.VITAMIN_D: "Vitamin D",
    }
)


# Life-stage DRIs (NASEM) in LifeStage order: 1-3, 4-8, 9-13, 14-18, 19-30,
# 31-50, 51-70, 71+. Each nutrient maps to (male, female) rows; water is total
# water in grams and sodium is the chronic disease risk reduction intake.
_LIFE_STAGE_ROWS: dict[NutrientId, tuple[tuple[float, ...], tuple[float, ...]]] = {
    NutrientId.PROTEIN: (
        (13, 19, 34, 52, 56, 56, 56, 56),
        (13, 19, 34, 46, 46, 46, 46, 46),
    ),
    NutrientId.FIBER: (
        (19, 25, 31, 38, 38, 38, 30, 30),
        (19, 25, 26, 26, 25, 25, 21, 21),
    ),
    NutrientId.WATER: (
        (1300, 1700, 2400, 3300, 3700, 3700, 3700, 3700),
        (1300, 1700, 2100, 2300, 2700, 2700, 2700, 2700),
    ),
    NutrientId.SODIUM: (
        (1200, 1500, 1800, 2300, 2300, 2300, 2300, 2300),
        (1200, 1500, 1800, 2300, 2300, 2300, 2300, 2300),
    ),
    NutrientId.POTASSIUM: (
        (2000, 2300, 2500, 3000, 3400, 3400, 3400, 3400),
        (2000, 2300, 2300, 2300, 2600, 2600, 2600, 2600),
    ),
    NutrientId.CALCIUM: (
        (700, 1000, 1300, 1300, 1000, 1000, 1000, 1200),
        (700, 1000, 1300, 1300, 1000, 1000, 1200, 1200),
    ),
    NutrientId.IRON: (
        (7, 10, 8, 11, 8, 8, 8, 8),
        (7, 10, 8, 15, 18, 18, 8, 8),
    ),
    NutrientId.MAGNESIUM: (
        (80, 130, 240, 410, 400, 420, 420, 420),
        (80, 130, 240, 360, 310, 320, 320, 320),
    ),
    NutrientId.VITAMIN_C: (
        (15, 25, 45, 75, 90, 90, 90, 90),
        (15, 25, 45, 65, 75, 75, 75, 75),
    ),
    NutrientId.VITAMIN_D: (
        (15, 15, 15, 15, 15, 15, 15, 20),
        (15, 15, 15, 15, 15, 15, 15, 20),
    ),
}

LIFE_STAGE_DRI: MappingProxyType[tuple[LifeStage, Sex], MappingProxyType[NutrientId, float]]
LIFE_STAGE_DRI = MappingProxyType(
    {
        (stage, sex): MappingProxyType(
            {
                nutrient_id: float(rows[sex_index][stage_index])
                for nutrient_id, rows in _LIFE_STAGE_ROWS.items()
            }
        )
        for stage_index, stage in enumerate(LifeStage)
        for sex_index, sex in enumerate((Sex.MALE, Sex.FEMALE))
    }
)


def get_dri(nutrient_id: NutrientId | str) -> DRIDefinition | None:
    """Return the DRI definition for a nutrient, if one is defined."""
    parsed = NutrientId.parse(nutrient_id)
    if parsed is None:
        return None
    return DRI_TABLE.get(parsed)


def get_nature(nutrient_id: NutrientId | str) -> NutrientNature:
    """Return the nutrient's nature; unknown nutrients are neutral."""
    parsed = NutrientId.parse(nutrient_id)
    if parsed is None:
        return NutrientNature.NEUTRAL
    return NUTRIENT_NATURE.get(parsed, NutrientNature.NEUTRAL)


def list_defined_nutrients() -> frozenset[NutrientId]:
    """Return every nutrient that has a DRI definition."""
    return frozenset(DRI_TABLE)


def nutrients_by_nature(nature: NutrientNature) -> list[NutrientId]:
    """Return nutrients of the given nature in registry order."""
    return [key for key, value in NUTRIENT_NATURE.items() if value == nature]


def nutrient_label(nutrient_id: NutrientId) -> str:
    """Return a display label for a nutrient."""
    label = NUTRIENT_LABELS.get(nutrient_id)
    if label:
        return label
    value = str(nutrient_id)
    spaced = "".join(f" {char}" if char.isupper() else char for char in value)
    return spaced.strip().title()


def life_stage(age_years: float) -> LifeStage | None:
    """Return the DRI life-stage group for an age, or None below one year."""
    if age_years < 1:
        return None
    if age_years < 4:
        return LifeStage.CHILDREN_1_3
    if age_years < 9:
        return LifeStage.CHILDREN_4_8
    if age_years < 14:
        return LifeStage.CHILDREN_9_13
    if age_years < 19:
        return LifeStage.ADOLESCENTS_14_18
    if age_years <= 30:
        return LifeStage.ADULTS_19_30
    if age_years <= 50:
        return LifeStage.ADULTS_31_50
    if age_years <= 70:
        return LifeStage.ADULTS_51_70
    return LifeStage.ADULTS_70_PLUS


def life_stage_targets(
    stage: LifeStage, sex: Sex | str
) -> MappingProxyType[NutrientId, float]:
    """Return the DRI-backed targets for a life stage and sex."""
    return LIFE_STAGE_DRI[(stage, Sex(sex))]
