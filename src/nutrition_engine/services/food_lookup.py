"""Database lookup of nutrient profiles via USDA FoodData Central."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from nutrition_engine.adapters.fdc_client import FdcClient
from nutrition_engine.domain.nutrients import NutrientId, NutrientProfile
from nutrition_engine.errors import ExtractionError
from nutrition_engine.services.cache import Cache
from nutrition_engine.services.structured import call_with_retry

_logger = logging.getLogger(__name__)

FDC_NUTRIENT_IDS: Mapping[int, NutrientId] = {
    1008: NutrientId.CALORIES,
    1003: NutrientId.PROTEIN,
    1004: NutrientId.FAT,
    1005: NutrientId.CARBS,
    1079: NutrientId.FIBER,
    2000: NutrientId.SUGAR,
    1235: NutrientId.ADDED_SUGAR,
    1258: NutrientId.SATURATED_FAT,
    1257: NutrientId.TRANS_FAT,
    1292: NutrientId.MONOUNSATURATED_FAT,
    1293: NutrientId.POLYUNSATURATED_FAT,
    1253: NutrientId.CHOLESTEROL,
    1093: NutrientId.SODIUM,
    1092: NutrientId.POTASSIUM,
    1087: NutrientId.CALCIUM,
    1089: NutrientId.IRON,
    1090: NutrientId.MAGNESIUM,
    1095: NutrientId.ZINC,
    1091: NutrientId.PHOSPHORUS,
    1103: NutrientId.SELENIUM,
    1098: NutrientId.COPPER,
    1101: NutrientId.MANGANESE,
    1106: NutrientId.VITAMIN_A,
    1114: NutrientId.VITAMIN_D,
    1109: NutrientId.VITAMIN_E,
    1185: NutrientId.VITAMIN_K,
    1162: NutrientId.VITAMIN_C,
    1165: NutrientId.THIAMIN,
    1166: NutrientId.RIBOFLAVIN,
    1167: NutrientId.NIACIN,
    1175: NutrientId.VITAMIN_B6,
    1177: NutrientId.FOLATE,
    1178: NutrientId.VITAMIN_B12,
    1180: NutrientId.CHOLINE,
    1057: NutrientId.CAFFEINE,
    1018: NutrientId.ALCOHOL,
    1051: NutrientId.WATER,
}
# Atwater energy values, used only when the label energy row is missing.
FDC_ENERGY_FALLBACK_IDS = (2047, 2048)
FDC_REFERENCE_GRAMS = 100.0


@dataclass(frozen=True)
class FoodMatch:
    """One search hit from FoodData Central."""

    fdc_id: int
    description: str
    brand_owner: str | None
    data_type: str | None


@dataclass
class FoodLookupService:
    """Resolve free-text food names to nutrient profiles with caching."""

    fdc_client: FdcClient
    cache: Cache
    search_ttl_seconds: int = 3600
    food_ttl_seconds: int = 86400
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def search(self, query: str, limit: int = 5) -> list[FoodMatch]:
        """Search FDC foods, caching results per query."""
        cache_key = f"fdc:search:{query.strip().lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await call_with_retry(
            lambda: self.fdc_client.search_foods(query, page_size=limit),
            action="FDC search",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        matches = [
            FoodMatch(
                fdc_id=food["fdcId"],
                description=food.get("description", ""),
                brand_owner=food.get("brandOwner"),
                data_type=food.get("dataType"),
            )
            for food in payload.get("foods", [])
        ]
        self.cache.set(cache_key, matches, ttl_seconds=self.search_ttl_seconds)
        _logger.debug("FDC search %r returned %s foods", query, len(matches))
        return matches

    async def get_profile(self, fdc_id: int) -> NutrientProfile:
        """Return the per-100 g nutrient profile of an FDC food."""
        cache_key = f"fdc:food:{fdc_id}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, NutrientProfile):
            return cached

        payload = await call_with_retry(
            lambda: self.fdc_client.get_food(fdc_id),
            action=f"FDC get_food {fdc_id}",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        profile = NutrientProfile(
            name=str(payload.get("description") or f"FDC {fdc_id}"),
            amounts=extract_nutrients(payload.get("foodNutrients", [])),
        )
        self.cache.set(cache_key, profile, ttl_seconds=self.food_ttl_seconds)
        return profile

    async def lookup(self, query: str, grams: float | None = None) -> NutrientProfile:
        """Resolve a query to its best match, scaled to ``grams`` when given."""
        matches = await self.search(query, limit=1)
        if not matches:
            raise ExtractionError(f"No database match for {query!r}")
        profile = await self.get_profile(matches[0].fdc_id)
        if grams is None:
            return profile
        return scale_profile(profile, grams / FDC_REFERENCE_GRAMS)


def scale_profile(profile: NutrientProfile, factor: float) -> NutrientProfile:
    """Multiply every amount by ``factor``."""
    return NutrientProfile(
        name=profile.name,
        amounts={key: value * factor for key, value in profile.amounts.items()},
        serving=profile.serving,
        item_names=profile.item_names,
    )


def extract_nutrients(
    food_nutrients: Iterable[Mapping[str, object]],
) -> dict[NutrientId, float]:
    """Map FDC nutrient rows to engine nutrient ids.

    Detail payloads nest the id under ``nutrient``; search payloads use a flat
    ``nutrientId`` and ``value``. Both shapes are accepted.
    """
    amounts: dict[NutrientId, float] = {}
    fallback_energy: float | None = None
    for row in food_nutrients:
        info = row.get("nutrient") or {}
        fdc_id = info.get("id") or row.get("nutrientId")
        amount = row.get("amount", row.get("value"))
        if not isinstance(amount, int | float) or isinstance(amount, bool) or amount < 0:
            continue
        if fdc_id in FDC_ENERGY_FALLBACK_IDS:
            fallback_energy = float(amount)
            continue
        nutrient_id = FDC_NUTRIENT_IDS.get(fdc_id)
        if nutrient_id is not None:
            amounts[nutrient_id] = float(amount)
    if NutrientId.CALORIES not in amounts and fallback_energy is not None:
        amounts[NutrientId.CALORIES] = fallback_energy
    return amounts
