"""Turn photo, text, manual and database inputs into nutrient profiles."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from nutrition_engine.domain.comparison import ExtractionInput, InputMethod
from nutrition_engine.domain.nutrients import NutrientId, NutrientProfile
from nutrition_engine.errors import ExtractionError
from nutrition_engine.services.food_lookup import FoodLookupService
from nutrition_engine.services.structured import (
    StructuredClient,
    StructuredRequest,
    call_with_retry,
)

_logger = logging.getLogger(__name__)

EXTRACTED_NUTRIENTS = (
    NutrientId.CALORIES,
    NutrientId.PROTEIN,
    NutrientId.CARBS,
    NutrientId.FAT,
    NutrientId.FIBER,
    NutrientId.SUGAR,
    NutrientId.SATURATED_FAT,
    NutrientId.TRANS_FAT,
    NutrientId.CHOLESTEROL,
    NutrientId.SODIUM,
    NutrientId.POTASSIUM,
    NutrientId.CALCIUM,
    NutrientId.IRON,
    NutrientId.MAGNESIUM,
    NutrientId.VITAMIN_D,
    NutrientId.OMEGA3,
)

_NULLABLE_NUMBER = {"anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]}

EXTRACTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "portion": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                    "nutrients": {
                        "type": "object",
                        "properties": {
                            str(nutrient): _NULLABLE_NUMBER
                            for nutrient in EXTRACTED_NUTRIENTS
                        },
                        "required": [str(nutrient) for nutrient in EXTRACTED_NUTRIENTS],
                        "additionalProperties": False,
                    },
                },
                "required": ["name", "portion", "nutrients"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["items"],
    "additionalProperties": False,
}

EXTRACTION_INSTRUCTIONS = (
    "You are a food analysis assistant. Identify each distinct food item and "
    "estimate its nutrients for the portion shown or described. Use grams for "
    "macronutrients, milligrams for sodium, potassium, calcium, iron, magnesium "
    "and cholesterol, and micrograms for vitamin D. Use null when unknown."
)
PHOTO_PROMPT = "Identify the food items in this image and estimate their nutrients."
TEXT_PROMPT = "Identify the food items in this description and estimate their nutrients.\n\nInput: {text}"


class ExtractedItem(BaseModel):
    """One food item returned by the extraction model."""

    name: str = Field(min_length=1)
    portion: str | None = None
    nutrients: dict[str, float | None] = Field(default_factory=dict)


class ExtractionResult(BaseModel):
    """Structured output of the extraction model."""

    items: list[ExtractedItem]


class Extractor(Protocol):
    """Interface the comparison orchestrator uses to resolve inputs."""

    async def extract(self, extraction_input: ExtractionInput) -> NutrientProfile:
        """Return a nutrient profile for the input."""


@dataclass
class ExtractionService(Extractor):
    """Resolves each input method to a single (possibly combined) profile."""

    client: StructuredClient | None = None
    food_lookup: FoodLookupService | None = None
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def extract(self, extraction_input: ExtractionInput) -> NutrientProfile:
        match extraction_input.method:
            case InputMethod.MANUAL:
                return NutrientProfile.from_mapping(
                    extraction_input.name or "Manual entry",
                    extraction_input.amounts,
                    strict=True,
                )
            case InputMethod.LOOKUP:
                return await self._lookup(extraction_input)
            case InputMethod.PHOTO:
                if not extraction_input.image_bytes:
                    raise ExtractionError("Photo input has no image data")
                request = StructuredRequest(
                    schema_name="food_extraction",
                    schema=EXTRACTION_SCHEMA,
                    prompt=PHOTO_PROMPT,
                    instructions=EXTRACTION_INSTRUCTIONS,
                    image_data_url=_to_data_url(extraction_input.image_bytes),
                )
            case InputMethod.TEXT:
                text = (extraction_input.text or "").strip()
                if not text:
                    raise ExtractionError("Text input is empty")
                request = StructuredRequest(
                    schema_name="food_extraction",
                    schema=EXTRACTION_SCHEMA,
                    prompt=TEXT_PROMPT.format(text=text),
                    instructions=EXTRACTION_INSTRUCTIONS,
                )
        return await self._extract_structured(request, extraction_input.method)

    async def _lookup(self, extraction_input: ExtractionInput) -> NutrientProfile:
        if self.food_lookup is None:
            raise ExtractionError("Database lookup is not configured")
        query = (extraction_input.text or "").strip()
        if not query:
            raise ExtractionError("Lookup query is empty")
        return await self.food_lookup.lookup(query, grams=extraction_input.grams)

    async def _extract_structured(
        self, request: StructuredRequest, method: InputMethod
    ) -> NutrientProfile:
        if self.client is None:
            raise ExtractionError(f"{method} extraction is not configured")
        raw = await call_with_retry(
            lambda: self.client.generate(request),
            action=f"{method} extraction",
            retry_attempts=self.retry_attempts,
            retry_delay_seconds=self.retry_delay_seconds,
        )
        try:
            result = ExtractionResult.model_validate(raw)
        except ValidationError as exc:
            raise ExtractionError(f"Malformed extraction result: {exc}") from exc
        if not result.items:
            raise ExtractionError("No food items were detected")
        profiles = [
            NutrientProfile.from_mapping(item.name, item.nutrients) for item in result.items
        ]
        _logger.info("Extracted %s item(s) from %s input", len(profiles), method)
        return NutrientProfile.combine(profiles)


def _to_data_url(image_bytes: bytes) -> str:
    """Encode image bytes as a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{_detect_mime_type(image_bytes)};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
