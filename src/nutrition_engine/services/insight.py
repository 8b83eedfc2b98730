"""Cross-item narrative insight for food comparisons."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_engine.domain.comparison import ComparisonInsight
from nutrition_engine.domain.grading import FoodHealthProfile, WellnessFocus
from nutrition_engine.domain.nutrients import NutrientId
from nutrition_engine.errors import CollaboratorError
from nutrition_engine.services.structured import StructuredClient, StructuredRequest

_logger = logging.getLogger(__name__)

_NULLABLE_TEXT = {"anyOf": [{"type": "string"}, {"type": "null"}]}

INSIGHT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "verdict": {"type": "string"},
        "winner_index": {"anyOf": [{"type": "integer", "minimum": 0}, {"type": "null"}]},
        "contextual_analysis": {"type": "string"},
        "focus_insights": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "focus": {"type": "string"},
                    "insight": {"type": "string"},
                },
                "required": ["focus", "insight"],
                "additionalProperties": False,
            },
        },
        "surprises": {"type": "array", "items": {"type": "string"}},
        "recommendation": _NULLABLE_TEXT,
    },
    "required": [
        "verdict",
        "winner_index",
        "contextual_analysis",
        "focus_insights",
        "surprises",
        "recommendation",
    ],
    "additionalProperties": False,
}

INSIGHT_INSTRUCTIONS = (
    "You are a nutrition expert comparing foods. Be conversational and "
    "wellness-focused. Never make medical claims or diagnoses; prefer phrases "
    'such as "may support" or "often associated with".'
)


class InsightProvider(Protocol):
    """Interface the comparison orchestrator uses for narrative insight."""

    async def compare_insight(
        self, profiles: Sequence[FoodHealthProfile], focuses: Sequence[WellnessFocus]
    ) -> ComparisonInsight:
        """Return a narrative comparison of the profiles."""


@dataclass
class InsightService(InsightProvider):
    """Produces comparison insight through a structured-output client."""

    client: StructuredClient

    async def compare_insight(
        self, profiles: Sequence[FoodHealthProfile], focuses: Sequence[WellnessFocus]
    ) -> ComparisonInsight:
        raw = await self.client.generate(
            StructuredRequest(
                schema_name="comparison_insight",
                schema=INSIGHT_SCHEMA,
                prompt=build_insight_prompt(profiles, focuses),
                instructions=INSIGHT_INSTRUCTIONS,
            )
        )
        try:
            insight = ComparisonInsight.model_validate(raw)
        except ValidationError as exc:
            raise CollaboratorError(f"Malformed comparison insight: {exc}") from exc
        if insight.winner_index is not None and insight.winner_index >= len(profiles):
            _logger.warning(
                "Insight winner index %s out of range, dropping it", insight.winner_index
            )
            insight = insight.model_copy(update={"winner_index": None})
        return insight


def build_insight_prompt(
    profiles: Sequence[FoodHealthProfile], focuses: Sequence[WellnessFocus]
) -> str:
    focus_text = ", ".join(focus.label for focus in focuses) or "Balanced"
    lines = [f"The user's wellness focus: {focus_text}.", "", "Foods:"]
    for index, item in enumerate(profiles):
        nutrients = item.nutrients
        lines.append(
            f"{index}. {item.name}: grade {item.overall_grade} "
            f"({item.overall_score}/100), "
            f"{nutrients.calories:g} kcal, "
            f"protein {nutrients.amount(NutrientId.PROTEIN):g}g, "
            f"fiber {nutrients.amount(NutrientId.FIBER):g}g, "
            f"sugar {nutrients.amount(NutrientId.SUGAR):g}g, "
            f"sodium {nutrients.amount(NutrientId.SODIUM):g}mg"
        )
    lines.extend(
        [
            "",
            "Give a 1-2 sentence verdict naming the better choice, the 0-based index "
            "of the winner (null if too close to call), a 2-3 sentence analysis of "
            "the tradeoffs with specific numbers, one insight per selected focus, "
            "up to three surprising facts, and an optional one-line recommendation.",
        ]
    )
    return "\n".join(lines)
