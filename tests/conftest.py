"""Shared test fixtures."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from nutrition_engine.adapters.fdc_client import FdcClient
from nutrition_engine.config import Settings
from nutrition_engine.containers import AppContainer
from nutrition_engine.domain.comparison import ComparisonInsight, ExtractionInput
from nutrition_engine.domain.grading import (
    FoodHealthProfile,
    HealthGrade,
    RemoteGradingResult,
    WellnessFocus,
)
from nutrition_engine.domain.nutrients import NutrientProfile
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.errors import ExtractionError
from nutrition_engine.services.extraction import Extractor
from nutrition_engine.services.grading import GradingService, RemoteGrader
from nutrition_engine.services.insight import InsightProvider
from nutrition_engine.services.structured import StructuredClient, StructuredRequest

SODA = {"calories": 100, "sugar": 23}
GRILLED_CHICKEN = {"calories": 165, "protein": 31, "fat": 3.6, "sodium": 74}
APPLE = {"calories": 95, "carbs": 25, "fiber": 4.4, "sugar": 19, "protein": 0.5}


def make_profile(name: str, values: dict[str, float]) -> NutrientProfile:
    return NutrientProfile.from_mapping(name, values)


@dataclass
class FakeStructuredClient(StructuredClient):
    """Returns canned payloads in order and records requests."""

    responses: list[object] = field(default_factory=list)
    requests: list[StructuredRequest] = field(default_factory=list)

    async def generate(self, request: StructuredRequest) -> dict[str, object]:
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else {"items": []}
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class FakeRemoteGrader(RemoteGrader):
    """Remote grader returning a fixed result, or raising."""

    result: RemoteGradingResult | None = None
    error: Exception | None = None
    calls: int = 0

    async def grade_remote(
        self, profile: NutrientProfile, targets: PersonalizedTargets | None = None
    ) -> RemoteGradingResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result or RemoteGradingResult(overall_grade=HealthGrade.B)


@dataclass
class FakeExtractor(Extractor):
    """Manual inputs pass through; text inputs resolve from a lookup table."""

    foods: dict[str, dict[str, float]] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    delay_seconds: float = 0.0
    calls: list[ExtractionInput] = field(default_factory=list)

    async def extract(self, extraction_input: ExtractionInput) -> NutrientProfile:
        self.calls.append(extraction_input)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if extraction_input.name is not None:
            return NutrientProfile.from_mapping(
                extraction_input.name, extraction_input.amounts
            )
        text = extraction_input.text or ""
        if text in self.failing or text not in self.foods:
            raise ExtractionError(f"Could not identify {text!r}")
        return NutrientProfile.from_mapping(text, self.foods[text])


@dataclass
class FakeInsightProvider(InsightProvider):
    """Insight provider that can be told to fail."""

    error: Exception | None = None
    delay_seconds: float = 0.0
    calls: int = 0
    seen_focuses: list[list[WellnessFocus]] = field(default_factory=list)
    seen_names: list[list[str]] = field(default_factory=list)

    async def compare_insight(
        self, profiles: Sequence[FoodHealthProfile], focuses: Sequence[WellnessFocus]
    ) -> ComparisonInsight:
        self.calls += 1
        self.seen_focuses.append(list(focuses))
        self.seen_names.append([profile.name for profile in profiles])
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return ComparisonInsight(
            verdict=f"{profiles[0].name} wins",
            winner_index=0,
            contextual_analysis="Compared on protein and sugar.",
            surprises=["one", "two", "three", "four"],
        )


@dataclass
class FakeFdcClient(FdcClient):
    """FDC client with one chicken entry and call counters."""

    search_calls: int = 0
    food_calls: int = 0
    fail_first_search: bool = False

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        self.search_calls += 1
        if self.fail_first_search and self.search_calls == 1:
            raise RuntimeError("temporary outage")
        if "chicken" not in query.lower():
            return {"foods": []}
        return {
            "foods": [
                {
                    "fdcId": 171477,
                    "description": "Chicken breast, grilled",
                    "dataType": "SR Legacy",
                }
            ]
        }

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        self.food_calls += 1
        return {
            "fdcId": fdc_id,
            "description": "Chicken breast, grilled",
            "foodNutrients": [
                {"nutrient": {"id": 1008}, "amount": 165},
                {"nutrient": {"id": 1003}, "amount": 31},
                {"nutrient": {"id": 1004}, "amount": 3.6},
                {"nutrient": {"id": 1093}, "amount": 74},
                {"nutrientId": 1258, "amount": 1.0},
                {"nutrient": {"id": 9999}, "amount": 5},
            ],
        }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        fdc_api_key="fdc-key",
        environment="test",
    )


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor(
        foods={
            "soda": SODA,
            "grilled chicken": GRILLED_CHICKEN,
            "apple": APPLE,
        }
    )


@pytest.fixture
def insight_provider() -> FakeInsightProvider:
    return FakeInsightProvider()


@pytest.fixture
def container(
    settings: Settings,
    extractor: FakeExtractor,
    insight_provider: FakeInsightProvider,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        grading_service=GradingService(),
        extraction_service=extractor,
        insight_service=insight_provider,
        close_resources=close_resources,
    )
