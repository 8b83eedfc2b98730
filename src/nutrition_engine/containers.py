"""Dependency container wiring for the engine."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrition_engine.adapters.fdc_client import HttpxFdcClient
from nutrition_engine.adapters.openai_structured_client import OpenAIStructuredClient
from nutrition_engine.config import Settings
from nutrition_engine.domain.grading import WellnessFocus
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.services.cache import InMemoryCache
from nutrition_engine.services.comparison import ComparisonSession
from nutrition_engine.services.extraction import ExtractionService, Extractor
from nutrition_engine.services.food_lookup import FoodLookupService
from nutrition_engine.services.grading import GradingService
from nutrition_engine.services.insight import InsightProvider, InsightService
from nutrition_engine.services.remote_grading import RemoteGradingService


@dataclass
class AppContainer:
    """Holds engine-wide dependencies."""

    settings: Settings
    grading_service: GradingService
    extraction_service: Extractor
    insight_service: InsightProvider | None
    close_resources: Callable[[], Awaitable[None]]

    def new_session(
        self,
        targets: PersonalizedTargets | None = None,
        focus: WellnessFocus = WellnessFocus.BALANCED,
    ) -> ComparisonSession:
        """Create a comparison session wired to the shared services."""
        return ComparisonSession(
            extractor=self.extraction_service,
            grading=self.grading_service,
            insight_provider=self.insight_service,
            targets=targets,
            focus=focus,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    cache = InMemoryCache()

    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    food_lookup = FoodLookupService(fdc_client=fdc_client, cache=cache)

    openai_client = None
    if resolved_settings.openai_enabled:
        openai_client = OpenAIStructuredClient.create(
            resolved_settings.openai_api_key,
            resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
            timeout_seconds=resolved_settings.openai_timeout_seconds,
        )

    remote_grader = None
    if openai_client is not None and resolved_settings.remote_grading_enabled:
        remote_grader = RemoteGradingService(
            client=openai_client,
            cache=cache,
            cache_ttl_seconds=resolved_settings.grading_cache_ttl_seconds,
        )
    insight_service = None
    if openai_client is not None and resolved_settings.comparison_insight_enabled:
        insight_service = InsightService(client=openai_client)

    async def close_resources() -> None:
        await fdc_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        grading_service=GradingService(remote_grader=remote_grader),
        extraction_service=ExtractionService(client=openai_client, food_lookup=food_lookup),
        insight_service=insight_service,
        close_resources=close_resources,
    )
