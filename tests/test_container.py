"""Tests for container wiring and settings."""

import asyncio

from nutrition_engine.config import Settings
from nutrition_engine.containers import build_container
from nutrition_engine.services.comparison import ComparisonSession
from nutrition_engine.services.remote_grading import RemoteGradingService


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.grading_service.remote_grader, RemoteGradingService)
    assert container.insight_service is not None
    assert isinstance(container.new_session(), ComparisonSession)
    asyncio.run(container.close_resources())


def test_container_without_openai_key_grades_locally() -> None:
    container = build_container(Settings(openai_api_key=None, fdc_api_key="fdc-key"))

    assert container.grading_service.remote_grader is None
    assert container.insight_service is None
    asyncio.run(container.close_resources())


def test_feature_flags_disable_remote_steps(settings: Settings) -> None:
    flagged = settings.model_copy(
        update={"remote_grading_enabled": False, "comparison_insight_enabled": False}
    )

    container = build_container(flagged)

    assert container.grading_service.remote_grader is None
    assert container.insight_service is None
    asyncio.run(container.close_resources())
