"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nutrition_engine.api.models import (
    ClassifyRequest,
    CompareItem,
    CompareRequest,
    GradeRequest,
    UserContextRequest,
)
from nutrition_engine.app_logging import configure_logging
from nutrition_engine.containers import AppContainer
from nutrition_engine.domain.comparison import ComparisonResult, ComparisonSlot
from nutrition_engine.domain.grading import FoodHealthProfile, WellnessFocus
from nutrition_engine.domain.nutrients import NutrientProfile
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.errors import NutrientValidationError, NutritionEngineError, SlotStateError
from nutrition_engine.reference import get_nature
from nutrition_engine.services.classification import classify, severity_rank
from nutrition_engine.services.comparison import ComparisonSession
from nutrition_engine.services.targets import compute_targets, macro_percentages


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NutritionEngineError)
    async def engine_error(request: Request, exc: NutritionEngineError) -> JSONResponse:
        status_code = 409 if isinstance(exc, SlotStateError) else 422
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/targets")
    async def targets(body: UserContextRequest) -> dict[str, object]:
        """Compute personalized daily targets."""
        result = compute_targets(body.to_context())
        macros = macro_percentages(result)
        return {
            "targets": result.to_dict(),
            "applied_conditions": list(result.applied_conditions),
            "applied_goals": list(result.applied_goals),
            "metabolic_correction": result.metabolic_correction,
            "life_stage": str(result.life_stage) if result.life_stage else None,
            "macro_percentages": {
                "protein": macros.protein,
                "carbs": macros.carbs,
                "fat": macros.fat,
            },
        }

    @app.post("/classify")
    async def classify_amount(body: ClassifyRequest) -> dict[str, object]:
        """Classify one nutrient amount."""
        personalized = _targets_for(body.context)
        classification = classify(body.amount, body.nutrient_id, personalized)
        return {
            "nutrient_id": body.nutrient_id,
            "nature": str(get_nature(body.nutrient_id)),
            "classification": str(classification),
            "severity": severity_rank(classification),
        }

    @app.post("/grade")
    async def grade(body: GradeRequest, request: Request) -> dict[str, object]:
        """Grade a single food."""
        state_container: AppContainer = request.app.state.container
        profile = NutrientProfile.from_mapping(body.name, body.nutrients, strict=True)
        graded = await state_container.grading_service.grade(
            profile, WellnessFocus.parse(body.focus), _targets_for(body.context)
        )
        return serialize_health_profile(graded)

    @app.post("/compare")
    async def compare(body: CompareRequest, request: Request) -> dict[str, object]:
        """Analyze 2-5 foods side by side."""
        state_container: AppContainer = request.app.state.container
        session = state_container.new_session(
            targets=_targets_for(body.context), focus=WellnessFocus.parse(body.focus)
        )
        while len(session.slots) < len(body.items):
            session.add_slot()
        for slot, item in zip(session.slots, body.items, strict=False):
            _attach(session, slot, item)
        result = await session.analyze_all()
        if result is not None:
            await session.wait_for_insight()
            result = session.result()
        return {
            "slots": [serialize_slot(slot) for slot in session.slots],
            "result": serialize_comparison(result) if result is not None else None,
        }

    return app


def _targets_for(context: UserContextRequest | None) -> PersonalizedTargets | None:
    if context is None:
        return None
    return compute_targets(context.to_context())


def _attach(session: ComparisonSession, slot: ComparisonSlot, item: CompareItem) -> None:
    match item.method:
        case "manual":
            session.attach_manual(slot.id, item.name or "Manual entry", item.nutrients)
        case "text":
            session.attach_text(slot.id, item.text or "")
        case "lookup":
            session.attach_lookup(slot.id, item.text or item.name or "", item.grams)
        case "photo":
            try:
                image_bytes = base64.b64decode(item.image_base64 or "", validate=True)
            except binascii.Error as exc:
                raise NutrientValidationError("image_base64 is not valid base64") from exc
            session.attach_photo(slot.id, image_bytes)


def serialize_health_profile(profile: FoodHealthProfile) -> dict[str, object]:
    return {
        "name": profile.name,
        "nutrients": profile.nutrients.to_dict(),
        "serving": str(profile.nutrients.serving),
        "active_focus": str(profile.active_focus),
        "overall_grade": str(profile.overall_grade),
        "overall_score": profile.overall_score,
        "grade_reason": profile.grade_reason,
        "grading_source": str(profile.grading_source),
        "focus_scores": {str(key): value for key, value in profile.focus_scores.items()},
        "focus_grades": {str(key): str(value) for key, value in profile.focus_grades.items()},
        "focus_details": {
            str(key): detail.model_dump(mode="json")
            for key, detail in profile.focus_details.items()
        },
        "nutrient_scores": [
            {
                "name": score.name,
                "score": score.score,
                "impact": score.impact,
                "reason": score.reason,
            }
            for score in profile.nutrient_scores
        ],
        "focus_impacts": [
            {
                "focus": str(impact.focus),
                "label": impact.label,
                "score": impact.score,
                "rating": impact.rating,
                "highlights": list(impact.highlights),
                "concerns": list(impact.concerns),
            }
            for impact in profile.focus_impacts
        ],
        "condition_impacts": [
            {
                "condition": impact.condition,
                "impact": impact.impact,
                "reason": impact.reason,
                "recommendation": impact.recommendation,
            }
            for impact in profile.condition_impacts
        ],
        "alternatives": [
            {
                "name": alternative.name,
                "calories": alternative.calories,
                "grade": str(alternative.grade),
                "benefit": alternative.benefit,
                "calorie_reduction": alternative.calorie_reduction,
            }
            for alternative in profile.alternatives
        ],
        "recommendation": profile.recommendation,
    }


def serialize_slot(slot: ComparisonSlot) -> dict[str, object]:
    return {
        "id": slot.id,
        "status": str(slot.status),
        "method": str(slot.input.method) if slot.input is not None else None,
        "name": slot.profile.name if slot.profile is not None else None,
        "error": slot.error,
    }


def serialize_comparison(result: ComparisonResult) -> dict[str, object]:
    return {
        "focus": str(result.focus),
        "profiles": {
            slot_id: serialize_health_profile(profile)
            for slot_id, profile in result.profiles.items()
        },
        "rankings": [
            {
                "slot_id": ranking.slot_id,
                "name": ranking.name,
                "rank": ranking.rank,
                "score": ranking.score,
                "grade": str(ranking.grade),
            }
            for ranking in result.rankings
        ],
        "category_comparisons": [
            {
                "nutrient_id": str(category.nutrient_id),
                "label": category.label,
                "lower_is_better": category.lower_is_better,
                "values": dict(category.values),
                "best_slot_id": category.best_slot_id,
                "worst_slot_id": category.worst_slot_id,
            }
            for category in result.category_comparisons
        ],
        "insight": result.insight.model_dump(mode="json") if result.insight else None,
    }
