"""Tests for multi-item comparison sessions."""

import asyncio

import pytest

from nutrition_engine.domain.comparison import SlotStatus
from nutrition_engine.domain.grading import HealthGrade, WellnessFocus
from nutrition_engine.domain.nutrients import NutrientId
from nutrition_engine.errors import SlotLimitError, SlotStateError
from nutrition_engine.services.comparison import (
    MAX_SLOTS,
    ComparisonSession,
    compare_categories,
    rank_profiles,
)
from nutrition_engine.services.grading import GradingService, build_algorithmic_profile
from tests.conftest import (
    GRILLED_CHICKEN,
    SODA,
    FakeExtractor,
    FakeInsightProvider,
    FakeRemoteGrader,
    make_profile,
)


def _session(extractor: FakeExtractor, insight: FakeInsightProvider | None = None):  # type: ignore[no-untyped-def]
    return ComparisonSession(
        extractor=extractor, grading=GradingService(), insight_provider=insight
    )


def test_new_session_has_two_empty_slots(extractor: FakeExtractor) -> None:
    session = _session(extractor)

    assert [slot.status for slot in session.slots] == [SlotStatus.EMPTY] * 2
    assert session.result() is None


def test_slot_limit(extractor: FakeExtractor) -> None:
    session = _session(extractor)
    for _ in range(MAX_SLOTS - 2):
        session.add_slot()

    with pytest.raises(SlotLimitError):
        session.add_slot()
    assert len(session.slots) == MAX_SLOTS


def test_remove_slot_repads_to_two(extractor: FakeExtractor) -> None:
    session = _session(extractor)
    first = session.slots[0].id

    session.remove_slot(first)

    assert len(session.slots) == 2
    assert first not in {slot.id for slot in session.slots}


def test_unknown_slot_raises(extractor: FakeExtractor) -> None:
    with pytest.raises(SlotStateError):
        _session(extractor).attach_text("slot-99", "soda")


def test_analyze_all_ranks_ready_slots(
    extractor: FakeExtractor, insight_provider: FakeInsightProvider
) -> None:
    session = _session(extractor, insight_provider)
    soda_slot, chicken_slot = session.slots
    session.attach_text(soda_slot.id, "soda")
    session.attach_manual(chicken_slot.id, "Grilled chicken", GRILLED_CHICKEN)

    async def run():  # type: ignore[no-untyped-def]
        result = await session.analyze_all()
        insight = await session.wait_for_insight()
        return result, insight

    result, insight = asyncio.run(run())

    assert result is not None
    assert [ranking.slot_id for ranking in result.rankings] == [
        chicken_slot.id,
        soda_slot.id,
    ]
    assert result.winner.grade in {HealthGrade.A, HealthGrade.B}
    assert result.rankings[1].grade == HealthGrade.F
    assert insight is not None
    assert insight.surprises == ["one", "two", "three"]
    assert session.result().insight == insight
    assert insight_provider.calls == 1


def test_failed_slot_does_not_affect_others(extractor: FakeExtractor) -> None:
    session = _session(extractor)
    session.add_slot()
    first, second, third = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "mystery meat")
    session.attach_text(third.id, "apple")

    result = asyncio.run(session.analyze_all())

    assert first.status == SlotStatus.READY
    assert second.status == SlotStatus.ERROR
    assert "mystery meat" in second.error
    assert third.status == SlotStatus.READY
    assert result is not None
    assert {ranking.slot_id for ranking in result.rankings} == {first.id, third.id}


def test_remote_failure_still_produces_grade(extractor: FakeExtractor) -> None:
    session = ComparisonSession(
        extractor=extractor,
        grading=GradingService(remote_grader=FakeRemoteGrader(error=RuntimeError("x"))),
    )
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "grilled chicken")

    asyncio.run(session.analyze_all())

    assert first.status == SlotStatus.READY
    assert first.profile.overall_grade == HealthGrade.F


def test_single_ready_slot_has_no_result(extractor: FakeExtractor) -> None:
    session = _session(extractor)
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "mystery")

    assert asyncio.run(session.analyze_all()) is None


def test_slots_analyze_concurrently() -> None:
    extractor = FakeExtractor(foods={"soda": SODA}, delay_seconds=0.2)
    session = _session(extractor)
    for _ in range(3):
        session.add_slot()
    for slot in session.slots:
        session.attach_text(slot.id, "soda")

    async def run() -> float:
        loop = asyncio.get_running_loop()
        started = loop.time()
        await session.analyze_all()
        return loop.time() - started

    elapsed = asyncio.run(run())

    assert elapsed < 0.2 * 3
    assert all(slot.status == SlotStatus.READY for slot in session.slots)


def test_reset_slot_refused_while_analyzing() -> None:
    extractor = FakeExtractor(foods={"soda": SODA}, delay_seconds=0.05)
    session = _session(extractor)
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "soda")

    async def run() -> None:
        task = asyncio.create_task(session.analyze_all())
        await asyncio.sleep(0)
        assert first.status == SlotStatus.ANALYZING
        with pytest.raises(SlotStateError):
            session.reset_slot(first.id)
        with pytest.raises(SlotStateError):
            session.reset_all()
        await task

    asyncio.run(run())
    session.reset_slot(first.id)
    assert first.status == SlotStatus.EMPTY


def test_mutation_discards_insight(
    extractor: FakeExtractor, insight_provider: FakeInsightProvider
) -> None:
    session = _session(extractor, insight_provider)
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "apple")

    async def run() -> None:
        await session.analyze_all()
        await session.wait_for_insight()
        assert session.insight is not None
        session.set_focus("energy")
        assert session.insight is None

    asyncio.run(run())
    assert session.focus == WellnessFocus.ENERGY_ENDURANCE


def test_insight_failure_is_swallowed(extractor: FakeExtractor) -> None:
    provider = FakeInsightProvider(error=RuntimeError("quota"))
    session = _session(extractor, provider)
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "apple")

    async def run():  # type: ignore[no-untyped-def]
        result = await session.analyze_all()
        return result, await session.wait_for_insight()

    result, insight = asyncio.run(run())

    assert result is not None
    assert insight is None
    assert provider.calls == 1


def test_reset_all_restores_two_empty_slots(extractor: FakeExtractor) -> None:
    session = _session(extractor)
    session.add_slot()
    session.attach_text(session.slots[0].id, "soda")

    session.reset_all()

    assert [slot.status for slot in session.slots] == [SlotStatus.EMPTY] * 2


def test_ranking_ties_break_by_grade_then_order() -> None:
    soda = build_algorithmic_profile(make_profile("Soda", SODA), WellnessFocus.BALANCED)
    other_soda = build_algorithmic_profile(
        make_profile("Cola", SODA), WellnessFocus.BALANCED
    )

    rankings = rank_profiles({"slot-2": soda, "slot-1": other_soda})

    assert [ranking.slot_id for ranking in rankings] == ["slot-2", "slot-1"]
    assert [ranking.rank for ranking in rankings] == [1, 2]


def test_category_comparisons_use_direction() -> None:
    profiles = {
        "slot-1": build_algorithmic_profile(
            make_profile("Soda", SODA), WellnessFocus.BALANCED
        ),
        "slot-2": build_algorithmic_profile(
            make_profile("Chicken", GRILLED_CHICKEN), WellnessFocus.BALANCED
        ),
    }

    categories = {
        category.nutrient_id: category for category in compare_categories(profiles)
    }

    assert categories[NutrientId.CALORIES].best_slot_id == "slot-1"
    assert categories[NutrientId.PROTEIN].best_slot_id == "slot-2"
    assert categories[NutrientId.SUGAR].best_slot_id == "slot-2"
    assert categories[NutrientId.SATURATED_FAT].label == "Sat. Fat"
    assert len(categories) == 7


def test_reanalysis_replaces_running_insight(extractor: FakeExtractor) -> None:
    provider = FakeInsightProvider(delay_seconds=0.05)
    session = _session(extractor, provider)
    first, second = session.slots
    session.attach_text(first.id, "soda")
    session.attach_text(second.id, "apple")

    async def run():  # type: ignore[no-untyped-def]
        await session.analyze_all()
        await asyncio.sleep(0)
        third = session.add_slot()
        session.attach_text(third.id, "grilled chicken")
        await session.analyze_all()
        return await session.wait_for_insight()

    insight = asyncio.run(run())

    assert len(session.result().rankings) == 3
    assert insight is not None
    assert session.insight == insight
    assert provider.calls == 2
    assert provider.seen_names[-1] == ["soda", "apple", "grilled chicken"]


def test_saturated_fat_category_estimates_unreported_values() -> None:
    profiles = {
        "slot-1": build_algorithmic_profile(
            make_profile("Fried snack", {"calories": 300, "fat": 20}),
            WellnessFocus.BALANCED,
        ),
        "slot-2": build_algorithmic_profile(
            make_profile("Yogurt", {"calories": 150, "fat": 4, "saturatedFat": 2.5}),
            WellnessFocus.BALANCED,
        ),
    }

    categories = {
        category.nutrient_id: category for category in compare_categories(profiles)
    }

    saturated_fat = categories[NutrientId.SATURATED_FAT]
    assert saturated_fat.values["slot-1"] == pytest.approx(6.0)
    assert saturated_fat.best_slot_id == "slot-2"
    assert saturated_fat.worst_slot_id == "slot-1"
