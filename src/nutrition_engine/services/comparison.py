"""Multi-item comparison sessions."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from nutrition_engine.domain.comparison import (
    CategoryComparison,
    ComparisonInsight,
    ComparisonResult,
    ComparisonSlot,
    ExtractionInput,
    Ranking,
    SlotStatus,
)
from nutrition_engine.domain.grading import FoodHealthProfile, WellnessFocus
from nutrition_engine.domain.nutrients import NutrientId
from nutrition_engine.domain.targets import PersonalizedTargets
from nutrition_engine.errors import SlotLimitError, SlotStateError
from nutrition_engine.reference import nutrient_label
from nutrition_engine.services.extraction import Extractor
from nutrition_engine.services.grading import GradingService, estimated_saturated_fat
from nutrition_engine.services.insight import InsightProvider

_logger = logging.getLogger(__name__)

MIN_SLOTS = 2
MAX_SLOTS = 5

# (nutrient, lower_is_better)
COMPARISON_CATEGORIES = (
    (NutrientId.CALORIES, True),
    (NutrientId.PROTEIN, False),
    (NutrientId.FIBER, False),
    (NutrientId.SUGAR, True),
    (NutrientId.SODIUM, True),
    (NutrientId.SATURATED_FAT, True),
    (NutrientId.FAT, True),
)


@dataclass
class ComparisonSession:
    """Owns 2-5 slots, analyzes them concurrently and ranks the results.

    A session has a single owner and is driven from one event loop. Every slot
    settles independently: one failed extraction or grading never affects the
    others. Narrative insight runs in the background once two or more slots
    are ready and is discarded whenever a slot or the focus changes.
    """

    extractor: Extractor
    grading: GradingService
    insight_provider: InsightProvider | None = None
    targets: PersonalizedTargets | None = None
    focus: WellnessFocus = WellnessFocus.BALANCED
    _slots: list[ComparisonSlot] = field(default_factory=list, init=False)
    _next_id: int = field(default=1, init=False)
    _insight: ComparisonInsight | None = field(default=None, init=False)
    _insight_task: asyncio.Task | None = field(default=None, init=False, repr=False)
    _generation: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self._pad()

    @property
    def slots(self) -> tuple[ComparisonSlot, ...]:
        return tuple(self._slots)

    @property
    def insight(self) -> ComparisonInsight | None:
        return self._insight

    def add_slot(self) -> ComparisonSlot:
        """Append an empty slot."""
        if len(self._slots) >= MAX_SLOTS:
            raise SlotLimitError(f"A comparison holds at most {MAX_SLOTS} items")
        slot = self._new_slot()
        self._slots.append(slot)
        self._invalidate_insight()
        return slot

    def remove_slot(self, slot_id: str) -> None:
        """Remove a slot, re-padding with empty slots to the minimum."""
        slot = self._require_idle(slot_id)
        self._slots.remove(slot)
        self._pad()
        self._invalidate_insight()

    def attach_photo(self, slot_id: str, image_bytes: bytes) -> ComparisonSlot:
        return self._attach(slot_id, ExtractionInput.photo(image_bytes))

    def attach_text(self, slot_id: str, text: str) -> ComparisonSlot:
        return self._attach(slot_id, ExtractionInput.from_text(text))

    def attach_manual(
        self, slot_id: str, name: str, amounts: Mapping[str, float]
    ) -> ComparisonSlot:
        return self._attach(slot_id, ExtractionInput.manual(name, amounts))

    def attach_lookup(
        self, slot_id: str, query: str, grams: float | None = None
    ) -> ComparisonSlot:
        return self._attach(slot_id, ExtractionInput.lookup(query, grams))

    def reset_slot(self, slot_id: str) -> ComparisonSlot:
        """Return a slot to empty. Refused while it is being analyzed."""
        slot = self._require_idle(slot_id)
        slot.clear()
        self._invalidate_insight()
        return slot

    def set_focus(self, focus: WellnessFocus | str) -> None:
        self.focus = WellnessFocus.parse(focus)
        self._invalidate_insight()

    def reset_all(self) -> None:
        """Drop every slot and any pending insight."""
        if any(slot.status == SlotStatus.ANALYZING for slot in self._slots):
            raise SlotStateError("Cannot reset while items are being analyzed")
        self._slots.clear()
        self._pad()
        self._invalidate_insight()

    async def analyze_all(self) -> ComparisonResult | None:
        """Analyze every pending slot concurrently and return the result."""
        pending = [slot for slot in self._slots if slot.status == SlotStatus.PENDING]
        for slot in pending:
            slot.status = SlotStatus.ANALYZING
        outcomes = await asyncio.gather(
            *(self._analyze(slot) for slot in pending), return_exceptions=True
        )
        for slot, outcome in zip(pending, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                slot.status = SlotStatus.ERROR
                slot.profile = None
                slot.error = str(outcome) or type(outcome).__name__
                _logger.warning("Slot %s analysis failed: %s", slot.id, slot.error)
            else:
                slot.status = SlotStatus.READY
                slot.profile = outcome
                slot.error = None

        if pending:
            self._invalidate_insight()
        ready = self._ready_slots()
        if len(ready) >= MIN_SLOTS and self.insight_provider is not None:
            if self._insight is None and self._insight_task is None:
                self._schedule_insight(ready)
        return self.result()

    async def wait_for_insight(self) -> ComparisonInsight | None:
        """Wait for the background insight request, if one is running."""
        task = self._insight_task
        if task is not None and not task.done():
            await asyncio.wait([task])
        return self._insight

    def result(self) -> ComparisonResult | None:
        """Return rankings and category comparisons, or None below two ready items."""
        ready = self._ready_slots()
        if len(ready) < MIN_SLOTS:
            return None
        profiles = {slot.id: slot.profile for slot in ready}
        return ComparisonResult(
            focus=self.focus,
            profiles=profiles,
            rankings=tuple(rank_profiles(profiles)),
            category_comparisons=tuple(compare_categories(profiles)),
            insight=self._insight,
        )

    def _attach(self, slot_id: str, extraction_input: ExtractionInput) -> ComparisonSlot:
        slot = self._require_idle(slot_id)
        slot.clear()
        slot.input = extraction_input
        slot.status = SlotStatus.PENDING
        self._invalidate_insight()
        return slot

    async def _analyze(self, slot: ComparisonSlot) -> FoodHealthProfile:
        profile = await self.extractor.extract(slot.input)
        return await self.grading.grade(profile, self.focus, self.targets)

    def _schedule_insight(self, ready: Sequence[ComparisonSlot]) -> None:
        profiles = [slot.profile for slot in ready]
        self._insight_task = asyncio.create_task(
            self._run_insight(profiles, [self.focus], self._generation)
        )

    async def _run_insight(
        self,
        profiles: list[FoodHealthProfile],
        focuses: list[WellnessFocus],
        generation: int,
    ) -> None:
        try:
            insight = await self.insight_provider.compare_insight(profiles, focuses)
        except Exception as exc:
            _logger.warning("Comparison insight failed: %s", exc)
            return
        if generation == self._generation:
            self._insight = insight

    def _invalidate_insight(self) -> None:
        """Drop the cached insight and cancel any request for the old slot set."""
        self._generation += 1
        self._insight = None
        if self._insight_task is not None and not self._insight_task.done():
            self._insight_task.cancel()
        self._insight_task = None

    def _ready_slots(self) -> list[ComparisonSlot]:
        return [slot for slot in self._slots if slot.status == SlotStatus.READY]

    def _find(self, slot_id: str) -> ComparisonSlot:
        for slot in self._slots:
            if slot.id == slot_id:
                return slot
        raise SlotStateError(f"Unknown slot: {slot_id}")

    def _require_idle(self, slot_id: str) -> ComparisonSlot:
        slot = self._find(slot_id)
        if slot.status == SlotStatus.ANALYZING:
            raise SlotStateError(f"Slot {slot_id} is being analyzed")
        return slot

    def _new_slot(self) -> ComparisonSlot:
        slot = ComparisonSlot(id=f"slot-{self._next_id}")
        self._next_id += 1
        return slot

    def _pad(self) -> None:
        while len(self._slots) < MIN_SLOTS:
            self._slots.append(self._new_slot())


def rank_profiles(profiles: Mapping[str, FoodHealthProfile]) -> list[Ranking]:
    """Rank by score descending, then grade, then slot order."""
    ordered = sorted(
        enumerate(profiles.items()),
        key=lambda item: (
            -item[1][1].overall_score,
            item[1][1].overall_grade.rank,
            item[0],
        ),
    )
    return [
        Ranking(
            slot_id=slot_id,
            name=profile.name,
            rank=position,
            score=profile.overall_score,
            grade=profile.overall_grade,
        )
        for position, (_, (slot_id, profile)) in enumerate(ordered, start=1)
    ]


def compare_categories(
    profiles: Mapping[str, FoodHealthProfile],
) -> list[CategoryComparison]:
    """Compare each category across items; ties go to the earlier slot."""
    comparisons = []
    for nutrient_id, lower_is_better in COMPARISON_CATEGORIES:
        values = {
            slot_id: _category_amount(profile, nutrient_id)
            for slot_id, profile in profiles.items()
        }
        lowest = min(values, key=values.__getitem__)
        highest = max(values, key=values.__getitem__)
        comparisons.append(
            CategoryComparison(
                nutrient_id=nutrient_id,
                label=nutrient_label(nutrient_id),
                lower_is_better=lower_is_better,
                values=values,
                best_slot_id=lowest if lower_is_better else highest,
                worst_slot_id=highest if lower_is_better else lowest,
            )
        )
    return comparisons


def _category_amount(profile: FoodHealthProfile, nutrient_id: NutrientId) -> float:
    if nutrient_id == NutrientId.SATURATED_FAT:
        return estimated_saturated_fat(profile.nutrients)
    return profile.nutrients.amount(nutrient_id)
