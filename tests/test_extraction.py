"""Tests for extraction and database lookup."""

import asyncio

import pytest

from nutrition_engine.domain.comparison import ExtractionInput
from nutrition_engine.domain.nutrients import NutrientId
from nutrition_engine.errors import ExtractionError, NutrientValidationError
from nutrition_engine.services.cache import InMemoryCache
from nutrition_engine.services.extraction import (
    EXTRACTION_SCHEMA,
    ExtractionService,
    _to_data_url,
)
from nutrition_engine.services.food_lookup import FoodLookupService, extract_nutrients
from tests.conftest import FakeFdcClient, FakeStructuredClient


def _item(name: str, **nutrients: float | None) -> dict[str, object]:
    return {"name": name, "portion": None, "nutrients": nutrients}


def test_manual_input_passes_through() -> None:
    service = ExtractionService()

    profile = asyncio.run(
        service.extract(ExtractionInput.manual("Oats", {"calories": 150, "fiber": 4}))
    )

    assert profile.name == "Oats"
    assert profile.amount(NutrientId.FIBER) == 4


def test_manual_input_rejects_unknown_nutrients() -> None:
    with pytest.raises(NutrientValidationError):
        asyncio.run(
            ExtractionService().extract(ExtractionInput.manual("Oats", {"zing": 1}))
        )


def test_text_extraction_combines_items() -> None:
    client = FakeStructuredClient(
        responses=[
            {
                "items": [
                    _item("Toast", calories=80, protein=3, sugar=None),
                    _item("Egg", calories=70, protein=6),
                ]
            }
        ]
    )
    service = ExtractionService(client=client)

    profile = asyncio.run(service.extract(ExtractionInput.from_text("toast and an egg")))

    assert profile.name == "Toast + Egg"
    assert profile.amount(NutrientId.PROTEIN) == 9
    assert profile.get(NutrientId.SUGAR) is None
    assert "toast and an egg" in client.requests[0].prompt
    assert client.requests[0].image_data_url is None
    assert client.requests[0].schema is EXTRACTION_SCHEMA


def test_photo_extraction_sends_data_url() -> None:
    client = FakeStructuredClient(responses=[{"items": [_item("Salad", calories=120)]}])
    service = ExtractionService(client=client)

    profile = asyncio.run(service.extract(ExtractionInput.photo(b"\x89PNG\r\n\x1a\nxx")))

    assert profile.calories == 120
    assert client.requests[0].image_data_url.startswith("data:image/png;base64,")


def test_extraction_retries_once() -> None:
    client = FakeStructuredClient(
        responses=[RuntimeError("flaky"), {"items": [_item("Rice", calories=200)]}]
    )
    service = ExtractionService(client=client, retry_delay_seconds=0)

    profile = asyncio.run(service.extract(ExtractionInput.from_text("rice")))

    assert profile.calories == 200
    assert len(client.requests) == 2


def test_empty_or_malformed_results_raise() -> None:
    service = ExtractionService(
        client=FakeStructuredClient(responses=[{"items": []}, {"foods": []}]),
        retry_attempts=0,
    )

    with pytest.raises(ExtractionError):
        asyncio.run(service.extract(ExtractionInput.from_text("air")))
    with pytest.raises(ExtractionError):
        asyncio.run(service.extract(ExtractionInput.from_text("air")))


def test_unconfigured_inputs_raise() -> None:
    service = ExtractionService()

    with pytest.raises(ExtractionError):
        asyncio.run(service.extract(ExtractionInput.from_text("rice")))
    with pytest.raises(ExtractionError):
        asyncio.run(service.extract(ExtractionInput.lookup("rice")))
    with pytest.raises(ExtractionError):
        asyncio.run(service.extract(ExtractionInput.photo(b"")))


def test_lookup_scales_to_grams_and_caches() -> None:
    fdc_client = FakeFdcClient()
    lookup = FoodLookupService(fdc_client=fdc_client, cache=InMemoryCache())
    service = ExtractionService(food_lookup=lookup)

    profile = asyncio.run(service.extract(ExtractionInput.lookup("chicken", grams=200)))
    again = asyncio.run(service.extract(ExtractionInput.lookup("Chicken ")))

    assert profile.calories == 330
    assert profile.amount(NutrientId.PROTEIN) == 62
    assert profile.amount(NutrientId.SATURATED_FAT) == 2
    assert again.calories == 165
    assert fdc_client.search_calls == 1
    assert fdc_client.food_calls == 1


def test_lookup_without_match_raises() -> None:
    lookup = FoodLookupService(fdc_client=FakeFdcClient(), cache=InMemoryCache())

    with pytest.raises(ExtractionError):
        asyncio.run(lookup.lookup("unicorn steak"))


def test_lookup_retries_search() -> None:
    fdc_client = FakeFdcClient(fail_first_search=True)
    lookup = FoodLookupService(
        fdc_client=fdc_client, cache=InMemoryCache(), retry_delay_seconds=0
    )

    matches = asyncio.run(lookup.search("chicken"))

    assert matches[0].fdc_id == 171477
    assert fdc_client.search_calls == 2


def test_extract_nutrients_handles_both_payload_shapes() -> None:
    amounts = extract_nutrients(
        [
            {"nutrient": {"id": 1003}, "amount": 10},
            {"nutrientId": 1093, "value": 400},
            {"nutrientId": 2047, "value": 250},
            {"nutrientId": 1079, "value": None},
        ]
    )

    assert amounts == {
        NutrientId.PROTEIN: 10.0,
        NutrientId.SODIUM: 400.0,
        NutrientId.CALORIES: 250.0,
    }


def test_data_url_defaults_to_jpeg() -> None:
    assert _to_data_url(b"\xff\xd8\xffdata").startswith("data:image/jpeg;base64,")
