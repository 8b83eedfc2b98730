"""Tests for HTTP and OpenAI adapters."""

import asyncio
import json

import httpx
import pytest

from nutrition_engine.adapters.fdc_client import HttpxFdcClient
from nutrition_engine.adapters.openai_structured_client import OpenAIStructuredClient
from nutrition_engine.errors import CollaboratorError
from nutrition_engine.services.structured import StructuredRequest


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


def test_openai_structured_client_builds_request() -> None:
    fake = _FakeOpenAI(json.dumps({"items": []}))
    client = OpenAIStructuredClient(
        client=fake, model="gpt-5.2", reasoning_effort="low", store=False
    )

    result = asyncio.run(
        client.generate(
            StructuredRequest(
                schema_name="food_extraction",
                schema={"type": "object"},
                prompt="Detect foods",
                instructions="Be precise",
                image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            )
        )
    )

    assert result == {"items": []}
    payload = fake.responses.last_payload
    assert payload["model"] == "gpt-5.2"
    assert payload["reasoning"] == {"effort": "low"}
    assert payload["instructions"] == "Be precise"
    assert payload["text"]["format"]["name"] == "food_extraction"
    assert payload["text"]["format"]["strict"] is True
    content = payload["input"][0]["content"]
    assert content[1] == {
        "type": "input_image",
        "image_url": "data:image/jpeg;base64,ZmFrZQ==",
    }


def test_openai_structured_client_text_only() -> None:
    fake = _FakeOpenAI(json.dumps({"overall_grade": "A"}))
    client = OpenAIStructuredClient(client=fake, model="gpt-5.2")

    asyncio.run(
        client.generate(
            StructuredRequest(schema_name="food_grading", schema={}, prompt="Grade")
        )
    )

    payload = fake.responses.last_payload
    assert len(payload["input"][0]["content"]) == 1
    assert "reasoning" not in payload
    assert "instructions" not in payload


def test_openai_structured_client_rejects_empty_output() -> None:
    client = OpenAIStructuredClient(client=_FakeOpenAI(""), model="gpt-5.2")

    with pytest.raises(CollaboratorError):
        asyncio.run(
            client.generate(
                StructuredRequest(schema_name="food_grading", schema={}, prompt="x")
            )
        )


def test_fdc_client_search_and_get() -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        assert request.url.params["api_key"] == "key"
        if request.url.path.endswith("/foods/search"):
            payload = json.loads(request.content.decode())
            assert payload["query"] == "apple"
            assert payload["pageSize"] == 2
            return httpx.Response(200, json={"foods": [{"fdcId": 1}]})
        return httpx.Response(200, json={"fdcId": 1, "foodNutrients": []})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxFdcClient(api_key="key", base_url="https://fdc.test", http_client=async_client)

    async def run() -> tuple[dict[str, object], dict[str, object]]:
        search = await client.search_foods("apple", page_size=2)
        food = await client.get_food(1)
        await client.close()
        return search, food

    search, food = asyncio.run(run())

    assert search["foods"] == [{"fdcId": 1}]
    assert food["fdcId"] == 1
    assert seen == [("POST", "/foods/search"), ("GET", "/food/1")]


def test_fdc_client_raises_on_http_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    client = HttpxFdcClient(
        api_key="key",
        base_url="https://fdc.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_food(5))
