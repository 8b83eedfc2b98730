"""OpenAI Responses API client for structured JSON outputs."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_engine.errors import CollaboratorError
from nutrition_engine.services.structured import StructuredClient, StructuredRequest


@dataclass
class OpenAIStructuredClient(StructuredClient):
    """Structured client backed by the OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        model: str,
        *,
        reasoning_effort: str | None = None,
        store: bool = False,
        timeout_seconds: float = 30.0,
    ) -> "OpenAIStructuredClient":
        """Create a client with its own OpenAI session."""
        return cls(
            client=AsyncOpenAI(api_key=api_key, timeout=timeout_seconds),
            model=model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def generate(self, request: StructuredRequest) -> dict[str, object]:
        """Send a prompt, plus an optional image, and parse the JSON reply."""
        content: list[dict[str, object]] = [
            {"type": "input_text", "text": request.prompt}
        ]
        if request.image_data_url:
            content.append({"type": "input_image", "image_url": request.image_data_url})

        payload: dict[str, object] = {
            "model": self.model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": request.schema_name,
                    "strict": True,
                    "schema": request.schema,
                }
            },
            "store": self.store,
        }
        if request.instructions:
            payload["instructions"] = request.instructions
        if self.reasoning_effort:
            payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**payload)
        output_text = response.output_text
        if not output_text:
            raise CollaboratorError(f"OpenAI returned an empty {request.schema_name} response")
        return json.loads(output_text)

    async def close(self) -> None:
        await self.client.close()
