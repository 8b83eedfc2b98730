"""USDA FoodData Central API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

DEFAULT_TIMEOUT_SECONDS = 15.0


class FdcClient(Protocol):
    """Interface for FoodData Central lookups."""

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        """Search foods by free text and return the raw payload."""

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        """Fetch one food with its full nutrient list."""


@dataclass
class HttpxFdcClient(FdcClient):
    """FDC client over a shared httpx session."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    ) -> "HttpxFdcClient":
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def search_foods(self, query: str, page_size: int = 5) -> dict[str, object]:
        # Survey and Foundation foods carry the most complete nutrient panels.
        response = await self.http_client.post(
            f"{self.base_url}/foods/search",
            params={"api_key": self.api_key},
            json={
                "query": query,
                "pageSize": page_size,
                "dataType": ["Survey (FNDDS)", "Foundation", "SR Legacy", "Branded"],
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def get_food(self, fdc_id: int) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}/food/{fdc_id}",
            params={"api_key": self.api_key},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self.http_client.aclose()
