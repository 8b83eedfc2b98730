"""Shared plumbing for LLM and HTTP collaborators."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StructuredRequest:
    """Prompt plus JSON schema for a structured-output call."""

    schema_name: str
    schema: dict[str, object]
    prompt: str
    instructions: str | None = None
    image_data_url: str | None = None


class StructuredClient(Protocol):
    """Interface for LLM calls that return schema-conforming JSON."""

    async def generate(self, request: StructuredRequest) -> dict[str, object]:
        """Return the parsed JSON object produced for the request."""


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    action: str,
    retry_attempts: int = 1,
    retry_delay_seconds: float = 0.3,
) -> T:
    """Call an async function, retrying a fixed number of times on failure."""
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            attempt += 1
            _logger.warning(
                "%s failed (attempt %s/%s, status=%s): %s",
                action,
                attempt,
                retry_attempts + 1,
                status_code_from_exception(exc),
                exc,
            )
            if attempt > retry_attempts:
                raise
            await asyncio.sleep(retry_delay_seconds)


def status_code_from_exception(exc: Exception) -> str:
    """Extract an HTTP status code from an exception, if it carries one."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
