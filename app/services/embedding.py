"""Embedding client for an OpenAI-compatible ``/embeddings`` endpoint.

Turns arbitrary text into a fixed-dimension vector.  Failures never raise:
the caller receives an empty list and treats it as "no embedding available".
Retry policy belongs to callers; this client makes exactly one request.
"""

from __future__ import annotations

import logging

import httpx

from app.core.constants import EMBEDDING_INPUT_LIMIT, EMBEDDING_PLACEHOLDER

logger = logging.getLogger(__name__)


def prepare_input(text: str | None, limit: int = EMBEDDING_INPUT_LIMIT) -> str:
    """Normalize *text* for submission.

    Blank input becomes ``EMBEDDING_PLACEHOLDER`` so the request never
    degenerates to an empty string; long input keeps its first *limit*
    characters.
    """
    if text is None or not text.strip():
        return EMBEDDING_PLACEHOLDER
    return text[:limit]


class EmbeddingClient:
    """Text -> vector via the provider's embeddings API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-3-small",
        dimensions: int = 1536,
        timeout: float = 30.0,
        input_limit: int = EMBEDDING_INPUT_LIMIT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout
        self.input_limit = input_limit

    async def embed(self, text: str | None) -> list[float]:
        """Return the embedding for *text*, or ``[]`` on any failure."""
        payload = {
            "model": self.model,
            "input": prepare_input(text, self.input_limit),
            "dimensions": self.dimensions,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/embeddings",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
            vector = [float(v) for v in data["data"][0]["embedding"]]
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning(
                "embedding_request_failed",
                extra={
                    "model": self.model,
                    "input_length": len(payload["input"]),
                    "error_message": str(exc),
                },
            )
            return []

        if len(vector) != self.dimensions:
            logger.warning(
                "embedding_dimension_mismatch",
                extra={"expected": self.dimensions, "received": len(vector)},
            )
            return []

        return vector
