"""Unit tests for the embedding client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.core.constants import EMBEDDING_INPUT_LIMIT, EMBEDDING_PLACEHOLDER
from app.services.embedding import EmbeddingClient, prepare_input


def _patched_httpx(response: MagicMock | None = None, error: Exception | None = None):
    patcher = patch("httpx.AsyncClient")
    mock_client_class = patcher.start()
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        mock_client.post = AsyncMock(side_effect=error)
    else:
        mock_client.post = AsyncMock(return_value=response)
    mock_client_class.return_value = mock_client
    return patcher, mock_client


def _response(vector: list[float]) -> MagicMock:
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json.return_value = {"data": [{"embedding": vector}]}
    return response


class TestPrepareInput:

    def test_blank_becomes_placeholder(self) -> None:
        assert prepare_input("") == EMBEDDING_PLACEHOLDER
        assert prepare_input("   \n\t") == EMBEDDING_PLACEHOLDER
        assert prepare_input(None) == EMBEDDING_PLACEHOLDER

    def test_long_input_truncated_to_prefix(self) -> None:
        text = "a" * EMBEDDING_INPUT_LIMIT + "tail"
        prepared = prepare_input(text)
        assert len(prepared) == EMBEDDING_INPUT_LIMIT
        assert prepared == text[:EMBEDDING_INPUT_LIMIT]

    def test_truncation_is_deterministic(self) -> None:
        text = "resume " * 10_000
        assert prepare_input(text, 100) == prepare_input(text, 100)

    def test_short_input_unchanged(self) -> None:
        assert prepare_input("Python developer") == "Python developer"


class TestEmbed:

    @pytest.mark.asyncio
    async def test_returns_vector_of_configured_dimension(self) -> None:
        client = EmbeddingClient(api_key="sk-test", dimensions=3)
        patcher, mock_http = _patched_httpx(_response([0.1, 0.2, 0.3]))
        try:
            vector = await client.embed("Bookkeeper with QuickBooks")
        finally:
            patcher.stop()

        assert vector == [0.1, 0.2, 0.3]
        request_json = mock_http.post.call_args.kwargs["json"]
        assert request_json["model"] == "text-embedding-3-small"
        assert request_json["input"] == "Bookkeeper with QuickBooks"
        assert request_json["dimensions"] == 3
        assert mock_http.post.call_args.args[0] == "https://api.openai.com/v1/embeddings"

    @pytest.mark.asyncio
    async def test_blank_text_sends_placeholder(self) -> None:
        client = EmbeddingClient(api_key="sk-test", dimensions=2)
        patcher, mock_http = _patched_httpx(_response([0.5, 0.5]))
        try:
            await client.embed("   ")
        finally:
            patcher.stop()

        assert mock_http.post.call_args.kwargs["json"]["input"] == EMBEDDING_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self) -> None:
        client = EmbeddingClient(api_key="sk-test")
        patcher, mock_http = _patched_httpx(error=httpx.ConnectError("refused"))
        try:
            vector = await client.embed("text")
        finally:
            patcher.stop()

        assert vector == []
        mock_http.post.assert_awaited_once()  # no retries

    @pytest.mark.asyncio
    async def test_http_status_error_returns_empty(self) -> None:
        response = MagicMock()
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError(
                "429", request=MagicMock(), response=MagicMock(status_code=429)
            )
        )
        client = EmbeddingClient(api_key="sk-test")
        patcher, _ = _patched_httpx(response)
        try:
            assert await client.embed("text") == []
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_empty(self) -> None:
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {"unexpected": True}
        client = EmbeddingClient(api_key="sk-test")
        patcher, _ = _patched_httpx(response)
        try:
            assert await client.embed("text") == []
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_dimension_mismatch_returns_empty(self) -> None:
        client = EmbeddingClient(api_key="sk-test", dimensions=1536)
        patcher, _ = _patched_httpx(_response([0.1, 0.2]))
        try:
            assert await client.embed("text") == []
        finally:
            patcher.stop()
