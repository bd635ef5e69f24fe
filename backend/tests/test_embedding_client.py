"""Tests for the embedding client wrapper."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from plagiarism_guard.core.errors import EmbeddingError
from plagiarism_guard.services.embedding_client import EmbeddingClient


class FakeEmbeddingsAPI:
    def __init__(self, *, vector=None, error: Exception | None = None, delay: float = 0.0, empty: bool = False) -> None:
        self.vector = vector or [0.25, 0.75]
        self.error = error
        self.delay = delay
        self.empty = empty
        self.payloads: list[dict] = []

    async def create(self, **payload):
        self.payloads.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        data = [] if self.empty else [SimpleNamespace(embedding=self.vector)]
        return SimpleNamespace(data=data, model=payload["model"])


def _client(api: FakeEmbeddingsAPI) -> SimpleNamespace:
    return SimpleNamespace(embeddings=api)


@pytest.mark.asyncio
async def test_embed_returns_vector_and_requests_configured_dimensions(settings):
    api = FakeEmbeddingsAPI()
    client = EmbeddingClient(_client(api), settings=settings)

    vector = await client.embed("some essay")

    assert vector == [0.25, 0.75]
    assert api.payloads == [
        {"model": settings.embedding_model, "input": "some essay", "dimensions": settings.embedding_dim}
    ]


@pytest.mark.asyncio
async def test_embed_omits_dimensions_for_custom_endpoint(settings):
    api = FakeEmbeddingsAPI()
    client = EmbeddingClient(
        _client(api),
        settings=settings.model_copy(update={"embedding_base_url": "http://localhost:11434/v1"}),
    )

    await client.embed("some essay")

    assert "dimensions" not in api.payloads[0]


@pytest.mark.asyncio
async def test_provider_error_becomes_embedding_error(settings):
    client = EmbeddingClient(_client(FakeEmbeddingsAPI(error=OpenAIError("Ollama down"))), settings=settings)

    with pytest.raises(EmbeddingError, match="Ollama down"):
        await client.embed("some essay")


@pytest.mark.asyncio
async def test_slow_provider_times_out(settings):
    client = EmbeddingClient(
        _client(FakeEmbeddingsAPI(delay=1.0)),
        settings=settings.model_copy(update={"embedding_timeout_seconds": 0.01}),
    )

    with pytest.raises(EmbeddingError, match="timed out"):
        await client.embed("some essay")


@pytest.mark.asyncio
async def test_empty_response_is_an_error(settings):
    client = EmbeddingClient(_client(FakeEmbeddingsAPI(empty=True)), settings=settings)

    with pytest.raises(EmbeddingError):
        await client.embed("some essay")


@pytest.mark.asyncio
async def test_unconfigured_client_raises(settings):
    client = EmbeddingClient(settings=settings.model_copy(update={"openai_api_key": None, "embedding_base_url": None}))

    assert not client.is_configured
    with pytest.raises(EmbeddingError, match="not configured"):
        await client.embed("some essay")
