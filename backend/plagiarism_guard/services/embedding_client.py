"""Async embedding client wrapper.

Classes:
    EmbeddingClient: Turns a single text into a fixed-dimension vector through an OpenAI-compatible
        embeddings endpoint (OpenAI itself, or a local Ollama server via ``embedding_base_url``).

Calls are made exactly once: no retry is attempted here, redelivery of the bus message is the
retry mechanism.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from plagiarism_guard.core.config import Settings, get_settings
from plagiarism_guard.core.errors import EmbeddingError


class EmbeddingClient:
    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        if client is not None:
            self._client = client
        elif api_key or settings.embedding_base_url:
            self._client = AsyncOpenAI(
                api_key=api_key or "ollama",
                base_url=settings.embedding_base_url,
                timeout=settings.embedding_timeout_seconds,
                max_retries=0,
            )
        else:
            self._client = None
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def embed(self, text: str) -> list[float]:
        if self._client is None:
            raise EmbeddingError(
                "Embedding client not configured. Set OPENAI_API_KEY or EMBEDDING_BASE_URL."
            )

        payload = dict(model=self._settings.embedding_model, input=text)
        if self._settings.embedding_base_url is None:
            payload["dimensions"] = self._settings.embedding_dim

        try:
            response = await asyncio.wait_for(
                self._client.embeddings.create(**payload),
                timeout=self._settings.embedding_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise EmbeddingError(
                f"embedding request timed out after {self._settings.embedding_timeout_seconds}s"
            ) from exc
        except OpenAIError as exc:
            raise EmbeddingError(f"embedding provider error: {exc}") from exc

        if not response.data:
            raise EmbeddingError("embedding provider returned no vectors")
        return [float(value) for value in response.data[0].embedding]
