"""Embedding providers.

``Embeddings`` is the contract the vector store consumes. The store never
retries or wraps provider errors; the retry policy belongs to the provider.

``EmbeddingServiceClient`` talks to an HTTP embedding service exposing
``POST /api/v1/embed`` (``{"items": [{"text": ...}], "model": ...}`` in,
``{"vectors": [[...], ...]}`` out).
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Awaitable, List, Optional, Sequence

import httpx
import structlog

logger = structlog.get_logger("vector_store.embeddings")


class Embeddings(ABC):
    """Text to vector conversion."""

    @abstractmethod
    async def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed a batch of texts, preserving order and length."""

    @abstractmethod
    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query text."""


class EmbeddingServiceError(Exception):
    """Embedding service returned an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class EmbeddingServiceClient(Embeddings):
    """Embeddings backed by the HTTP embedding service.

    Transport errors and 5xx responses are retried with exponential backoff;
    4xx responses fail immediately.
    """

    def __init__(
        self,
        base_url: str,
        model: str = "default",
        timeout: float = 30.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 8.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Configure the client.

        Parameters
        - base_url: Service root, e.g. ``http://localhost:9006``
        - model: Model name sent with every request
        - timeout: Per-request timeout in seconds
        - max_attempts: Total attempts per request, including the first
        - base_delay: First backoff delay in seconds, doubled per attempt
        - max_delay: Backoff ceiling in seconds
        - http_client: Preconfigured client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "EmbeddingServiceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http_client.aclose()

    async def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        return await self._call_with_retry(
            lambda: self._embed(texts),
            operation_name="embed_documents",
        )

    async def embed_query(self, text: str) -> List[float]:
        vectors = await self._call_with_retry(
            lambda: self._embed([text]),
            operation_name="embed_query",
        )
        return vectors[0]

    async def _embed(self, texts: Sequence[str]) -> List[List[float]]:
        """POST texts to the embedding service and return its vectors."""
        try:
            response = await self._http_client.post(
                f"{self.base_url}/api/v1/embed",
                json={
                    "items": [{"text": text} for text in texts],
                    "model": self.model,
                },
            )
        except httpx.TransportError as e:
            raise EmbeddingServiceError(f"Embedding service unreachable: {e}") from e

        if response.status_code != 200:
            raise EmbeddingServiceError(
                f"Embedding service returned status {response.status_code}",
                status_code=response.status_code,
            )

        vectors = response.json().get("vectors", [])
        if len(vectors) != len(texts):
            raise EmbeddingServiceError(
                f"Embedding service returned {len(vectors)} vectors for {len(texts)} texts",
                status_code=response.status_code,
            )
        return [[float(value) for value in vector] for vector in vectors]

    async def _call_with_retry(
        self,
        func: Callable[[], Awaitable[Any]],
        operation_name: str,
    ) -> Any:
        """Execute a coroutine-returning callable with retry and backoff."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await func()
            except EmbeddingServiceError as exc:
                if not exc.retryable or attempt == self.max_attempts:
                    logger.error(
                        "Embedding request failed",
                        operation=operation_name,
                        attempts=attempt,
                        status_code=exc.status_code,
                        error=str(exc),
                    )
                    raise

                delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
                logger.warning(
                    "Embedding request failed, retrying",
                    operation=operation_name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_seconds=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)

        raise RuntimeError(f"Retry logic failed for {operation_name}")
