"""
Embedding provider adapter.

Wraps any LangChain Embeddings implementation behind an async interface
that bounds every call with a timeout and classifies failures:
TransientProviderError (retry later) or PermanentValidationError
(never retried).

Dependencies: langchain_core, botocore, worknote.core.exceptions
System role: Embedding generation boundary for ingestion and search
"""

import asyncio
import logging
from typing import Protocol, Sequence, runtime_checkable

from botocore.exceptions import ClientError
from langchain_core.embeddings import Embeddings

from worknote.core.exceptions import (
    EmbeddingError,
    PermanentValidationError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

# Provider error codes that resubmitting the same input will never fix
PERMANENT_CLIENT_ERROR_CODES = frozenset(
    {"ValidationException", "AccessDeniedException", "ResourceNotFoundException"}
)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Async embedding contract used by ingestion and search."""

    async def embed(self, text: str) -> list[float]:
        """Embed a single text (search queries)."""
        ...

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed many texts, preserving order."""
        ...


def classify_provider_error(exc: Exception) -> EmbeddingError:
    """
    Map a raw provider exception onto the retry taxonomy.

    Args:
        exc: Exception raised by the LangChain client or its SDK

    Returns:
        EmbeddingError: Transient unless the input itself was rejected
    """
    details = {"error_type": type(exc).__name__}

    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        details["error_code"] = code
        if code in PERMANENT_CLIENT_ERROR_CODES:
            return PermanentValidationError(f"Embedding request rejected: {code}", details=details)
        return TransientProviderError(f"Embedding provider error: {code or exc}", details=details)

    if isinstance(exc, (ValueError, TypeError)):
        return PermanentValidationError(f"Embedding input rejected: {exc}", details=details)

    return TransientProviderError(f"Embedding provider failure: {exc}", details=details)


class LangChainEmbeddingProvider:
    """
    EmbeddingProvider backed by a LangChain Embeddings model.

    LangChain clients are synchronous, so calls run on a worker thread and
    are bounded by asyncio.wait_for. A timed-out thread is left to finish
    on its own; its result is discarded.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        timeout_seconds: float = 30.0,
        dimension: int | None = None,
        batch_size: int = 100,
    ) -> None:
        """
        Initialize provider.

        Args:
            embeddings: LangChain embeddings model
            timeout_seconds: Upper bound per provider call
            dimension: Expected vector size; mismatches are permanent errors
            batch_size: Maximum texts per provider call
        """
        self._embeddings = embeddings
        self._timeout_seconds = timeout_seconds
        self._dimension = dimension
        self._batch_size = max(1, batch_size)

    @property
    def dimension(self) -> int | None:
        """Expected vector dimension."""
        return self._dimension

    async def _call(self, func, *args):
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TransientProviderError(
                f"Embedding request timed out after {self._timeout_seconds}s",
                details={"timeout_seconds": self._timeout_seconds},
            ) from e
        except EmbeddingError:
            raise
        except Exception as e:
            raise classify_provider_error(e) from e

    def _check_vector(self, vector: Sequence[float]) -> list[float]:
        if self._dimension is not None and len(vector) != self._dimension:
            raise PermanentValidationError(
                f"Embedding dimension mismatch: expected {self._dimension}, got {len(vector)}",
                details={"expected": self._dimension, "actual": len(vector)},
            )
        return [float(value) for value in vector]

    async def embed(self, text: str) -> list[float]:
        """
        Embed a search query.

        Raises:
            PermanentValidationError: Empty text or wrong dimension
            TransientProviderError: Timeout or provider failure
        """
        if not text or not text.strip():
            raise PermanentValidationError("Cannot embed empty text")
        vector = await self._call(self._embeddings.embed_query, text)
        return self._check_vector(vector)

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed chunk texts in provider-sized batches.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in input order

        Raises:
            PermanentValidationError: Empty text or wrong dimension
            TransientProviderError: Timeout, provider failure, or a short response
        """
        for position, text in enumerate(texts):
            if not text or not text.strip():
                raise PermanentValidationError(
                    "Cannot embed empty text",
                    details={"position": position},
                )

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = list(texts[start : start + self._batch_size])
            result = await self._call(self._embeddings.embed_documents, batch)
            if len(result) != len(batch):
                raise TransientProviderError(
                    f"Embedding provider returned {len(result)} vectors for {len(batch)} texts"
                )
            vectors.extend(self._check_vector(vector) for vector in result)

        logger.debug(
            f"{__name__}:embed_batch - Embedded {len(vectors)} texts",
            extra={"text_count": len(texts)},
        )
        return vectors
