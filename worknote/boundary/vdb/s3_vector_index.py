"""
Amazon S3 Vectors index for production retrieval.

Talks to the s3vectors API directly with precomputed vectors. Metadata
keys entity_id, scope, project_id, category, chunk_index and chunk_id are
filterable; text_content must be declared non-filterable on the index.

Dependencies: boto3, botocore, tenacity
System role: Production vector index (S3 Vectors)
"""

import asyncio
import logging
from typing import Any, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from worknote.boundary.vdb.vector_schemas import VectorEntry, VectorHit
from worknote.core.chunker import generate_chunk_id
from worknote.core.exceptions import VectorStoreError

logger = logging.getLogger(__name__)

TEXT_METADATA_KEY = "text_content"
# s3vectors GetVectors / DeleteVectors accept at most 100 keys per call
MAX_KEYS_PER_CALL = 100
THROTTLING_ERROR_CODES = frozenset(
    {"ThrottlingException", "TooManyRequestsException", "ServiceUnavailableException"}
)


def _is_retryable_client_error(exc: BaseException) -> bool:
    """Throttling and 5xx responses are worth a short in-call retry."""
    if not isinstance(exc, ClientError):
        return False
    error = exc.response.get("Error", {})
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return error.get("Code") in THROTTLING_ERROR_CODES or status >= 500


_s3_retry = retry(
    retry=retry_if_exception(_is_retryable_client_error),
    stop=stop_after_attempt(3),
    wait=wait_exponential_jitter(initial=0.5, max=5, jitter=0.5),
    before_sleep=lambda retry_state: logger.warning(
        f"{__name__} - S3 Vectors retry {retry_state.attempt_number}/3 after throttling"
    ),
    reraise=True,
)


def build_metadata_filter(filter: dict[str, str] | None) -> dict[str, Any] | None:
    """
    Translate an equality filter into the s3vectors filter syntax.

    Args:
        filter: Metadata key -> required value

    Returns:
        dict | None: {"key": {"$eq": value}} or an "$and" of such clauses
    """
    if not filter:
        return None
    clauses = [{key: {"$eq": value}} for key, value in filter.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class S3VectorsIndex:
    """
    S3 Vectors index.

    Vectors are keyed by chunk id. Chunk indices of an entity are always
    contiguous from 0, so the entity scan probes keys {entity}#chunk0..N in
    batches until a batch comes back incomplete.
    """

    def __init__(
        self,
        vectors_bucket: str,
        index_name: str,
        region: str = "ap-northeast-2",
        upsert_batch_size: int = 100,
        prefix_scan_limit: int = 500,
        client: Any | None = None,
    ) -> None:
        """
        Initialize S3 Vectors index.

        Args:
            vectors_bucket: S3 Vectors bucket name
            index_name: Index name within the bucket
            region: AWS region for S3 Vectors
            upsert_batch_size: Maximum vectors per PutVectors call
            prefix_scan_limit: Maximum chunk ids returned per entity scan
            client: Preconfigured boto3 s3vectors client (tests)
        """
        self._vectors_bucket = vectors_bucket
        self._index_name = index_name
        self._upsert_batch_size = max(1, min(upsert_batch_size, MAX_KEYS_PER_CALL))
        self._prefix_scan_limit = prefix_scan_limit
        self.client = client or boto3.client("s3vectors", region_name=region)

    @property
    def _target(self) -> dict[str, str]:
        return {"vectorBucketName": self._vectors_bucket, "indexName": self._index_name}

    @_s3_retry
    def _put_vectors(self, vectors: list[dict[str, Any]]) -> None:
        self.client.put_vectors(**self._target, vectors=vectors)

    @_s3_retry
    def _query_vectors(self, **kwargs: Any) -> dict[str, Any]:
        return self.client.query_vectors(**self._target, **kwargs)

    @_s3_retry
    def _delete_vectors(self, keys: list[str]) -> None:
        self.client.delete_vectors(**self._target, keys=keys)

    @_s3_retry
    def _get_vectors(self, keys: list[str]) -> dict[str, Any]:
        return self.client.get_vectors(
            **self._target,
            keys=keys,
            returnData=False,
            returnMetadata=False,
        )

    def _upsert_sync(self, entries: Sequence[VectorEntry]) -> None:
        for start in range(0, len(entries), self._upsert_batch_size):
            batch = entries[start : start + self._upsert_batch_size]
            self._put_vectors(
                [
                    {
                        "key": entry.chunk_id,
                        "data": {"float32": [float(value) for value in entry.vector]},
                        "metadata": {**entry.metadata, TEXT_METADATA_KEY: entry.text},
                    }
                    for entry in batch
                ]
            )

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        """
        Insert or overwrite vectors (PutVectors overwrites existing keys).

        Raises:
            VectorStoreError: If S3 Vectors rejects the request
        """
        if not entries:
            return
        try:
            await asyncio.to_thread(self._upsert_sync, list(entries))
        except (ClientError, BotoCoreError) as e:
            raise VectorStoreError(
                message="Failed to upsert vectors to S3 Vectors",
                operation="upsert",
                details={"error": str(e), "vector_count": len(entries)},
            ) from e
        logger.info(f"{__name__}:upsert - Upserted {len(entries)} vectors")

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: dict[str, str] | None = None,
    ) -> list[VectorHit]:
        """
        Nearest chunks to a query vector, closest first.

        Raises:
            VectorStoreError: If the query fails
        """
        kwargs: dict[str, Any] = {
            "queryVector": {"float32": [float(value) for value in vector]},
            "topK": top_k,
            "returnMetadata": True,
            "returnDistance": True,
        }
        metadata_filter = build_metadata_filter(filter)
        if metadata_filter:
            kwargs["filter"] = metadata_filter

        try:
            response = await asyncio.to_thread(self._query_vectors, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise VectorStoreError(
                message="Failed to query S3 Vectors",
                operation="query",
                details={"error": str(e)},
            ) from e

        hits = []
        for match in response.get("vectors", []):
            metadata = {
                key: str(value)
                for key, value in (match.get("metadata") or {}).items()
                if key != TEXT_METADATA_KEY
            }
            hits.append(
                VectorHit(
                    chunk_id=match["key"],
                    score=float(match.get("distance", 0.0)),
                    metadata=metadata,
                )
            )
        return hits

    def _delete_sync(self, ids: Sequence[str]) -> None:
        for start in range(0, len(ids), MAX_KEYS_PER_CALL):
            self._delete_vectors(list(ids[start : start + MAX_KEYS_PER_CALL]))

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        """
        Delete vectors by chunk id; unknown keys are ignored by the service.

        Raises:
            VectorStoreError: If the deletion fails
        """
        if not ids:
            return
        try:
            await asyncio.to_thread(self._delete_sync, list(ids))
        except (ClientError, BotoCoreError) as e:
            raise VectorStoreError(
                message="Failed to delete vectors from S3 Vectors",
                operation="delete",
                details={"error": str(e), "vector_count": len(ids)},
            ) from e
        logger.info("Deleted chunk vectors", extra={"vector_count": len(ids)})

    def _entity_scan_sync(self, entity_id: str) -> list[str]:
        found: list[str] = []
        start = 0
        while start < self._prefix_scan_limit:
            size = min(MAX_KEYS_PER_CALL, self._prefix_scan_limit - start)
            keys = [generate_chunk_id(entity_id, index) for index in range(start, start + size)]
            response = self._get_vectors(keys)
            present = {vector["key"] for vector in response.get("vectors", [])}
            found.extend(key for key in keys if key in present)
            if len(present) < size:
                break
            start += size
        return found

    async def query_by_entity_prefix(self, entity_id: str) -> list[str]:
        """
        Chunk ids currently stored for an entity, in index order.

        Raises:
            VectorStoreError: If the scan fails
        """
        try:
            return await asyncio.to_thread(self._entity_scan_sync, entity_id)
        except (ClientError, BotoCoreError) as e:
            raise VectorStoreError(
                message="Failed to list entity vectors in S3 Vectors",
                operation="list",
                details={"error": str(e), "entity_id": entity_id},
            ) from e
