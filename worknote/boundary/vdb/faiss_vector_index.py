"""
FAISS vector index for local development.

Uses the LangChain FAISS wrapper with precomputed vectors, metadata
filtering, and optional persistence to disk so the index survives
restarts.

Dependencies: faiss-cpu, langchain_community, langchain_core
System role: Local vector index for development and tests
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Sequence

import faiss
from langchain_community.docstore.in_memory import InMemoryDocstore
from langchain_community.vectorstores import FAISS
from langchain_core.embeddings import DeterministicFakeEmbedding

from worknote.boundary.vdb.vector_schemas import VectorEntry, VectorHit
from worknote.core.chunker import CHUNK_ID_MARKER, parse_chunk_id
from worknote.core.exceptions import ChunkIdFormatError, VectorStoreError

logger = logging.getLogger(__name__)


class FAISSVectorIndex:
    """
    FAISS vector index.

    Vectors are always supplied precomputed, so the embedding function
    handed to LangChain is never called for indexing or querying. All
    FAISS access is serialized by a lock and runs on a worker thread.
    """

    def __init__(
        self,
        dimension: int,
        index_dir: str | Path | None = None,
        index_name: str = "work-notes",
        prefix_scan_limit: int = 500,
    ) -> None:
        """
        Initialize FAISS vector index.

        Args:
            dimension: Vector dimension
            index_dir: Directory to persist the index in (None keeps it in memory)
            index_name: Index file name within index_dir
            prefix_scan_limit: Maximum chunk ids returned per entity scan
        """
        self._dimension = dimension
        self._index_dir = Path(index_dir) if index_dir else None
        self._index_name = index_name
        self._prefix_scan_limit = prefix_scan_limit
        self._lock = threading.Lock()
        self._embeddings = DeterministicFakeEmbedding(size=dimension)
        self._vector_store = self._load_or_create_index()

    def _load_or_create_index(self) -> FAISS:
        """Load existing FAISS index or create an empty one."""
        if self._index_dir is not None:
            self._index_dir.mkdir(parents=True, exist_ok=True)
            if (self._index_dir / f"{self._index_name}.faiss").exists():
                logger.info(f"{__name__}:_load_or_create_index - Loading index from {self._index_dir}")
                return FAISS.load_local(
                    str(self._index_dir),
                    self._embeddings,
                    index_name=self._index_name,
                    allow_dangerous_deserialization=True,
                )

        logger.info(
            f"{__name__}:_load_or_create_index - Creating new FAISS index",
            extra={"dimension": self._dimension},
        )
        return FAISS(
            embedding_function=self._embeddings,
            index=faiss.IndexFlatL2(self._dimension),
            docstore=InMemoryDocstore(),
            index_to_docstore_id={},
        )

    def _stored_ids(self) -> list[str]:
        return list(self._vector_store.docstore._dict.keys())

    def _persist(self) -> None:
        if self._index_dir is not None:
            self._vector_store.save_local(str(self._index_dir), index_name=self._index_name)

    def _upsert_sync(self, entries: Sequence[VectorEntry]) -> None:
        with self._lock:
            stored = set(self._stored_ids())
            replaced = [entry.chunk_id for entry in entries if entry.chunk_id in stored]
            if replaced:
                self._vector_store.delete(ids=replaced)
            self._vector_store.add_embeddings(
                text_embeddings=[(entry.text, entry.vector) for entry in entries],
                metadatas=[entry.metadata for entry in entries],
                ids=[entry.chunk_id for entry in entries],
            )
            self._persist()

    async def upsert(self, entries: Sequence[VectorEntry]) -> None:
        """
        Insert or overwrite vectors by chunk id.

        Raises:
            VectorStoreError: If FAISS rejects the vectors
        """
        if not entries:
            return
        for entry in entries:
            if len(entry.vector) != self._dimension:
                raise VectorStoreError(
                    f"Vector dimension {len(entry.vector)} does not match index dimension {self._dimension}",
                    operation="upsert",
                    details={"chunk_id": entry.chunk_id},
                )
        try:
            await asyncio.to_thread(self._upsert_sync, list(entries))
        except Exception as e:
            raise VectorStoreError(f"Failed to upsert vectors: {e}", operation="upsert") from e
        logger.info(f"{__name__}:upsert - Upserted {len(entries)} vectors")

    def _query_sync(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: dict[str, str] | None,
    ) -> list[VectorHit]:
        with self._lock:
            results = self._vector_store.similarity_search_with_score_by_vector(
                embedding=list(vector),
                k=top_k,
                filter=filter or None,
                fetch_k=max(top_k * 4, 20),
            )
        return [
            VectorHit(
                chunk_id=doc.metadata.get("chunk_id", doc.id or ""),
                # L2 distance: lower is closer
                score=float(score),
                metadata={key: str(value) for key, value in doc.metadata.items()},
            )
            for doc, score in results
        ]

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: dict[str, str] | None = None,
    ) -> list[VectorHit]:
        """
        Nearest chunks to a query vector.

        Raises:
            VectorStoreError: If the search fails
        """
        try:
            return await asyncio.to_thread(self._query_sync, vector, top_k, filter)
        except Exception as e:
            raise VectorStoreError(f"Vector query failed: {e}", operation="query") from e

    def _delete_sync(self, ids: Sequence[str]) -> int:
        with self._lock:
            stored = set(self._stored_ids())
            present = [chunk_id for chunk_id in ids if chunk_id in stored]
            if present:
                self._vector_store.delete(ids=present)
                self._persist()
            return len(present)

    async def delete_by_ids(self, ids: Sequence[str]) -> None:
        """
        Delete vectors by chunk id; unknown ids are ignored.

        Raises:
            VectorStoreError: If the deletion fails
        """
        if not ids:
            return
        try:
            deleted = await asyncio.to_thread(self._delete_sync, list(ids))
        except Exception as e:
            raise VectorStoreError(f"Failed to delete vectors: {e}", operation="delete") from e
        logger.info(
            "Deleted chunk vectors",
            extra={"requested": len(ids), "deleted": deleted},
        )

    def _entity_scan_sync(self, entity_id: str) -> list[str]:
        prefix = f"{entity_id}{CHUNK_ID_MARKER}"
        with self._lock:
            candidates = [chunk_id for chunk_id in self._stored_ids() if chunk_id.startswith(prefix)]

        chunk_ids = []
        for chunk_id in candidates:
            try:
                owner, _ = parse_chunk_id(chunk_id)
            except ChunkIdFormatError:
                continue
            # "A#chunk1#chunk0" belongs to entity "A#chunk1", not "A"
            if owner == entity_id:
                chunk_ids.append(chunk_id)
        return sorted(chunk_ids, key=lambda chunk_id: parse_chunk_id(chunk_id)[1])[
            : self._prefix_scan_limit
        ]

    async def query_by_entity_prefix(self, entity_id: str) -> list[str]:
        """
        Chunk ids currently stored for an entity, in index order.

        Raises:
            VectorStoreError: If the scan fails
        """
        try:
            return await asyncio.to_thread(self._entity_scan_sync, entity_id)
        except Exception as e:
            raise VectorStoreError(f"Entity chunk scan failed: {e}", operation="list") from e
