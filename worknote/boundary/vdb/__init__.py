"""
Vector database boundary layer.

Provides vector indexes for chunk storage and retrieval.
- FAISSVectorIndex: Local development index (LangChain FAISS)
- S3VectorsIndex: Production Amazon S3 Vectors index

Backends are imported lazily by get_vector_index so the unused SDK is
never loaded.
"""

from worknote.boundary.vdb.vector_index import VectorIndex
from worknote.boundary.vdb.vector_schemas import VectorEntry, VectorHit
from worknote.boundary.vdb.vector_store_factory import get_vector_index

__all__ = [
    "VectorEntry",
    "VectorHit",
    "VectorIndex",
    "get_vector_index",
]
