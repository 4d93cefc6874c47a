"""
Vector index factory for selecting between FAISS (dev) and S3 Vectors (prod).

Depends on the VECTOR_STORE_STORE_TYPE environment variable.
Provides a consistent interface regardless of underlying implementation.

Dependencies: worknote.boundary.vdb, worknote.configs
System role: Vector index instantiation and selection
"""

import logging

from worknote.boundary.vdb.vector_index import VectorIndex
from worknote.configs.embedding import EmbeddingSettings
from worknote.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_vector_index(
    vector_settings: VectorStoreSettings,
    embedding_settings: EmbeddingSettings,
) -> VectorIndex:
    """
    Factory function to get vector index based on environment configuration.

    Args:
        vector_settings: Vector store settings
        embedding_settings: Embedding settings (vector dimension)

    Returns:
        FAISSVectorIndex or S3VectorsIndex: Configured vector index instance

    Raises:
        ValueError: If VECTOR_STORE_STORE_TYPE is invalid
    """
    store_type = vector_settings.store_type.lower()

    if store_type == "faiss":
        from worknote.boundary.vdb.faiss_vector_index import FAISSVectorIndex

        logger.info(f"{__name__}:get_vector_index - Creating FAISS vector index (local dev mode)")
        return FAISSVectorIndex(
            dimension=embedding_settings.dimension,
            index_dir=vector_settings.faiss_index_dir,
            index_name=vector_settings.index_name,
            prefix_scan_limit=vector_settings.prefix_scan_limit,
        )

    if store_type == "s3":
        from worknote.boundary.vdb.s3_vector_index import S3VectorsIndex

        logger.info(f"{__name__}:get_vector_index - Creating S3 Vectors index (production mode)")
        return S3VectorsIndex(
            vectors_bucket=vector_settings.vectors_bucket,
            index_name=vector_settings.index_name,
            region=vector_settings.aws_region,
            upsert_batch_size=vector_settings.upsert_batch_size,
            prefix_scan_limit=vector_settings.prefix_scan_limit,
        )

    raise ValueError(
        f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. "
        f"Must be 'faiss' (dev) or 's3' (production)."
    )
