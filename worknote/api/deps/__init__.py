"""FastAPI dependencies."""

from worknote.api.deps.dependencies import (
    ServiceCache,
    get_hybrid_search_service,
    get_ingestion_service,
    get_retry_queue_service,
    get_service_cache,
)

__all__ = [
    "ServiceCache",
    "get_hybrid_search_service",
    "get_ingestion_service",
    "get_retry_queue_service",
    "get_service_cache",
]
