"""
Admin error handling utilities.

Decorator mapping domain exceptions raised by the embedding admin
endpoints onto the structured JSON error bodies the admin UI expects.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse

from worknote.core.exceptions import (
    EmbeddingError,
    EntityNotFoundError,
    RetryItemInvalidStateError,
    RetryItemNotFoundError,
    VectorStoreError,
)

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])


def handle_embedding_admin_errors(func: F) -> F:
    """
    Decorator to turn embedding admin errors into structured responses.

    - RetryItemNotFoundError / EntityNotFoundError -> 404 {code, message}
    - RetryItemInvalidStateError -> 400 {success, message, status}
    - EmbeddingError / VectorStoreError -> 502 {success, message}
    - anything else -> 500
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except (RetryItemNotFoundError, EntityNotFoundError) as e:
            logger.warning("Embedding admin resource not found", extra={"error": e.message})
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"code": "NOT_FOUND", "message": e.message},
            )

        except RetryItemInvalidStateError as e:
            logger.warning(
                "Retry item not in dead_letter state",
                extra={"retry_item_id": e.item_id, "status": e.status},
            )
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"success": False, "message": e.message, "status": e.status},
            )

        except (EmbeddingError, VectorStoreError) as e:
            logger.error("Embedding backend failure", extra={"error": str(e)})
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"success": False, "message": e.message},
            )

        except Exception as e:
            logger.exception("Unexpected failure in embedding admin operation", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred during embedding admin operation",
            )

    return wrapper  # type: ignore
