"""MCP tool definitions."""

import logging
from datetime import datetime, timezone
from typing import Any

from zarv.exceptions import QuotaExceededError, StorageError, StorageUnavailableError

__all__ = ["create_error_response", "storage_error_response"]

logger = logging.getLogger(__name__)


def create_error_response(
    message: str,
    error_type: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create standardized error response for MCP tools.

    Args:
        message: User-friendly error message
        error_type: Error type name (e.g., ValidationError, NotFoundError)
        details: Optional additional details

    Returns:
        Structured error response dictionary
    """
    response = {
        "error": True,
        "message": message,
        "error_type": error_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        response["details"] = details
    return response


def storage_error_response(error: StorageError) -> dict[str, Any]:
    """Error response for a failed storage operation.

    The underlying sqlite message is logged, not returned.
    """
    logger.error("Storage failure: %s", error)
    if isinstance(error, QuotaExceededError):
        return create_error_response(
            message="Storage is full; the change was not saved",
            error_type="QuotaExceededError",
        )
    if isinstance(error, StorageUnavailableError):
        return create_error_response(
            message="Storage is unavailable",
            error_type="StorageUnavailableError",
        )
    return create_error_response(message="Storage error", error_type="StorageError")
