"""Error taxonomy for catalog storage and its mapping onto API responses."""
from typing import Any, Dict, Optional
import logging

from fastapi import HTTPException, status

from careguard.validation import FormValidationError

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for storage failures. ``kind`` drives the user-facing prompt."""

    kind = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    user_message = "The catalog registry could not complete the request."

    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class ConfigurationError(StoreError):
    """Remote credentials absent, or the remote table/schema does not exist. Not retryable."""

    kind = "configuration"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    user_message = "The catalog database is not set up. Check the backend URL, key and the careguard table."


class ConnectivityError(StoreError):
    """Remote backend unreachable. The user may retry."""

    kind = "connectivity"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    user_message = "The catalog registry is offline. Showing cached data; changes cannot be saved right now."


class AuthorizationError(StoreError):
    """Session missing, invalid or expired, or the backend rejected the caller."""

    kind = "authorization"
    status_code = status.HTTP_401_UNAUTHORIZED
    user_message = "Your admin session is not valid. Please sign in again."


class RecordNotFoundError(StoreError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    user_message = "Record not found."


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        if isinstance(exc, StoreError):
            logger.error("Catalog store error (%s): %s", exc.kind, exc.message)
            return {
                "error": exc.kind,
                "message": exc.user_message,
                "detail": exc.message,
                "metadata": {"context": context or {}},
            }
        logger.error("Unhandled exception in catalog service: %s", exc, exc_info=True)
        return {
            "error": "internal_error",
            "message": "An internal error occurred while processing your request. Please try again later.",
            "detail": str(exc),
            "metadata": {"context": context or {}},
        }

    def to_http_exception(self, exc: Exception, context: Dict[str, Any] = None) -> HTTPException:
        if isinstance(exc, FormValidationError):
            return HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "error": "validation_error",
                    "message": exc.message,
                    "field_errors": exc.field_errors,
                },
            )
        body = self.handle_exception(exc, context)
        code = exc.status_code if isinstance(exc, StoreError) else status.HTTP_500_INTERNAL_SERVER_ERROR
        return HTTPException(status_code=code, detail=body)

    @staticmethod
    def banner_for(error: Optional[StoreError]) -> Optional[Dict[str, str]]:
        """Degraded-state banner shown by views; None when everything is healthy."""
        if error is None:
            return None
        prompt = {
            ConfigurationError.kind: "setup",
            ConnectivityError.kind: "offline",
            AuthorizationError.kind: "login",
        }.get(error.kind, "error")
        return {"kind": error.kind, "prompt": prompt, "message": error.user_message}
