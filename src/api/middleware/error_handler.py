"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    DuplicateUploadException,
    InvalidStatusTransitionException,
    InvalidUploadException,
    NotificationNotFoundException,
    PlatformError,
    StorageException,
    StoredObjectNotFoundException,
    UploadAlreadyFinalizedException,
    UploadNotFoundException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response.

    Args:
        request: HTTP request.
        code: Error code.
        message: Error message.
        status_code: HTTP status code.
        details: Additional details.

    Returns:
        JSON error response.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
            },
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, InvalidUploadException):
        logger.warning(f"Invalid upload: {exc}")
        if exc.too_large:
            return _build_error_response(
                request=request,
                code="UPLOAD_TOO_LARGE",
                message=exc.reason,
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )
        return _build_error_response(
            request=request,
            code="INVALID_UPLOAD",
            message=exc.reason,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, DuplicateUploadException):
        logger.warning(f"Duplicate upload: {exc}")
        return _build_error_response(
            request=request,
            code="DUPLICATE_UPLOAD",
            message=str(exc),
            status_code=status.HTTP_409_CONFLICT,
            details={"existing_id": exc.existing_id},
        )

    if isinstance(exc, StorageException):
        logger.error(f"Storage error: {exc}")
        return _build_error_response(
            request=request,
            code="STORAGE_ERROR",
            message="Failed to store the video",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": exc.operation},
        )

    if isinstance(exc, UploadNotFoundException):
        logger.warning(f"Upload not found: {exc}")
        return _build_error_response(
            request=request,
            code="UPLOAD_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"upload_id": exc.upload_id},
        )

    if isinstance(exc, StoredObjectNotFoundException):
        logger.warning(f"Stored object not found: {exc}")
        return _build_error_response(
            request=request,
            code="OBJECT_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"key": exc.key},
        )

    if isinstance(exc, NotificationNotFoundException):
        logger.warning(f"Notification not found: {exc}")
        return _build_error_response(
            request=request,
            code="NOTIFICATION_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(exc, (UploadAlreadyFinalizedException, InvalidStatusTransitionException)):
        logger.warning(f"Upload finalized: {exc}")
        return _build_error_response(
            request=request,
            code="UPLOAD_FINALIZED",
            message=str(exc),
            status_code=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, PlatformError):
        logger.error(f"Video platform error: {exc}")
        return _build_error_response(
            request=request,
            code="PLATFORM_ERROR",
            message=str(exc),
            status_code=status.HTTP_502_BAD_GATEWAY,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
