"""
Error taxonomy for the stock and budget workflows.

Domain code raises StockroomError subclasses; the API layer turns them into
HTTP responses. Messages carried in `detail` are safe to show the user.
Store internals (SQL errors, HTTP bodies) are logged, never returned.
"""
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class StockroomError(Exception):
    """Base class. `detail` is user-facing, `status_code` is the HTTP mapping."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class DataStoreError(StockroomError):
    """External data store call failed (network, auth, constraint)."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, operation: str = "", table: str = "", cause: str = ""):
        super().__init__(detail)
        self.operation = operation
        self.table = table
        self.cause = cause


class ValidationFailed(StockroomError):
    """Input rejected before any external call was made."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, detail: str, fields: list[str] | None = None):
        super().__init__(detail)
        self.fields = fields or []


class ReferentialGuardError(StockroomError):
    """Delete refused because other rows still reference the target."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str, blocking_count: int):
        super().__init__(detail)
        self.blocking_count = blocking_count


class NotFoundError(StockroomError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(StockroomError):
    """Budget request is not PENDING, so it cannot be edited, deleted or decided."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str, current_status: str = ""):
        super().__init__(detail)
        self.current_status = current_status


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages for route handlers."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation errors.

        OK to include specific details here since the user caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def from_domain(error: StockroomError) -> HTTPException:
        """Map a domain error to its HTTP response, logging store failures in full."""
        if isinstance(error, DataStoreError):
            logger.error(
                f"Data store failure: {error.operation} on {error.table or '?'}: {error.cause or error.detail}"
            )
        else:
            logger.info(f"{type(error).__name__}: {error.detail}")

        body: dict = {"detail": error.detail}
        if isinstance(error, ReferentialGuardError):
            body["blocking_count"] = error.blocking_count
        if isinstance(error, InvalidTransitionError) and error.current_status:
            body["status"] = error.current_status
        if isinstance(error, ValidationFailed) and error.fields:
            body["fields"] = error.fields
        return HTTPException(status_code=error.status_code, detail=body)

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )
