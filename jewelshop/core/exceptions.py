"""
Error taxonomy and safe HTTP errors.

Route handlers raise BusinessError.* (ready-made HTTPExceptions).
Services and the action state machine raise DomainError subclasses, which
main.py maps to the same {"error": message} envelope.

Unauthenticated -> 401, Validation -> 400, NotFound -> 404, Forbidden -> 403,
InvalidState -> 400, Conflict -> 409, Unexpected -> 500.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base for errors raised below the HTTP layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(DomainError):
    """Record is not in the state the operation requires."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT


class UnknownActionTypeError(DomainError):
    """No executor is registered for an action's type. Bad input, not a server fault."""

    status_code = status.HTTP_400_BAD_REQUEST


class ActionExecutionError(DomainError):
    """An executor raised. The action is already marked failed; clients get a generic message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Action execution failed"):
        super().__init__(message)


class BusinessError:
    """Business-domain HTTP errors with safe messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        404 for records that are absent OR owned by someone else.

        SECURITY: Same response either way, so ids of other tenants
        cannot be probed.

        Example:
            if not customer:
                raise BusinessError.not_found("Customer")
        """
        if reason:
            logger.warning(f"Access denied / not found: {resource} - {reason}")

        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Generic 401 for all authentication failures."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(detail: str = "Access denied", reason: str = "") -> HTTPException:
        """403 for ownership violations on paths the caller chose (e.g. storage paths)."""
        logger.warning(f"Forbidden access: {reason or detail}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.

        OK to include specific details here since user caused the issue.
        Examples: "Customer name is required", "Invalid weight value"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for resource conflicts.
        Example: "Cannot delete supplier. It is referenced in 2 purchase invoice(s)."
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None, detail: str = None) -> HTTPException:
        """
        500 for data-store or downstream failures.

        Logs the full error internally; the client gets the store's message
        (or an explicit detail) and nothing else - no stack traces.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred")

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail or (store_message(original_error) if original_error else "An unexpected error occurred"),
        )

    @staticmethod
    def rate_limit_exceeded(detail: str = "Too many requests") -> HTTPException:
        """
        429 - Too many requests (rate limiting).
        """
        logger.warning(f"Rate limit exceeded: {detail}")
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
        )

    @staticmethod
    def service_unavailable(detail: str) -> HTTPException:
        """503 - a downstream AI provider is unavailable."""
        logger.warning(f"Service unavailable: {detail}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )


def store_message(error: Exception) -> str:
    """The database driver's own message, without SQLAlchemy's statement dump."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)
