import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    code: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception.

    ``code`` is a stable machine-readable identifier of the constraint that
    failed, so callers can tell "already resolved" apart from "insufficient
    balance" without parsing the message.
    """

    default_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "internal_error"

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status_code
        self.code = code if code is not None else self.default_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input such as an inverted date range."""

    default_status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "validation_error"


class NotFoundError(AppError):
    """The session, request or account does not exist."""

    default_status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class ConflictError(AppError):
    """The target is not in a state that allows the operation."""

    default_status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class InsufficientBalanceError(AppError):
    """A leave request exceeds the employee's remaining vacation days."""

    default_status_code = status.HTTP_400_BAD_REQUEST
    default_code = "insufficient_balance"


class PermissionDeniedError(AppError):
    """The caller lacks administrative scope for the target."""

    default_status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class PersistenceError(AppError):
    """The store was unreachable or rejected the write."""

    default_status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "persistence_error"


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            code=exc.code,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            code=ValidationError.default_code,
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled database error on %s %s: %s", request.method, request.url.path, exc)
    return await _app_exception_handler(request, PersistenceError("The store was unreachable or rejected the write"))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)  # type: ignore[arg-type]
