import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class AuthenticationError(AppError):
    """Missing token is 401; a token that fails verification is 403."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Access denied. No token provided."


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Insufficient permissions."


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict."


class UnexpectedError(AppError):
    message = "Server error"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return True
    # sqlite reports the violation only in the message
    return "UNIQUE constraint failed" in str(orig)


def translate_integrity_error(exc: IntegrityError, conflict_message: str) -> AppError:
    if is_unique_violation(exc):
        return ConflictError(conflict_message)
    logger.error("Integrity error not caused by a unique constraint: %s", exc)
    return UnexpectedError()


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    if field:
        return f"{field}: {error['msg']}"
    return error["msg"]


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": _first_validation_message(exc)},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": UnexpectedError.message},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
