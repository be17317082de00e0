"""
Central error handling for the page permissions backend

Every failure leaves the service as ``{"error": str, "code": str, "details"?: any}``
with a status drawn from the error codes below.
"""
import logging
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError

from app.core.config import settings

logger = logging.getLogger(__name__)


class ErrorCode:
    """Stable machine-readable error codes"""

    # Authentication errors (1xxx)
    MISSING_TOKEN = "AUTH_1001"
    INVALID_TOKEN = "AUTH_1002"
    UNAUTHENTICATED = "AUTH_1003"

    # Authorization errors (2xxx)
    INSUFFICIENT_PERMISSIONS = "AUTHZ_2001"
    FORBIDDEN = "AUTHZ_2002"

    # Validation errors (3xxx)
    INVALID_INPUT = "VAL_3001"
    INVALID_UUID = "VAL_3002"
    INVALID_EMAIL = "VAL_3003"
    INVALID_PASSWORD = "VAL_3004"
    INVALID_SLUG = "VAL_3005"
    MISSING_REQUIRED_FIELD = "VAL_3006"

    # Resource errors (4xxx)
    NOT_FOUND = "RES_4001"
    ALREADY_EXISTS = "RES_4002"
    CONFLICT = "RES_4003"

    # Database errors (5xxx)
    DATABASE_ERROR = "DB_5001"
    FOREIGN_KEY_VIOLATION = "DB_5002"
    UNIQUE_VIOLATION = "DB_5003"
    CHECK_VIOLATION = "DB_5004"

    # System errors (9xxx)
    INTERNAL_SERVER_ERROR = "SYS_9001"
    SERVICE_UNAVAILABLE = "SYS_9002"


RETRYABLE_CODES = frozenset({ErrorCode.SERVICE_UNAVAILABLE, ErrorCode.DATABASE_ERROR})


class AppError(Exception):
    """Application error carrying a stable code and an HTTP status"""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Any = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ResolutionFailed(AppError):
    """The effective permission could not be read from the store"""

    def __init__(self, message: str = "Permission check failed"):
        super().__init__(
            ErrorCode.SERVICE_UNAVAILABLE,
            message,
            status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def is_retryable(error: AppError) -> bool:
    """Only transient store/service conditions are worth retrying"""
    return error.code in RETRYABLE_CODES


def validation_error(field: str, message: str, code: str = ErrorCode.INVALID_INPUT) -> AppError:
    return AppError(code, message, status.HTTP_400_BAD_REQUEST, {"field": field})


def not_found_error(resource: str) -> AppError:
    return AppError(ErrorCode.NOT_FOUND, f"{resource} not found", status.HTTP_404_NOT_FOUND)


def already_exists_error(resource: str) -> AppError:
    return AppError(ErrorCode.ALREADY_EXISTS, f"{resource} already exists", status.HTTP_409_CONFLICT)


def permission_error(message: str = "Insufficient permissions") -> AppError:
    return AppError(ErrorCode.INSUFFICIENT_PERMISSIONS, message, status.HTTP_403_FORBIDDEN)


def authentication_error(message: str = "Authentication required", code: str = ErrorCode.UNAUTHENTICATED) -> AppError:
    return AppError(code, message, status.HTTP_401_UNAUTHORIZED)


# PostgreSQL SQLSTATE -> (code, message, status)
_SQLSTATE_MAP = {
    "23505": (ErrorCode.UNIQUE_VIOLATION, "A record with this value already exists", status.HTTP_409_CONFLICT),
    "23503": (ErrorCode.FOREIGN_KEY_VIOLATION, "Referenced record does not exist", status.HTTP_400_BAD_REQUEST),
    "23514": (ErrorCode.CHECK_VIOLATION, "Value does not meet constraints", status.HTTP_400_BAD_REQUEST),
    "23502": (ErrorCode.MISSING_REQUIRED_FIELD, "Required field is missing", status.HTTP_400_BAD_REQUEST),
}

# SQLite reports constraint failures only through the message text
_SQLITE_MESSAGES = {
    "unique constraint failed": "23505",
    "foreign key constraint failed": "23503",
    "check constraint failed": "23514",
    "not null constraint failed": "23502",
}


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code
    message = str(orig if orig is not None else exc).lower()
    for fragment, mapped in _SQLITE_MESSAGES.items():
        if fragment in message:
            return mapped
    return None


def error_from_integrity(exc: IntegrityError) -> AppError:
    """Map a storage constraint violation onto the error taxonomy"""
    original = str(getattr(exc, "orig", exc))
    sqlstate = _sqlstate(exc)
    mapped = _SQLSTATE_MAP.get(sqlstate) if sqlstate else None
    if mapped is None:
        return AppError(
            ErrorCode.DATABASE_ERROR,
            "Database operation failed",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"code": sqlstate, "originalError": original},
        )
    code, message, status_code = mapped
    return AppError(code, message, status_code, {"originalError": original})


def _public_details(error: AppError) -> dict:
    body = error.to_dict()
    if settings.APP_ENV == "prod" and error.status_code >= 500:
        body.pop("details", None)
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError with the standard error envelope"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=exc.status_code, content=_public_details(exc))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException raised by the framework (404 routes, 405 methods)"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError as a 400 INVALID_INPUT

    Field level details are not returned in production.
    """
    if settings.APP_ENV == "prod":
        error = AppError(ErrorCode.INVALID_INPUT, "Invalid request data", status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # sanitize for JSON: e.g. ctx.error ValueError -> str
    errors = []
    for e in exc.errors():
        err = {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        errors.append(err)
    first = errors[0]["msg"] if errors else "Invalid request data"
    error = AppError(ErrorCode.INVALID_INPUT, first, status.HTTP_400_BAD_REQUEST, errors)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle constraint violations that escaped the service layer"""
    error = error_from_integrity(exc)
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, error.code)
    return JSONResponse(status_code=error.status_code, content=_public_details(error))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions

    Logged with full detail; the response never carries a traceback.
    """
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)

    message = "Internal server error" if settings.APP_ENV == "prod" else str(exc)
    error = AppError(ErrorCode.INTERNAL_SERVER_ERROR, message)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
