"""Application errors and the FastAPI handlers that render them.

Every error leaves the API in one envelope:

    {"error": {"code": "UNKNOWN_STEP", "message": "...", "details": {...}}}

`details` is omitted when empty.  Bulk onboarding saves reuse the same
body (`LegalHubException.to_dict`) for each failed step.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# status.HTTP_422_UNPROCESSABLE_ENTITY is deprecated in current Starlette
HTTP_422 = 422


class LegalHubException(Exception):
    """Base class for errors raised on purpose by LegalHub code."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | list | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        return _error_body(self.error_code, self.message, self.details)


class BusinessLogicError(LegalHubException):
    """The request is well-formed but a domain rule forbids it (422)."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUSINESS_LOGIC_ERROR",
        details: dict | list | None = None,
    ):
        super().__init__(message, HTTP_422, error_code, details)


class ConflictError(LegalHubException):
    """The resource's current state does not allow the request (409)."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message, status.HTTP_409_CONFLICT, error_code)


class ResourceNotFoundError(LegalHubException):
    def __init__(self, resource: str, identifier: str, error_code: str = "RESOURCE_NOT_FOUND"):
        super().__init__(
            f"{resource} not found: {identifier}", status.HTTP_404_NOT_FOUND, error_code
        )


class PermissionDeniedError(LegalHubException):
    def __init__(self, message: str = "Permission denied", error_code: str = "PERMISSION_DENIED"):
        super().__init__(message, status.HTTP_403_FORBIDDEN, error_code)


def format_validation_errors(errors: list[dict]) -> list[dict]:
    """Flatten pydantic errors into {field, message, type} entries.

    Nested locations are joined with " -> ", e.g. "availability -> monday".
    """
    return [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]


def _error_body(code: str, message: str, details: dict | list | None = None) -> dict:
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return body


def _respond(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": _error_body(code, message, details)},
    )


# ── Handlers ────────────────────────────────────────────────

async def legalhub_exception_handler(request: Request, exc: LegalHubException) -> JSONResponse:
    logger.warning(
        "%s %s -> %s: %s", request.method, request.url.path, exc.error_code, exc.message
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def http_exception_handler(
    request: Request, exc: HTTPException | StarletteHTTPException
) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, "%s %s -> HTTP %d: %s", request.method, request.url.path,
               exc.status_code, exc.detail)
    response = _respond(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    logger.warning("%s %s -> request validation failed", request.method, request.url.path)
    return _respond(
        HTTP_422,
        "VALIDATION_ERROR",
        "Validation error",
        {"errors": format_validation_errors(exc.errors())},
    )


# Substring of the driver message → (error code, client message)
_INTEGRITY_VIOLATIONS = (
    ("unique", "DUPLICATE_RECORD", "A record with this value already exists"),
    ("foreign key", "FOREIGN_KEY_VIOLATION", "Referenced record does not exist"),
    ("not null", "NULL_VALUE_NOT_ALLOWED", "Required field is missing"),
)


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    driver_message = str(exc.orig if exc.orig is not None else exc).lower()
    logger.error("%s %s -> integrity error: %s", request.method, request.url.path, driver_message)

    for needle, code, message in _INTEGRITY_VIOLATIONS:
        if needle in driver_message:
            return _respond(HTTP_422, code, message)
    return _respond(HTTP_422, "INTEGRITY_ERROR", "Database constraint violation")


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("%s %s -> database unavailable: %s", request.method, request.url.path, exc)
    return _respond(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DATABASE_UNAVAILABLE",
        "Database temporarily unavailable. Please try again.",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
    )
    # Internal details never reach the client
    return _respond(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred. Please try again later.",
    )


def register_exception_handlers(app):
    app.add_exception_handler(LegalHubException, legalhub_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
