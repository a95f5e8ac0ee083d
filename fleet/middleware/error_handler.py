import logging
import traceback
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from fleet.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation (psycopg2 exposes it as orig.pgcode)
PG_UNIQUE_VIOLATION = "23505"


def _error(status_code: int, message: str, code: str, details: list | None = None,
           field: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": {"code": code, "details": details, "field": field},
        },
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """AppException subclasses already carry the envelope in ``detail``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail.get("message", "An error occurred"),
            "error": exc.detail.get("error", {"code": ErrorCode.INTERNAL_SERVER_ERROR}),
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query errors from pydantic, one detail per offending field."""
    details = []
    for error in exc.errors():
        # loc is a tuple like ("body", "startDate"); model-level errors have no field
        loc = error.get("loc", [])
        details.append({
            "field": ".".join(str(part) for part in loc if part != "body") if loc else "unknown",
            "message": error.get("msg", "Invalid value"),
        })
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error. Please check your input.",
                  ErrorCode.VALIDATION_ERROR, details=details)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """
    Constraint violations that slipped past the service-level checks.
    Uniqueness (plate, VIN, email, one active assignment per vehicle) is a
    409 CONFLICT; any other violation means a bug and is a logged 500.
    """
    if is_unique_violation(exc):
        logger.warning("Unique violation on %s %s: %s", request.method, request.url.path, exc.orig)
        return _error(status.HTTP_409_CONFLICT, "A record with this data already exists.", ErrorCode.CONFLICT)

    logger.error("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred. Please try again later.",
                  ErrorCode.INTERNAL_SERVER_ERROR)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unclassified: full traceback to the log, a safe 500 to the client."""
    logger.error(
        "Unhandled exception on %s %s\n%s",
        request.method, request.url.path, "".join(traceback.format_exception(exc)),
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred. Please try again later.",
                  ErrorCode.INTERNAL_SERVER_ERROR)
