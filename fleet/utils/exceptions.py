from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    UNAUTHORIZED            = "UNAUTHORIZED"
    TOKEN_EXPIRED           = "TOKEN_EXPIRED"
    FORBIDDEN               = "FORBIDDEN"
    NOT_FOUND               = "NOT_FOUND"
    DUPLICATE_ENTRY         = "DUPLICATE_ENTRY"
    CONFLICT                = "CONFLICT"
    INVALID_STATE           = "INVALID_STATE"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })

    @property
    def message(self) -> str:
        return self.detail["message"]

    @property
    def error_code(self) -> str:
        return self.detail["error"]["code"]

    @property
    def details(self) -> list | None:
        return self.detail["error"]["details"]


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class ConflictException(AppException):
    """The operation would break a uniqueness or liveness rule (double assignment, blocked delete)."""
    def __init__(self, message: str, hint: str | None = None):
        details = [{"field": "", "message": hint}] if hint else None
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.CONFLICT, details=details)


class InvalidStateException(AppException):
    """The entity exists but its current state does not allow the operation."""
    def __init__(self, message: str, field: str | None = None, actual: str | None = None):
        details = [{"field": field or "", "message": f"Current {field or 'state'}: {actual}"}] \
            if actual is not None else None
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_STATE,
                         details=details, field=field)


class ValidationException(AppException):
    """Input is well-formed but invalid against stored data (checked after the request boundary)."""
    def __init__(self, field: str, message: str):
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error. Please check your input.",
                         ErrorCode.VALIDATION_ERROR, details=[{"field": field, "message": message}], field=field)
