"""Typed errors raised by the onboarding services.

Each error carries the HTTP status and the machine-readable code used in the
response envelope. Services raise them; ``main.py`` renders them.
"""
from typing import Any, Dict, List, Optional, Union

Details = Optional[Union[Dict[str, Any], List[Any]]]


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Details = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code}
        if self.details is not None:
            error["details"] = self.details
        return error


class ValidationError(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "Invalid input data"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Could not validate credentials"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} '{identifier}' not found" if identifier is not None else f"{resource} not found"
        super().__init__(message, details={"resource": resource, "id": str(identifier) if identifier is not None else None})


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)


class InvalidStateError(AppError):
    status_code = 409
    code = "INVALID_STATE"
    default_message = "Operation not allowed in the current state"

    def __init__(self, message: Optional[str] = None, current: Optional[str] = None, target: Optional[str] = None):
        details = None
        if current is not None or target is not None:
            details = {"current": current, "target": target}
        super().__init__(message, details=details)


class PayloadTooLargeError(AppError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    default_message = "Uploaded file is too large"


class UnsupportedMediaError(AppError):
    status_code = 415
    code = "UNSUPPORTED_MEDIA_TYPE"
    default_message = "Uploaded file type is not supported"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"


def from_pydantic(exc) -> ValidationError:
    """Convert a pydantic ``ValidationError`` into field-level details."""
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append({"field": loc or None, "message": err.get("msg")})
    return ValidationError("Invalid input data", details=details)


def from_duplicate_key(exc, default_field: Optional[str] = None) -> ConflictError:
    """Convert a pymongo ``DuplicateKeyError`` into a ``ConflictError``."""
    details = getattr(exc, "details", None) or {}
    fields = list((details.get("keyPattern") or details.get("keyValue") or {}).keys())
    field = fields[0] if fields else default_field
    message = f"A record with this {field} already exists" if field else "Resource already exists"
    return ConflictError(message, field=field)
