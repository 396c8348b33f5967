"""docvault_shared.errors — Typed request failures.

Every failure is terminal for the request. Handlers catch `DocVaultError`
and render it with `http_utils._error(exc.status_code, exc.message,
code=exc.code)`; backend detail stays in the logs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class DocVaultError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details: Dict[str, Any] = details
        super().__init__(self.message)


class MethodNotAllowed(DocVaultError):
    status_code = 405
    code = "METHOD_NOT_ALLOWED"
    default_message = "Method not allowed"


class OriginRejected(DocVaultError):
    status_code = 403
    code = "ORIGIN_REJECTED"
    default_message = "Origin not allowed"


class UnsupportedMediaType(DocVaultError):
    status_code = 400
    code = "UNSUPPORTED_MEDIA_TYPE"
    default_message = "Content-Type must be application/json"


class MalformedBody(DocVaultError):
    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid JSON body"


class MissingField(DocVaultError):
    status_code = 400
    code = "MISSING_FIELD"

    def __init__(self, *fields: str) -> None:
        self.fields = tuple(fields)
        noun = "field" if len(fields) == 1 else "fields"
        super().__init__(f"Missing required {noun}: {', '.join(fields)}", fields=list(fields))


class UnknownDocType(DocVaultError):
    status_code = 400
    code = "UNKNOWN_DOC_TYPE"
    default_message = "Invalid document type"


class Unauthorized(DocVaultError):
    status_code = 401
    code = "PERMISSION_DENIED"
    default_message = "Unauthorized: Password required"


class ValidationReason(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    BAD_ENCODING = "bad_encoding"
    TOO_LARGE = "too_large"


class ValidationFailure(DocVaultError):
    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, reason: ValidationReason, message: str) -> None:
        self.reason = reason
        super().__init__(message, reason=reason.value)


class BackendFailure(DocVaultError):
    """Storage or mail backend failed; the cause is logged, never returned."""

    status_code = 500
    code = "BACKEND_FAILURE"
    default_message = "Backend request failed"
