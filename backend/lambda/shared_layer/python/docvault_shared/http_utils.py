"""docvault_shared.http_utils — HTTP response helpers with CORS.

Standard response envelope and error formatting used by the docvault
Lambda functions. CORS is origin-echo: the caller's Origin is returned in
Access-Control-Allow-Origin only when it is on the allow-list, and every
response carries `Vary: Origin`.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Collection, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"

_DEFAULT_CODES = {
    400: "INVALID_INPUT",
    401: "PERMISSION_DENIED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
}


def _header(event: Dict[str, Any], name: str) -> str:
    """Case-insensitive header lookup; API Gateway v2 lowercases, v1 does not."""
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            return str(value or "")
    return ""


def _cors_headers(origin: str, allowed_origins: Collection[str]) -> Dict[str, str]:
    headers = {"Vary": "Origin"}
    if origin and origin in allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin
    return headers


def _preflight_headers(origin: str, allowed_origins: Collection[str]) -> Dict[str, str]:
    return {
        **_cors_headers(origin, allowed_origins),
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }


def _response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build a standard API Gateway response."""
    return {
        "statusCode": status_code,
        "headers": {**(headers or {}), "Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def _no_content(headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    return {"statusCode": 204, "headers": dict(headers or {}), "body": ""}


def _error(
    status_code: int,
    message: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a standard error response.

    Args:
        status_code: HTTP status code.
        message: Human-readable error message. Never carries backend detail.
        headers: Extra response headers (CORS).
        **extra: `code` and `retryable` override the envelope defaults; any
            other keys land in `error_envelope.details`.
    """
    code = str(extra.pop("code", "") or "").strip().upper()
    if not code:
        code = _DEFAULT_CODES.get(status_code, "INTERNAL_ERROR")
    retryable = bool(extra.pop("retryable", status_code >= 500))
    details = dict(extra)
    payload: Dict[str, Any] = {
        "success": False,
        "error": message,
        "error_envelope": {
            "code": code,
            "message": message,
            "retryable": retryable,
            "details": details,
        },
    }
    return _response(status_code, payload, headers)


def _parse_body(event: Dict[str, Any]) -> Any:
    """Parse JSON body from API Gateway event (handles base64).

    Returns None when the body is not valid JSON.
    """
    raw = event.get("body")
    if raw is None or raw == "":
        return None
    if isinstance(raw, (dict, list)):
        return raw
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        return json.loads(raw)
    except (ValueError, TypeError):
        return None


def _path_method(event: Dict[str, Any]) -> Tuple[str, str]:
    """Extract HTTP method and path from API Gateway v1/v2 event."""
    rc = event.get("requestContext") or {}
    http = rc.get("http") or {}
    method = (http.get("method") or event.get("httpMethod") or "GET").upper()
    path = http.get("path") or event.get("rawPath") or event.get("path") or "/"
    return method, path
