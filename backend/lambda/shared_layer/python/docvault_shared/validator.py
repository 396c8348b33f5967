"""docvault_shared.validator — Transport and body validation.

Rejects malformed or disallowed requests before any policy or storage logic
runs. Checks run in a fixed order and the first failure wins:

    1. method is POST or OPTIONS            else MethodNotAllowed
    2. OPTIONS short-circuits as a preflight
    3. Origin is on the allow-list          else OriginRejected
    4. Content-Type is JSON                 else UnsupportedMediaType
    5. body parses as a JSON object         else MalformedBody
    6. required fields are present          else MissingField

Origin checking is a browser-enforced courtesy, not a security boundary; the
access policy gate is the real authorization step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from .config import Settings
from .errors import (
    MalformedBody,
    MethodNotAllowed,
    MissingField,
    OriginRejected,
    UnsupportedMediaType,
)
from .http_utils import _header, _parse_body, _path_method

logger = logging.getLogger(__name__)

WRITE_METHOD = "POST"
PREFLIGHT_METHOD = "OPTIONS"
JSON_CONTENT_TYPE = "application/json"


class Action(str, Enum):
    SIGN = "sign"
    UPLOAD = "upload"


@dataclass(frozen=True)
class UploadPayload:
    content_base64: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class OperationRequest:
    action: Action
    doc_type: str
    credential: Optional[str] = None
    payload: Optional[UploadPayload] = None
    origin: str = ""


@dataclass(frozen=True)
class Preflight:
    origin: str = ""


@dataclass(frozen=True)
class JsonRequest:
    """A POST that passed the transport checks, with its parsed JSON object."""

    body: Dict[str, Any]
    origin: str = ""


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _optional_str(body: Dict[str, Any], field: str) -> Optional[str]:
    value = body.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedBody(f"Field '{field}' must be a string")
    return value


def validate_transport(
    event: Dict[str, Any], settings: Settings
) -> Union[Preflight, JsonRequest]:
    """Run checks 1-5. Returns a `Preflight` or the parsed `JsonRequest`."""
    method, path = _path_method(event)
    if method not in (WRITE_METHOD, PREFLIGHT_METHOD):
        raise MethodNotAllowed(f"Method {method} not allowed")

    origin = _header(event, "origin")
    if method == PREFLIGHT_METHOD:
        return Preflight(origin=origin)

    if not settings.is_origin_allowed(origin):
        logger.warning("origin rejected: origin=%r path=%s", origin, path)
        raise OriginRejected()

    content_type = _header(event, "content-type")
    if JSON_CONTENT_TYPE not in content_type.lower():
        raise UnsupportedMediaType()

    body = _parse_body(event)
    if not isinstance(body, dict):
        raise MalformedBody()
    return JsonRequest(body=body, origin=origin)


def parse_operation(
    body: Dict[str, Any],
    default_action: Action = Action.SIGN,
    origin: str = "",
) -> OperationRequest:
    """Check 6: turn a JSON object into an `OperationRequest`."""
    raw_action = body.get("action")
    if raw_action is None or raw_action == "":
        action = default_action
    else:
        try:
            action = Action(raw_action)
        except ValueError:
            raise MalformedBody(f"Unsupported action: {raw_action!r}") from None

    doc_type = body.get("docType")
    if action is Action.UPLOAD:
        missing = [
            field
            for field in ("password", "docType", "contentBase64")
            if not _present(body.get(field))
        ]
        if missing:
            raise MissingField(*missing)
    elif not _present(doc_type):
        raise MissingField("docType")
    if not isinstance(doc_type, str):
        raise MalformedBody("Field 'docType' must be a string")

    # A non-string password can never match the secret; the policy gate rules on it.
    raw_password = body.get("password")
    credential = raw_password if isinstance(raw_password, str) else None
    payload = None
    if action is Action.UPLOAD:
        content = _optional_str(body, "contentBase64") or ""
        mime_type = _optional_str(body, "mimeType")
        payload = UploadPayload(
            content_base64=content,
            mime_type=mime_type.strip().lower() if mime_type and mime_type.strip() else None,
        )

    return OperationRequest(
        action=action,
        doc_type=doc_type,
        credential=credential,
        payload=payload,
        origin=origin,
    )


def validate_request(
    event: Dict[str, Any],
    settings: Settings,
    default_action: Action = Action.SIGN,
) -> Union[Preflight, OperationRequest]:
    """Full validation pipeline for the document access endpoint."""
    checked = validate_transport(event, settings)
    if isinstance(checked, Preflight):
        return checked
    return parse_operation(checked.body, default_action, checked.origin)
