"""contact_relay/lambda_function.py

Lambda endpoint relaying the portfolio contact form to the owner's inbox
through Amazon SES.

Route (via API Gateway proxy):
    POST    /api/contact   {name, email, subject, message}
    OPTIONS /api/contact   (CORS preflight)

Responses:
    200 {success: true}
    400 missing fields / invalid email / non-JSON body
    500 {error: "Failed to send message"}  relay failure (detail logged only)

Environment variables:
    CONTACT_RECIPIENT   destination inbox
    CONTACT_SENDER      SES-verified From address
    SES_REGION          default: STORAGE_REGION
    ALLOWED_ORIGINS     comma-separated CORS allow-list
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from docvault_shared.config import Settings, load_settings
from docvault_shared.errors import BackendFailure, DocVaultError, MalformedBody, MissingField
from docvault_shared.http_utils import (
    _cors_headers,
    _error,
    _header,
    _no_content,
    _path_method,
    _preflight_headers,
    _response,
)
from docvault_shared.mailer import (
    MAX_MESSAGE_LENGTH,
    MAX_SUBJECT_LENGTH,
    ContactMessage,
    EmailRelay,
    MailerError,
    is_valid_email,
)
from docvault_shared.validator import Preflight, validate_transport

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger()
logger.setLevel(logging.INFO)

REQUIRED_FIELDS = ("name", "email", "subject", "message")

# ---------------------------------------------------------------------------
# Relay (module-level for container reuse)
# ---------------------------------------------------------------------------

_relay: Optional[EmailRelay] = None


def _get_settings() -> Settings:
    return load_settings()


def _get_relay(settings: Settings) -> EmailRelay:
    global _relay
    if _relay is None:
        _relay = EmailRelay.from_settings(settings)
    return _relay


def _parse_contact(body: Dict[str, Any]) -> ContactMessage:
    values: Dict[str, str] = {}
    missing = []
    for field in REQUIRED_FIELDS:
        raw = body.get(field)
        if raw is not None and not isinstance(raw, str):
            raise MalformedBody(f"Field '{field}' must be a string")
        value = (raw or "").strip()
        if not value:
            missing.append(field)
        values[field] = value
    if missing:
        raise MissingField(*missing)
    if not is_valid_email(values["email"]):
        raise MalformedBody("Invalid email address")
    if len(values["subject"]) > MAX_SUBJECT_LENGTH:
        raise MalformedBody(f"Subject exceeds {MAX_SUBJECT_LENGTH} characters")
    if len(values["message"]) > MAX_MESSAGE_LENGTH:
        raise MalformedBody(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")
    return ContactMessage(**values)


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


def lambda_handler(event: Dict, context: Any) -> Dict:
    settings = _get_settings()
    method, path = _path_method(event)
    origin = _header(event, "origin")
    cors = _cors_headers(origin, settings.allowed_origins)

    try:
        checked = validate_transport(event, settings)
        if isinstance(checked, Preflight):
            return _no_content(_preflight_headers(origin, settings.allowed_origins))

        contact = _parse_contact(checked.body)
        try:
            _get_relay(settings).send(
                settings.contact_recipient,
                contact.subject_line(),
                contact.to_html(),
                reply_to=contact.email,
            )
        except MailerError as exc:
            logger.error("Error sending email: %s", exc)
            raise BackendFailure("Failed to send message") from exc
        return _response(200, {"success": True}, cors)

    except DocVaultError as exc:
        logger.info(
            "contact rejected: method=%s path=%s status=%s code=%s",
            method, path, exc.status_code, exc.code,
        )
        return _error(exc.status_code, exc.message, headers=cors, code=exc.code, **exc.details)
    except Exception:
        logger.exception("Unexpected error: method=%s path=%s", method, path)
        return _error(500, "Internal server error", headers=cors)
