"""document_access/lambda_function.py

Lambda API brokering access to the private documents bucket (CV, diplomas,
certifications, cover letter, portfolio deck).

Routes (via API Gateway proxy):
    POST    /api/sign-url      {action?: "sign"|"upload", docType, password?, ...}
    POST    /api/upload-doc    same body; action defaults to "upload"
    OPTIONS /api/*             CORS preflight

Actions:
    sign    -> 200 {url, expiresAt}  short-lived signed read URL
    upload  -> 200 {success, message, documentType, path}  upsert at the
               document's fixed key

Auth:
    Public documents (cv) are readable without a password. Every other read,
    and every upload, needs the shared ADMIN_PASSWORD in `password`.

Environment variables:
    see docvault_shared.config
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from docvault_shared.catalog import DEFAULT_CATALOG, DocumentCatalog, DocumentEntry
from docvault_shared.config import Settings, load_settings
from docvault_shared.errors import DocVaultError
from docvault_shared.http_utils import (
    _cors_headers,
    _error,
    _header,
    _no_content,
    _path_method,
    _preflight_headers,
    _response,
)
from docvault_shared.ingestor import ingest
from docvault_shared.policy import authorize
from docvault_shared.signer import issue
from docvault_shared.storage import S3StorageBackend, StorageBackend
from docvault_shared.validator import Action, OperationRequest, Preflight, validate_request

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger()
logger.setLevel(logging.INFO)

CATALOG: DocumentCatalog = DEFAULT_CATALOG
UPLOAD_ROUTE_SUFFIX = "/upload-doc"

# ---------------------------------------------------------------------------
# Settings and storage (module-level for container reuse)
# ---------------------------------------------------------------------------

_storage: Optional[StorageBackend] = None


def _get_settings() -> Settings:
    return load_settings()


def _get_storage(settings: Settings) -> StorageBackend:
    global _storage
    if _storage is None:
        _storage = S3StorageBackend.from_settings(settings)
    return _storage


def _default_action(path: str) -> Action:
    if path.rstrip("/").endswith(UPLOAD_ROUTE_SUFFIX):
        return Action.UPLOAD
    return Action.SIGN


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _handle_sign(entry: DocumentEntry, settings: Settings, headers: Dict[str, str]) -> Dict:
    result = issue(_get_storage(settings), entry, settings.signed_url_ttl_seconds)
    logger.info("signed url issued: doc_type=%s expires_at=%s", entry.doc_type, result.expires_at)
    return _response(200, result.to_body(), headers)


def _handle_upload(
    request: OperationRequest,
    entry: DocumentEntry,
    settings: Settings,
    headers: Dict[str, str],
) -> Dict:
    result = ingest(_get_storage(settings), entry, request.payload, settings)
    return _response(200, result.to_body(), headers)


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


def lambda_handler(event: Dict, context: Any) -> Dict:
    settings = _get_settings()
    method, path = _path_method(event)
    origin = _header(event, "origin")
    cors = _cors_headers(origin, settings.allowed_origins)

    try:
        checked = validate_request(event, settings, _default_action(path))
        if isinstance(checked, Preflight):
            return _no_content(_preflight_headers(origin, settings.allowed_origins))

        decision = authorize(
            CATALOG,
            checked.doc_type,
            checked.action,
            checked.credential,
            settings.admin_password,
        )
        if not decision.granted:
            logger.warning(
                "access denied: action=%s doc_type=%r reason=%s",
                checked.action.value, checked.doc_type, decision.reason.value,
            )
        entry = decision.raise_for_denial()

        if checked.action is Action.UPLOAD:
            return _handle_upload(checked, entry, settings, cors)
        return _handle_sign(entry, settings, cors)

    except DocVaultError as exc:
        if exc.status_code >= 500:
            logger.error("request failed: method=%s path=%s code=%s", method, path, exc.code)
        else:
            logger.info(
                "request rejected: method=%s path=%s status=%s code=%s",
                method, path, exc.status_code, exc.code,
            )
        return _error(exc.status_code, exc.message, headers=cors, code=exc.code, **exc.details)
    except Exception:
        logger.exception("Unexpected error: method=%s path=%s", method, path)
        return _error(500, "Internal server error", headers=cors)
