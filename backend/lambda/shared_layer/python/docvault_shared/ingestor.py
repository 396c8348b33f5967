"""docvault_shared.ingestor — Validate and store an uploaded document.

Steps, each a hard precondition:

    1. declared MIME type, if any, is on the allow-list
    2. estimated decoded size (ceil(len / 4) * 3) is within the cap;
       checked before decoding so oversized bodies are never decoded
    3. the payload is strict base64
    4. the bytes are upserted at the entry's fixed storage path
"""

from __future__ import annotations

import base64
import binascii
import logging
import math
from dataclasses import dataclass

from .catalog import DocumentEntry
from .config import Settings
from .errors import BackendFailure, ValidationFailure, ValidationReason
from .storage import StorageBackend, StorageError
from .validator import UploadPayload

logger = logging.getLogger(__name__)

FALLBACK_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadResult:
    doc_type: str
    path: str
    size_bytes: int

    def to_body(self) -> dict:
        return {
            "success": True,
            "message": "File uploaded successfully",
            "documentType": self.doc_type,
            "path": self.path,
        }


def estimate_decoded_size(encoded_length: int) -> int:
    return math.ceil(encoded_length / 4) * 3


def _format_mib(size: int) -> str:
    mib = size / 1024 / 1024
    return f"{mib:g}MB"


def ingest(
    storage: StorageBackend,
    entry: DocumentEntry,
    payload: UploadPayload,
    settings: Settings,
) -> UploadResult:
    mime_type = payload.mime_type
    if mime_type and mime_type not in settings.allowed_mime_types:
        raise ValidationFailure(ValidationReason.UNSUPPORTED_TYPE, "Invalid file type")

    encoded = payload.content_base64
    if estimate_decoded_size(len(encoded)) > settings.max_upload_bytes:
        raise ValidationFailure(
            ValidationReason.TOO_LARGE,
            f"File too large. Maximum size is {_format_mib(settings.max_upload_bytes)}",
        )

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationFailure(ValidationReason.BAD_ENCODING, "Invalid base64 encoding") from None

    try:
        storage.upload(
            entry.storage_path,
            data,
            content_type=mime_type or FALLBACK_CONTENT_TYPE,
            upsert=True,
        )
    except StorageError as exc:
        logger.error("upload failed: doc_type=%s error=%s", entry.doc_type, exc)
        raise BackendFailure("Upload failed") from exc

    logger.info("upload stored: doc_type=%s bytes=%d", entry.doc_type, len(data))
    return UploadResult(doc_type=entry.doc_type, path=entry.storage_path, size_bytes=len(data))
