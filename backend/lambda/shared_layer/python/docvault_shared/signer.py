"""docvault_shared.signer — Short-lived signed read URLs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .catalog import DocumentEntry
from .config import DEFAULT_SIGNED_URL_TTL_SECONDS
from .errors import BackendFailure
from .storage import StorageBackend, StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedUrlResult:
    url: str
    expires_at: int  # epoch millis

    def to_body(self) -> dict:
        return {"url": self.url, "expiresAt": self.expires_at}


def _now_ms() -> int:
    return int(time.time() * 1000)


def issue(
    storage: StorageBackend,
    entry: DocumentEntry,
    ttl_seconds: int = DEFAULT_SIGNED_URL_TTL_SECONDS,
    now_ms: Optional[int] = None,
) -> SignedUrlResult:
    """Ask the backend for a signed URL; one attempt, no retry.

    Expiry is enforced by the backend; `expires_at` only reports it.
    """
    issued_at = _now_ms() if now_ms is None else now_ms
    try:
        url = storage.create_signed_url(
            entry.storage_path, ttl_seconds, download=entry.force_download
        )
    except StorageError as exc:
        logger.error("signed url failed: doc_type=%s error=%s", entry.doc_type, exc)
        raise BackendFailure("Failed to generate signed URL") from exc
    if not url:
        logger.error("signed url failed: doc_type=%s error=empty url", entry.doc_type)
        raise BackendFailure("Failed to generate signed URL")
    return SignedUrlResult(url=url, expires_at=issued_at + ttl_seconds * 1000)
