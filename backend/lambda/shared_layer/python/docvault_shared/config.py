"""docvault_shared.config — Immutable settings read once from the environment.

Every Lambda builds one `Settings` per container via `load_settings()` and
passes it by reference into the validator, policy gate, issuer and ingestor.
Nothing else reads `os.environ`.

Environment variables:
    STORAGE_ENDPOINT_URL        S3-compatible endpoint (unset = AWS S3)
    STORAGE_ACCESS_KEY_ID       storage credential (unset = default chain)
    STORAGE_SECRET_ACCESS_KEY   storage credential (unset = default chain)
    STORAGE_REGION              default: us-east-1
    STORAGE_BUCKET              default: docs-private
    ADMIN_PASSWORD              shared secret for restricted reads and uploads
    ALLOWED_ORIGINS             comma-separated CORS allow-list
    ALLOWED_UPLOAD_MIME_TYPES   comma-separated MIME allow-list for uploads
    MAX_UPLOAD_BYTES            default: 5242880 (5 MiB)
    SIGNED_URL_TTL_SECONDS      default: 60
    CONTACT_RECIPIENT           contact form destination address
    CONTACT_SENDER              verified SES sender address
    SES_REGION                  default: STORAGE_REGION
"""

from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "docs-private"
DEFAULT_REGION = "us-east-1"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_SIGNED_URL_TTL_SECONDS = 60

DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = (
    "https://fanuel045.github.io",
    "https://fanuel045.vercel.app",
    "http://localhost:3000",
    "http://localhost:5500",
)

DEFAULT_ALLOWED_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)


def _normalize_csv(*raw_values: str) -> tuple[str, ...]:
    """Return deduplicated, non-empty values from scalar/csv env sources."""
    values: list[str] = []
    seen: set[str] = set()
    for raw in raw_values:
        if not raw:
            continue
        for part in str(raw).split(","):
            value = part.strip()
            if not value or value in seen:
                continue
            seen.add(value)
            values.append(value)
    return tuple(values)


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r; using default %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    bucket: str = DEFAULT_BUCKET
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    admin_password: str = ""
    allowed_origins: frozenset[str] = frozenset(DEFAULT_ALLOWED_ORIGINS)
    allowed_mime_types: frozenset[str] = frozenset(DEFAULT_ALLOWED_MIME_TYPES)
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    signed_url_ttl_seconds: int = DEFAULT_SIGNED_URL_TTL_SECONDS
    contact_recipient: str = ""
    contact_sender: str = ""
    ses_region: str = DEFAULT_REGION

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        return bool(origin) and origin in self.allowed_origins


def settings_from_env(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build a `Settings` from an environment mapping (defaults to os.environ)."""
    if env is None:
        env = os.environ
    region = (env.get("STORAGE_REGION") or "").strip() or DEFAULT_REGION
    origins = _normalize_csv(env.get("ALLOWED_ORIGINS", "")) or DEFAULT_ALLOWED_ORIGINS
    mime_types = (
        _normalize_csv(env.get("ALLOWED_UPLOAD_MIME_TYPES", ""))
        or DEFAULT_ALLOWED_MIME_TYPES
    )
    settings = Settings(
        bucket=(env.get("STORAGE_BUCKET") or "").strip() or DEFAULT_BUCKET,
        region=region,
        endpoint_url=(env.get("STORAGE_ENDPOINT_URL") or "").strip() or None,
        access_key_id=(env.get("STORAGE_ACCESS_KEY_ID") or "").strip() or None,
        secret_access_key=(env.get("STORAGE_SECRET_ACCESS_KEY") or "").strip() or None,
        admin_password=env.get("ADMIN_PASSWORD") or "",
        allowed_origins=frozenset(origins),
        allowed_mime_types=frozenset(m.lower() for m in mime_types),
        max_upload_bytes=_int_env(env, "MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        signed_url_ttl_seconds=_int_env(
            env, "SIGNED_URL_TTL_SECONDS", DEFAULT_SIGNED_URL_TTL_SECONDS
        ),
        contact_recipient=(env.get("CONTACT_RECIPIENT") or "").strip(),
        contact_sender=(env.get("CONTACT_SENDER") or "").strip(),
        ses_region=(env.get("SES_REGION") or "").strip() or region,
    )
    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD not set; restricted documents and uploads are locked")
    return settings


@functools.lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Process-wide settings, read from os.environ on first call."""
    return settings_from_env()
