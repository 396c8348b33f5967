"""docvault_shared.aws_clients — Lazy-singleton AWS service clients.

Clients are created on first call and cached for the life of the Lambda
container. Retries are disabled (`max_attempts=1`): every backend failure is
terminal for the request.
"""

from __future__ import annotations

from typing import Optional

import boto3
from botocore.config import Config

from .config import Settings

_s3 = None
_sesv2 = None

_NO_RETRY = {"max_attempts": 1, "mode": "standard"}


def _get_s3(settings: Settings):
    """Get (or create) the S3 client singleton for the configured endpoint."""
    global _s3
    if _s3 is None:
        kwargs = {
            "region_name": settings.region,
            "config": Config(signature_version="s3v4", retries=_NO_RETRY),
        }
        if settings.endpoint_url:
            kwargs["endpoint_url"] = settings.endpoint_url
        if settings.access_key_id and settings.secret_access_key:
            kwargs["aws_access_key_id"] = settings.access_key_id
            kwargs["aws_secret_access_key"] = settings.secret_access_key
        _s3 = boto3.client("s3", **kwargs)
    return _s3


def _get_sesv2(settings: Settings, region: Optional[str] = None):
    """Get (or create) the SES v2 client singleton."""
    global _sesv2
    if _sesv2 is None:
        _sesv2 = boto3.client(
            "sesv2",
            region_name=region or settings.ses_region,
            config=Config(retries=_NO_RETRY),
        )
    return _sesv2


def _reset_clients() -> None:
    global _s3, _sesv2
    _s3 = None
    _sesv2 = None
