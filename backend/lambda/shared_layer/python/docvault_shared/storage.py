"""docvault_shared.storage — Object storage backend.

The rest of the package only sees two calls:

    create_signed_url(path, ttl_seconds, download) -> url
    upload(path, data, content_type, upsert)

both of which raise `StorageError` on failure. `S3StorageBackend` talks to
any S3-compatible endpoint through boto3.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Any, Dict, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import _get_s3
from .config import Settings

logger = logging.getLogger(__name__)

UPLOAD_CACHE_CONTROL = "max-age=3600"


class StorageError(Exception):
    """Backend call failed. The message is for logs only."""


class StorageBackend(Protocol):
    def create_signed_url(self, path: str, ttl_seconds: int, download: bool = False) -> str:
        ...

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> None:
        ...


class S3StorageBackend:
    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3StorageBackend":
        return cls(_get_s3(settings), settings.bucket)

    def create_signed_url(self, path: str, ttl_seconds: int, download: bool = False) -> str:
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": path}
        if download:
            filename = posixpath.basename(path)
            params["ResponseContentDisposition"] = f'attachment; filename="{filename}"'
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"presign failed for {path}: {exc}") from exc

    def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> None:
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": path,
            "Body": data,
            "ContentType": content_type,
            "CacheControl": UPLOAD_CACHE_CONTROL,
        }
        # S3 PutObject overwrites by default; without upsert, refuse to replace.
        if not upsert:
            params["IfNoneMatch"] = "*"
        try:
            self._client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"put_object failed for {path}: {exc}") from exc
        logger.info("stored object: bucket=%s key=%s bytes=%d", self.bucket, path, len(data))
