"""S3-compatible object storage for compliance documents.

Objects are addressed by a key inside a single bucket.  Stored references are
signed URLs; :meth:`ObjectStorage.path_from_url` recovers the key from one by
stripping everything up to ``/<bucket>/`` (path-style addressing keeps the
bucket name in the URL path).
"""

import asyncio
import logging
from functools import lru_cache
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from staffing_api.core.config import settings
from staffing_api.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Thin async wrapper around a boto3 S3 client bound to one bucket."""

    def __init__(self, bucket: str, client: Any):
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_settings(cls) -> "ObjectStorage":
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        return cls(settings.compliance_bucket, client)

    def path_from_url(self, url: Optional[str]) -> Optional[str]:
        """Return the object key referenced by a stored URL or plain path."""
        if not url:
            return None
        parts = url.split(f"/{self.bucket}/", 1)
        if len(parts) > 1:
            key = parts[1]
        elif "://" not in url:
            key = url
        else:
            return None
        key = key.split("?", 1)[0]
        return key or None

    async def upload(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload document: {e}") from e
        logger.info("Stored object %s/%s (%d bytes)", self.bucket, path, len(data))

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            await asyncio.to_thread(
                self._client.delete_objects,
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": p} for p in paths], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete document: {e}") from e
        logger.info("Removed objects %s from %s", paths, self.bucket)

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        try:
            url = await asyncio.to_thread(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to generate document URL: {e}") from e
        if not url:
            raise StorageError("Failed to generate document URL")
        return url


@lru_cache
def get_object_storage() -> ObjectStorage:
    """FastAPI dependency — one shared client per process."""
    return ObjectStorage.from_settings()
