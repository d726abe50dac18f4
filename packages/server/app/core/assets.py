"""
Asset host client.

Media bytes never pass through the core: a local file path goes in, a
durable public URL comes out. The default host is any S3-compatible store
(AWS S3, MinIO). The local file is removed once the upload finished,
successfully or not.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
import uuid
from functools import lru_cache
from pathlib import Path

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import InternalError

log = structlog.get_logger()
settings = get_settings()


class AssetHost:
    """Uploads local files to an S3-compatible bucket and returns their public URL."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str,
        public_base_url: str,
        access_key: str,
        secret_key: str,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    def _upload_sync(self, local_path: str, key: str) -> None:
        self._client.upload_file(local_path, self.bucket, key)

    async def upload(self, local_path: str, folder: str) -> str:
        """Upload ``local_path`` under ``folder/`` and return its URL."""
        key = f"{folder}/{uuid.uuid4().hex}{Path(local_path).suffix}"
        try:
            await asyncio.to_thread(self._upload_sync, local_path, key)
        except (BotoCoreError, ClientError, OSError) as exc:
            log.error("assets.upload_failed", key=key, error=str(exc))
            raise InternalError("Asset upload failed")
        finally:
            if os.path.exists(local_path):
                os.unlink(local_path)
        log.info("assets.uploaded", key=key)
        return f"{self.public_base_url}/{key}"


@lru_cache
def get_asset_host() -> AssetHost:
    """FastAPI dependency returning the configured asset host."""
    return AssetHost(
        bucket=settings.asset_bucket,
        endpoint_url=settings.asset_endpoint_url,
        public_base_url=settings.asset_public_base_url,
        access_key=settings.asset_access_key,
        secret_key=settings.asset_secret_key,
    )


async def stash_upload(upload: UploadFile) -> str:
    """Spool an incoming multipart file to a local temp path for the asset host."""
    suffix = Path(upload.filename or "").suffix
    fd, path = tempfile.mkstemp(prefix="vidhub-", suffix=suffix)
    with os.fdopen(fd, "wb") as out:
        await asyncio.to_thread(shutil.copyfileobj, upload.file, out)
    await upload.close()
    return path
