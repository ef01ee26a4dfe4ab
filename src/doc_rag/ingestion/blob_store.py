"""Blob storage for raw uploaded files.

Every backend returns a public locator URL and avoids name collisions by
appending a random suffix to the stored object name.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from uuid import uuid4

from doc_rag.config import settings
from doc_rag.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class StoredBlob:
    key: str
    url: str


def unique_key(name: str) -> str:
    """``report.txt`` → ``report-1a2b3c4d5e6f.txt`` (directory parts are dropped)."""
    path = PurePosixPath(name.replace("\\", "/")).name or "upload"
    stem, dot, suffix = path.rpartition(".")
    if not stem:
        stem, dot, suffix = path, "", ""
    return f"{stem}-{uuid4().hex[:12]}{dot}{suffix}"


class BlobStoreBase(ABC):
    @abstractmethod
    def put(self, name: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        """Store *data* under a collision-free variant of *name*."""
        ...


class LocalBlobStore(BlobStoreBase):
    """Writes blobs to a directory that is served under *public_base_url*."""

    def __init__(
        self,
        root: str | Path | None = None,
        public_base_url: str | None = None,
    ) -> None:
        self._root = Path(root if root is not None else settings.blob_local_dir)
        self._public_base_url = (public_base_url or settings.blob_public_base_url).rstrip("/")

    def put(self, name: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        key = unique_key(name)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            (self._root / key).write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store file {name!r}: {exc}") from exc
        logger.info("Stored blob %s (%d bytes)", key, len(data))
        return StoredBlob(key=key, url=f"{self._public_base_url}/{key}")


class S3BlobStore(BlobStoreBase):
    """Public-read objects in an S3 bucket."""

    def __init__(
        self,
        bucket: str | None = None,
        region: str | None = None,
        *,
        client=None,
    ) -> None:
        bucket = bucket or settings.s3_bucket
        region = region or settings.s3_region
        if not bucket:
            raise ValueError("S3 bucket name is required")
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self._bucket = bucket
        self._region = region
        self._s3_client = client

    def put(self, name: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        from botocore.exceptions import BotoCoreError, ClientError

        key = unique_key(name)
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {name!r} to S3: {exc}") from exc
        url = f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
        logger.info("Uploaded blob s3://%s/%s", self._bucket, key)
        return StoredBlob(key=key, url=url)


def get_blob_store(backend: str | None = None) -> BlobStoreBase:
    backend = backend or settings.blob_backend
    if backend == "local":
        return LocalBlobStore()
    if backend == "s3":
        return S3BlobStore()
    raise ValueError(f"Unsupported blob backend: {backend!r}")
