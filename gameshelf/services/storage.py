"""
Object storage for cover art and avatars.

Three backends share one protocol: an S3-compatible bucket for deployments,
a local directory for development and an in-memory dict for tests.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import (
    AWS_ACCESS_KEY_ID,
    AWS_SECRET_ACCESS_KEY,
    S3_BUCKET,
    S3_ENDPOINT_URL,
    S3_PUBLIC_BASE_URL,
    S3_REGION,
    STORAGE_BACKEND,
    STORAGE_DIR,
    STORAGE_PUBLIC_BASE_URL,
)

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}


class StorageError(Exception):
    """Raised when an object cannot be written to or read from storage."""


class StorageClient(Protocol):
    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        ...

    def public_url(self, path: str) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://storage.test"
    stored_objects: dict = field(default_factory=dict)

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        self.stored_objects[path] = (bytes(data), content_type)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"


@dataclass
class LocalStorageClient:
    """Writes objects under a directory that the app serves at ``base_url``."""

    root: str
    base_url: str = "/files"

    def resolve_path(self, path: str) -> Path:
        root = Path(self.root).resolve()
        target = (root / path).resolve()
        if root not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        target = self.resolve_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(str(exc)) from exc

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"


@dataclass
class S3StorageClient:
    """S3-compatible bucket with public-read objects."""

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{path}"
        base = (self.endpoint or f"https://s3.{self.region}.amazonaws.com").rstrip("/")
        return f"{base}/{self.bucket}/{path}"


def image_extension(filename: Optional[str]) -> Optional[str]:
    if not filename or "." not in filename:
        return None
    ext = filename.rsplit(".", 1)[1].lower()
    return ext if ext in ALLOWED_IMAGE_EXTENSIONS else None


def store_image(
    storage: StorageClient,
    prefix: str,
    owner_id: int,
    filename: Optional[str],
    data: bytes,
    content_type: Optional[str],
) -> str:
    """Upload an image under ``prefix/owner_id/`` and return its public URL.

    Object names are random so a re-upload never overwrites a URL that is
    already cached by clients.
    """
    ext = image_extension(filename)
    if ext is None:
        raise ValueError("Unsupported image type")
    path = f"{prefix}/{owner_id}/{uuid.uuid4().hex}.{ext}"
    storage.upload_bytes(path, data, content_type or "application/octet-stream")
    logger.info("Stored %s (%d bytes)", path, len(data))
    return storage.public_url(path)


_storage_client: StorageClient | None = None


def get_storage_client() -> StorageClient:
    """Return the process-wide storage client for the configured backend."""
    global _storage_client
    if _storage_client:
        return _storage_client

    if STORAGE_BACKEND == "s3" and S3_BUCKET:
        _storage_client = S3StorageClient(
            bucket=S3_BUCKET,
            region=S3_REGION,
            endpoint=S3_ENDPOINT_URL,
            access_key_id=AWS_ACCESS_KEY_ID,
            secret_access_key=AWS_SECRET_ACCESS_KEY,
            public_base_url=S3_PUBLIC_BASE_URL,
        )
    elif STORAGE_BACKEND == "memory":
        _storage_client = InMemoryStorageClient()
    else:
        if STORAGE_BACKEND not in ("local", "s3"):
            logger.warning("Unknown STORAGE_BACKEND %r, using local storage", STORAGE_BACKEND)
        elif STORAGE_BACKEND == "s3":
            logger.warning("STORAGE_BACKEND=s3 without S3_BUCKET, using local storage")
        _storage_client = LocalStorageClient(root=STORAGE_DIR, base_url=STORAGE_PUBLIC_BASE_URL)
    return _storage_client
