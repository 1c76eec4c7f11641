import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final
from urllib.parse import quote, urlencode
from uuid import uuid4

import boto3
from botocore.client import Config

from app.core.config import get_settings
from app.core.errors import ConfigError
from app.core.security import create_upload_token, verify_upload_token

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH: Final[int] = 120
LOCAL_UPLOAD_PREFIX: Final[str] = "local://upload/"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(filename: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9._-]`` with ``_`` and cap the length."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)[:MAX_FILENAME_LENGTH]


_storage_client: Any | None = None


def get_storage_client() -> Any:
    """Return the process-wide S3 client, creating it on first use."""
    global _storage_client
    if _storage_client is None:
        settings = get_settings()
        endpoint_url = settings.storage_endpoint_url
        if not endpoint_url or not settings.r2_access_key_id or not settings.r2_secret_access_key:
            raise ConfigError("Missing R2 credentials in environment variables")

        session = boto3.session.Session()
        _storage_client = session.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )
        logger.debug("Created storage client for %s", endpoint_url)
    return _storage_client


def reset_storage_client() -> None:
    global _storage_client
    _storage_client = None


class StorageService:
    """S3-compatible storage backend (Cloudflare R2 by default)."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self.bucket = self.settings.r2_bucket

    @property
    def client(self) -> Any:
        return get_storage_client()

    def generate_upload_key(self, filename: str, now: datetime | None = None) -> str:
        moment = now or datetime.now(timezone.utc)
        date_folder = moment.astimezone(timezone.utc).date().isoformat()
        safe_name = sanitize_filename(filename)
        return f"{self.settings.upload_key_namespace}/{date_folder}/{uuid4()}-{safe_name}"

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expires_in: int = 60,
    ) -> str:
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )


class LocalStorageService(StorageService):
    """Local filesystem storage intended for development use."""

    def __init__(self) -> None:
        super().__init__()
        self.base_path = Path(self.settings.local_storage_dir).resolve()
        if self.bucket:
            self.base_path = self.base_path / self.bucket
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _key_path(self, key: str) -> Path:
        # Prevent directory traversal by resolving inside base path
        candidate = self.base_path.joinpath(*Path(key).parts).resolve()
        if not candidate.is_relative_to(self.base_path) or candidate == self.base_path:
            raise ValueError("Invalid storage key")
        return candidate

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expires_in: int = 60,
    ) -> str:
        # Returns a local scheme that routers translate into real URLs.
        token = create_upload_token(key, content_type, expires_in)
        query = urlencode({"token": token})
        return f"{LOCAL_UPLOAD_PREFIX}{quote(key)}?{query}"

    def verify_upload(self, key: str, content_type: str, token: str) -> None:
        verify_upload_token(token, key, content_type)

    async def save_upload(self, key: str, data: bytes) -> None:
        target = self._key_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)

        def _write() -> None:
            # "xb" keeps each signed URL single-use
            with target.open("xb") as f:
                f.write(data)

        await asyncio.to_thread(_write)


_storage_service: StorageService | LocalStorageService | None = None


def get_storage_service() -> StorageService | LocalStorageService:
    global _storage_service
    if _storage_service is None:
        settings = get_settings()
        if settings.storage_backend == "local":
            _storage_service = LocalStorageService()
        else:
            _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
