from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.core.config import Settings, get_settings
from app.core.errors import AuthError, ConfigError, UpstreamError, ValidationError
from app.core.security import verify_event_code
from app.schemas import UploadUrlRequest, UploadUrlResponse, is_allowed_media_type
from app.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)


class UploadUrlIssuer:
    """Hands out short-lived presigned PUT URLs to guests holding the event code."""

    def __init__(
        self,
        settings: Settings | None = None,
        storage: StorageService | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.storage = storage or get_storage_service()

    def parse_request(self, body: Any) -> UploadUrlRequest:
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON in request body")
        try:
            payload = UploadUrlRequest.model_validate(body)
        except PydanticValidationError:
            payload = None
        if payload is None or not (
            payload.file_name and payload.content_type and payload.event_code
        ):
            raise ValidationError("Missing required fields: fileName, contentType, eventCode")
        return payload

    def issue(self, body: Any) -> UploadUrlResponse:
        payload = self.parse_request(body)

        upload_secret = self.settings.upload_secret
        if not upload_secret or not upload_secret.strip():
            logger.error("UPLOAD_SECRET not configured")
            raise ConfigError("Server configuration error: UPLOAD_SECRET not set")

        if not self.storage.bucket:
            logger.error("R2_BUCKET not configured")
            raise ConfigError("Server configuration error")

        if not is_allowed_media_type(payload.content_type):
            raise ValidationError("Only image and video files are allowed")

        if not verify_event_code(payload.event_code, upload_secret):
            logger.warning("Invalid event code attempt")
            raise AuthError("Invalid event code")

        key = self.storage.generate_upload_key(payload.file_name)
        try:
            url = self.storage.create_presigned_put(
                key,
                payload.content_type,
                expires_in=self.settings.upload_url_ttl,
            )
        except ConfigError:
            raise
        except Exception as exc:
            logger.exception("Error generating signed URL for %s", key)
            raise UpstreamError("Failed to generate upload URL. Check R2 credentials.") from exc

        if not url:
            logger.error("Generated URL is empty for %s", key)
            raise UpstreamError("Failed to generate valid upload URL")

        logger.info("Generated presigned URL for: %s", key)
        return UploadUrlResponse(url=url, key=key)
