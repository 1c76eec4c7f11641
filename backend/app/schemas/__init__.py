from app.schemas.uploads import (
    ALLOWED_MEDIA_PREFIXES,
    ErrorResponse,
    UploadUrlRequest,
    UploadUrlResponse,
    is_allowed_media_type,
)

__all__ = [
    "UploadUrlRequest",
    "UploadUrlResponse",
    "ErrorResponse",
    "ALLOWED_MEDIA_PREFIXES",
    "is_allowed_media_type",
]
