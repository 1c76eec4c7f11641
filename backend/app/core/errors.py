from fastapi import Request, status
from fastapi.responses import JSONResponse


class UploadUrlError(Exception):
    """Base class for failures reported to upload URL callers as ``{"error": ...}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(UploadUrlError):
    """Malformed or missing request input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(UploadUrlError):
    """The supplied event code was rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ConfigError(UploadUrlError):
    """Server-side configuration is missing."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(UploadUrlError):
    """The storage provider call failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def upload_url_error_handler(request: Request, exc: UploadUrlError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
