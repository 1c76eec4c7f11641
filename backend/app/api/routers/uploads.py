import logging
from urllib.parse import parse_qsl, unquote, urlsplit

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_upload_url_issuer
from app.core.errors import UploadUrlError, UpstreamError, ValidationError
from app.schemas import ErrorResponse, UploadUrlResponse
from app.services.storage import LOCAL_UPLOAD_PREFIX
from app.services.uploads import UploadUrlIssuer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


def _resolve_local_url(request: Request, upload_url: str) -> str:
    parts = urlsplit(upload_url.removeprefix(LOCAL_UPLOAD_PREFIX))
    local_key = unquote(parts.path)
    url = request.url_for("upload_file", object_path=local_key)
    return str(url.include_query_params(**dict(parse_qsl(parts.query))))


@router.post(
    "/upload-url",
    response_model=UploadUrlResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_upload_url(
    request: Request,
    issuer: UploadUrlIssuer = Depends(get_upload_url_issuer),
) -> UploadUrlResponse:
    try:
        body = await request.json()
    except ValueError as exc:
        logger.error("JSON parse error: %s", exc)
        raise ValidationError("Invalid JSON in request body") from exc

    try:
        issued = issuer.issue(body)
    except UploadUrlError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error in upload-url route")
        raise UpstreamError(f"Failed to generate upload URL: {exc}") from exc

    if issued.url.startswith(LOCAL_UPLOAD_PREFIX):
        issued.url = _resolve_local_url(request, issued.url)
    return issued
