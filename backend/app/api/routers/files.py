import logging

from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from app.core.security import SignatureError
from app.services.storage import LocalStorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.put("/upload/{object_path:path}", name="upload_file")
async def upload_file(
    object_path: str,
    request: Request,
    token: str = Query(...),
) -> Response:
    storage = get_storage_service()
    if not isinstance(storage, LocalStorageService):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    content_type = request.headers.get("content-type", "")
    try:
        storage.verify_upload(object_path, content_type, token)
    except SignatureError as exc:
        logger.warning("Rejected local upload for %s: %s", object_path, exc)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from None

    data = await request.body()
    try:
        await storage.save_upload(object_path, data)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid object key") from None
    except FileExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Upload URL already used",
        ) from None

    logger.info("Stored local upload %s (%d bytes)", object_path, len(data))
    return Response(status_code=status.HTTP_200_OK)
