from fastapi import FastAPI

from app.core.config import get_settings
from app.core.errors import UploadUrlError, upload_url_error_handler
from app.api.routers import files as files_router
from app.api.routers import uploads as uploads_router


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        debug=settings.debug,
        title="Event Photo Drop API",
    )

    app.add_exception_handler(UploadUrlError, upload_url_error_handler)

    app.include_router(uploads_router.router)
    app.include_router(files_router.router)

    return app


app = create_app()
