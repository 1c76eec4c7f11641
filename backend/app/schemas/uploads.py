from pydantic import BaseModel, ConfigDict, Field

ALLOWED_MEDIA_PREFIXES = ("image/", "video/")


def is_allowed_media_type(content_type: str) -> bool:
    return content_type.startswith(ALLOWED_MEDIA_PREFIXES)


class UploadUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(default="", alias="fileName")
    content_type: str = Field(default="", alias="contentType")
    event_code: str = Field(default="", alias="eventCode")


class UploadUrlResponse(BaseModel):
    url: str
    key: str


class ErrorResponse(BaseModel):
    error: str
