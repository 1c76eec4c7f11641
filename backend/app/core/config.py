from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    debug: bool = Field(default=False, alias="DEBUG")

    upload_secret: str | None = Field(default=None, alias="UPLOAD_SECRET")

    r2_account_id: str | None = Field(default=None, alias="R2_ACCOUNT_ID")
    r2_access_key_id: str | None = Field(default=None, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: str | None = Field(default=None, alias="R2_SECRET_ACCESS_KEY")
    r2_bucket: str | None = Field(default=None, alias="R2_BUCKET")
    r2_endpoint: HttpUrl | None = Field(default=None, alias="R2_ENDPOINT_URL")

    upload_key_namespace: str = Field(default="tess60", alias="UPLOAD_KEY_NAMESPACE")
    upload_url_ttl: int = Field(default=60, alias="UPLOAD_URL_TTL_SECONDS")

    storage_backend: Literal["r2", "local"] = Field(default="r2", alias="STORAGE_BACKEND")
    local_storage_dir: str = Field(default="./storage", alias="LOCAL_STORAGE_DIR")
    local_signing_key: str = Field(default="signing-key-change-me", alias="LOCAL_SIGNING_KEY")
    local_signing_algorithm: str = Field(default="HS256", alias="LOCAL_SIGNING_ALGORITHM")

    @property
    def storage_endpoint_url(self) -> str | None:
        if self.r2_endpoint:
            return str(self.r2_endpoint)
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None


@lru_cache
def get_settings() -> Settings:
    return Settings()
