import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings
from app.services import storage as storage_service

EVENT_CODE = "party-2024"

MANAGED_ENV = (
    "DEBUG",
    "UPLOAD_SECRET",
    "R2_ACCOUNT_ID",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET",
    "R2_ENDPOINT_URL",
    "UPLOAD_KEY_NAMESPACE",
    "UPLOAD_URL_TTL_SECONDS",
    "STORAGE_BACKEND",
    "LOCAL_STORAGE_DIR",
    "LOCAL_SIGNING_KEY",
    "LOCAL_SIGNING_ALGORITHM",
)


class DummyStorage(storage_service.StorageService):
    def __init__(self, url: str | None = None, error: Exception | None = None) -> None:
        super().__init__()
        self.url = url
        self.error = error
        self.key_error: Exception | None = None
        self.calls: list[tuple[str, str, int]] = []

    def generate_upload_key(self, filename, now=None):  # type: ignore[override]
        if self.key_error:
            raise self.key_error
        return super().generate_upload_key(filename, now)

    def create_presigned_put(self, key: str, content_type: str, expires_in: int = 60) -> str:  # type: ignore[override]
        self.calls.append((key, content_type, expires_in))
        if self.error:
            raise self.error
        if self.url is not None:
            return self.url
        return f"https://example.com/put/{key}"


def _reset_caches() -> None:
    get_settings.cache_clear()
    storage_service.reset_storage_client()
    storage_service.reset_storage_service()


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path):
    for name in MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("UPLOAD_SECRET", EVENT_CODE)
    monkeypatch.setenv("R2_ACCOUNT_ID", "test-account")
    monkeypatch.setenv("R2_ACCESS_KEY_ID", "test-access-key")
    monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "test-secret-key")
    monkeypatch.setenv("R2_BUCKET", "test-bucket")
    monkeypatch.setenv("LOCAL_STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("LOCAL_SIGNING_KEY", "test-signing-key")
    _reset_caches()
    yield
    _reset_caches()


@pytest.fixture
def dummy_storage():
    storage = DummyStorage()
    storage_service._storage_service = storage
    return storage


@pytest.fixture
def local_storage(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    _reset_caches()
    return storage_service.get_storage_service()


@pytest.fixture
def app_instance():
    from app.main import create_app

    return create_app()


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
