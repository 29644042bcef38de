"""
Pytest configuration and shared fixtures for catalog-api tests.

This module provides:
- Database fixtures (fresh SQLite file per test)
- Storage fixtures
- API client fixtures
- Authentication fixtures
- Image factories
"""

import io
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator

# Settings are read at import time; point them at throwaway paths first
_TEST_ROOT = tempfile.mkdtemp(prefix="catalog-api-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_ROOT, 'catalog.db')}"
os.environ["STORAGE_PATH"] = os.path.join(_TEST_ROOT, "storage")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["ENVIRONMENT"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from catalog_api.main import app
from catalog_api.db.session import build_engine, get_session, init_models
from catalog_api.imaging.upload import ImageUpload
from catalog_api.storage import get_storage
from catalog_api.storage.local import LocalBlobStore


# ============================================================================
# Image factories
# ============================================================================

def make_image_bytes(width: int = 400, height: int = 300, fmt: str = "JPEG", color=(200, 30, 30)) -> bytes:
    """Encode a solid-colour image of the given size."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_upload(filename: str = "photo.jpg", **kwargs) -> ImageUpload:
    return ImageUpload(filename=filename, data=make_image_bytes(**kwargs), content_type="image/jpeg")


@pytest.fixture
def image_bytes():
    """Factory fixture: ``image_bytes(width, height, fmt)``."""
    return make_image_bytes


@pytest.fixture
def image_upload():
    """Factory fixture: ``image_upload(filename, width=..., height=...)``."""
    return make_upload


# ============================================================================
# Database fixtures
# ============================================================================

@pytest.fixture
async def engine(tmp_path: Path):
    """Fresh SQLite database with the schema created."""
    test_engine = build_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# Storage fixtures
# ============================================================================

@pytest.fixture
def test_storage(tmp_path: Path) -> LocalBlobStore:
    """Local blob store rooted in a temporary directory."""
    return LocalBlobStore(base_path=str(tmp_path / "storage"))


# ============================================================================
# API Client fixtures
# ============================================================================

@pytest.fixture
async def client(session_factory, test_storage) -> AsyncGenerator[AsyncClient, None]:
    """Asynchronous test client wired to the per-test database and storage.

    Each request gets its own session, like in production.
    """
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_storage] = lambda: test_storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# Authentication fixtures
# ============================================================================

USER_PAYLOAD = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "password": "secret-password",
    "password_confirmation": "secret-password",
}


@pytest.fixture
async def registered_user(client: AsyncClient) -> dict:
    response = await client.post("/register", json=USER_PAYLOAD)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
async def auth_token(client: AsyncClient, registered_user: dict) -> str:
    response = await client.post(
        "/login",
        json={"email": USER_PAYLOAD["email"], "password": USER_PAYLOAD["password"]},
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    return {"Authorization": f"Bearer {auth_token}"}
