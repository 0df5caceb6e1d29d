from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from imaging import checkerboard_rgb, encode_image, solid_rgb

os.environ["DATABASE_URL"] = "sqlite:///./test_photo_quality.db"
os.environ["ENVIRONMENT"] = "development"
os.environ["CORS_ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["QUALITY_FAILURE_POLICY"] = "fail_open"

from app.core.config import get_settings
get_settings.cache_clear()
from app.db.models import Base
from app.db.session import engine
from app.main import app

TEST_DB_PATH = Path("test_photo_quality.db")


@pytest.fixture(autouse=True)
def reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="session", autouse=True)
def cleanup_db_file():
    yield
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture()
def solid_png():
    def _make(value, size=(100, 100)) -> bytes:
        return encode_image(solid_rgb(value, size))

    return _make


@pytest.fixture()
def checkerboard_png() -> bytes:
    return encode_image(checkerboard_rgb())
