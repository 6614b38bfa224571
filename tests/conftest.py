"""Pytest configuration and shared fixtures."""

import io
import random
from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from soulscape.core.config import Settings
from soulscape.main import create_app
from soulscape.storage.base import ListPage, ObjectEntry, StorageBackend


def make_image(
    width: int = 64,
    height: int = 48,
    image_format: str = "PNG",
    noise: bool = False,
    seed: int = 7,
    **save_kwargs,
) -> bytes:
    """Encode a synthetic image; noise images are nearly incompressible."""
    if noise:
        rng = random.Random(seed)
        image = Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))
    else:
        image = Image.linear_gradient("L").resize((width, height)).convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=image_format, **save_kwargs)
    return buffer.getvalue()


class InMemoryStorage(StorageBackend):
    """Dictionary-backed store with S3-like paging."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.signed: list[tuple[str, str, int]] = []
        self.list_calls: list[tuple[str, Optional[str], int]] = []

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.objects[key] = (data, content_type)

    def presign_put(self, key: str, content_type: str, expires_in: int) -> str:
        self.signed.append((key, content_type, expires_in))
        return f"https://bucket.example.com/{key}?X-Signature=abc"

    def list(self, prefix: str, cursor: Optional[str] = None, limit: int = 200) -> ListPage:
        self.list_calls.append((prefix, cursor, limit))
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        start = int(cursor) if cursor else 0
        page_keys = keys[start:start + limit]
        entries = [
            ObjectEntry(
                key=key,
                size_bytes=len(self.objects[key][0]),
                last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
            for key in page_keys
        ]
        next_cursor = str(start + limit) if start + limit < len(keys) else None
        return ListPage(entries=entries, next_cursor=next_cursor)

    def get_backend_name(self) -> str:
        return "memory"


@pytest.fixture
def test_settings(tmp_path):
    """Settings for a local backend rooted in a temporary directory."""
    return Settings(
        ENV="local",
        STORAGE_BACKEND="local",
        LOCAL_STORAGE_PATH=str(tmp_path / "media"),
        LOCAL_SIGNING_SECRET="test-secret",
        LOCAL_UPLOAD_BASE_URL="http://testserver",
        PUBLIC_HOST="cdn.example.com",
        MAX_TARGET_BYTES=200_000,
    )


@pytest.fixture
def app(test_settings):
    return create_app(test_settings)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def memory_storage(app):
    """Swap the app's backend for an in-memory store."""
    storage = InMemoryStorage()
    app.state.context._storage = storage
    return storage
