"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so the settings
singleton is built for the test environment.
"""

import io
import os
import tempfile

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_ADMIN_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("STORAGE_DRIVER", "local")
os.environ.setdefault("STORAGE_URL", "http://testserver/static/")
os.environ.setdefault("STORAGE_LOCAL_ROOT", tempfile.mkdtemp(prefix="guard-storage-"))

import pytest
from PIL import Image

from app.api.dependencies import reset_dependencies


@pytest.fixture(autouse=True)
def _fresh_dependencies():
    """Every test starts with an empty captcha cache and throttle state."""
    reset_dependencies()
    yield
    reset_dependencies()


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (64, 48)) -> bytes:
    image = Image.new("RGB", size, (200, 40, 40))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")
