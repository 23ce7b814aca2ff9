"""Tests for image validation and key generation."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from PIL import Image

from app.adapters.storage.base import AbstractStorage
from app.core.errors import ValidationAppError
from app.services.image_service import IMAGE_THUMBS, ImageService
from conftest import make_image_bytes


@pytest.fixture
def storage() -> Mock:
    mock = Mock(spec=AbstractStorage)
    mock.get.return_value = {"o": "http://cdn.test/x.png"}
    return mock


@pytest.fixture
def service(storage: Mock) -> ImageService:
    return ImageService(storage, now=lambda: datetime(2024, 5, 17, tzinfo=timezone.utc))


def test_upload_writes_under_dated_key(service: ImageService, storage: Mock) -> None:
    data = make_image_bytes("JPEG")
    stored = service.upload(data, webp=True)

    assert stored.key.startswith("2024/05/")
    assert stored.key.endswith(".jpg")
    key, stream, thumbs = storage.write.call_args.args
    assert key == stored.key
    assert stream.read() == data
    assert thumbs == IMAGE_THUMBS
    storage.get.assert_called_once_with(stored.key, IMAGE_THUMBS, webp=True)


def test_truncated_image_is_rejected_before_storage(service: ImageService, storage: Mock) -> None:
    data = make_image_bytes("PNG")

    with pytest.raises(ValidationAppError) as exc_info:
        service.upload(data[: len(data) // 2])

    assert exc_info.value.code == "image_unreadable"
    assert exc_info.value.errors == {"image": "unreadable"}
    storage.write.assert_not_called()


def test_decompression_bomb_is_rejected(service: ImageService, storage: Mock, monkeypatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ValidationAppError) as exc_info:
        service.upload(make_image_bytes("PNG", size=(64, 48)))

    assert exc_info.value.code == "image_unreadable"
    storage.write.assert_not_called()


def test_delete_passes_thumbs(service: ImageService, storage: Mock) -> None:
    service.delete("2024/05/abc.png")
    storage.delete.assert_called_once_with("2024/05/abc.png", IMAGE_THUMBS)


def test_keys_are_unique(service: ImageService) -> None:
    assert len({service.build_key(".png") for _ in range(100)}) == 100

