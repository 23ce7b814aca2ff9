"""Tests for the filesystem storage adapter."""

import io
from pathlib import Path

import pytest
from PIL import Image

from app.adapters.storage.local import LocalStorage, thumb_path
from app.core.errors import StorageAppError, ValidationAppError
from conftest import make_image_bytes

THUMBS = {"t": (32, 32), "r": (48, 20)}


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(root=tmp_path, url="http://cdn.test/files")


def test_thumb_path_naming() -> None:
    assert thumb_path("2024/05/abc.png", "t") == "2024/05/abc_t.png"
    assert thumb_path("2024/05/abc.png", "t", webp=True) == "2024/05/abc_t.webp"


def test_get_urls(storage: LocalStorage) -> None:
    assert storage.get("a/b.png", THUMBS) == {
        "o": "http://cdn.test/files/a/b.png",
        "t": "http://cdn.test/files/a/b_t.png",
        "r": "http://cdn.test/files/a/b_r.png",
    }


def test_get_urls_prefers_webp_variants(storage: LocalStorage) -> None:
    urls = storage.get("a/b.png", THUMBS, webp=True)

    assert urls["o"] == "http://cdn.test/files/a/b.png"
    assert urls["t"] == "http://cdn.test/files/a/b_t.webp"


def test_write_stores_original_and_variants(storage: LocalStorage, tmp_path) -> None:
    data = make_image_bytes("PNG", size=(100, 60))
    storage.write("2024/05/pic.png", io.BytesIO(data), THUMBS)

    assert (tmp_path / "2024/05/pic.png").read_bytes() == data

    with Image.open(tmp_path / "2024/05/pic_t.png") as thumb:
        assert thumb.size == (32, 32)
        assert thumb.format == "PNG"
    with Image.open(tmp_path / "2024/05/pic_r.webp") as thumb:
        assert thumb.size == (48, 20)
        assert thumb.format == "WEBP"


def test_write_jpeg_keeps_format(storage: LocalStorage, tmp_path) -> None:
    storage.write("p.jpg", io.BytesIO(make_image_bytes("JPEG")), {"t": (10, 10)})

    with Image.open(tmp_path / "p_t.jpg") as thumb:
        assert thumb.format == "JPEG"


def test_write_without_thumbs_accepts_any_bytes(storage: LocalStorage, tmp_path) -> None:
    storage.write("blob.bin", io.BytesIO(b"not an image"), {})
    assert (tmp_path / "blob.bin").read_bytes() == b"not an image"


def _stored_files(root) -> list:
    return [p for p in root.rglob("*") if p.is_file()]


@pytest.mark.parametrize(
    "data",
    [b"not an image", make_image_bytes()[: len(make_image_bytes()) // 2]],
    ids=["garbage", "truncated"],
)
def test_unreadable_image_with_thumbs_writes_nothing(storage: LocalStorage, tmp_path, data: bytes) -> None:
    with pytest.raises(StorageAppError) as exc_info:
        storage.write("fake.png", io.BytesIO(data), THUMBS)

    assert exc_info.value.code == "storage_write_failed"
    assert _stored_files(tmp_path) == []


def test_failed_write_removes_partial_files(storage: LocalStorage, tmp_path, monkeypatch) -> None:
    original_write_bytes = Path.write_bytes

    def fail_on_webp(self, data):
        if self.suffix == ".webp":
            raise OSError(28, "No space left on device")
        return original_write_bytes(self, data)

    monkeypatch.setattr(Path, "write_bytes", fail_on_webp)

    with pytest.raises(StorageAppError) as exc_info:
        storage.write("p/pic.png", io.BytesIO(make_image_bytes()), THUMBS)

    assert exc_info.value.message == "No space left on device"
    assert _stored_files(tmp_path) == []


def test_delete_removes_everything_and_is_idempotent(storage: LocalStorage, tmp_path) -> None:
    storage.write("d/pic.png", io.BytesIO(make_image_bytes()), THUMBS)
    storage.delete("d/pic.png", THUMBS)

    assert list((tmp_path / "d").iterdir()) == []

    storage.delete("d/pic.png", THUMBS)


@pytest.mark.parametrize("path", ["../escape.png", "a/../../escape.png", ""])
def test_rejects_paths_outside_root(storage: LocalStorage, path: str) -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        storage.write(path, io.BytesIO(b"x"), {})
    assert exc_info.value.code == "storage_invalid_path"
