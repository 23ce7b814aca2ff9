"""Tests for the Qiniu storage adapter against a mocked HTTP API."""

import io
import json
from unittest.mock import Mock

import httpx
import pytest

from app.adapters.storage.qiniu import QINIU_UPLOAD_HOSTS, QiniuStorage
from app.adapters.storage.signing import QiniuSigner, urlsafe_b64encode
from app.core.errors import StorageAppError, ValidationAppError

THUMBS = {"t": (360, 360), "r": (1360, 1360)}


class Recorder:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, status_code: int = 200, **response_kwargs) -> None:
        self.status_code = status_code
        self.response_kwargs = response_kwargs
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return httpx.Response(self.status_code, **self.response_kwargs)


def _storage(handler, zone: str = "z1", url: str = "https://cdn.example.com") -> QiniuStorage:
    signer = QiniuSigner(
        access_key="AK",
        secret_key="SK",
        bucket="bucket",
        clock=Mock(return_value=1_700_000_000.0),
    )
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return QiniuStorage(signer=signer, zone=zone, url=url, client=client)


class TestGet:
    def test_original_and_thumbnail_urls(self) -> None:
        urls = _storage(Recorder()).get("2024/05/a.png", {"thumb": (100, 100)})

        assert urls == {
            "o": "https://cdn.example.com/2024/05/a.png",
            "thumb": "https://cdn.example.com/2024/05/a.png?imageView2/1/w/100/h/100",
        }

    def test_webp_clients_get_format_parameter(self) -> None:
        urls = _storage(Recorder()).get("a.png", {"thumb": (100, 80)}, webp=True)

        assert urls["thumb"] == "https://cdn.example.com/a.png?imageView2/1/w/100/h/80/format/webp"
        assert urls["o"] == "https://cdn.example.com/a.png"

    def test_no_thumbs_returns_original_only(self) -> None:
        assert _storage(Recorder()).get("a.png", {}) == {"o": "https://cdn.example.com/a.png"}

    def test_no_http_request_made(self) -> None:
        recorder = Recorder()
        _storage(recorder).get("a.png", THUMBS)
        assert recorder.requests == []


class TestWrite:
    def test_posts_multipart_form_to_zone_host(self) -> None:
        recorder = Recorder(200, json={"key": "a/b.png"})
        _storage(recorder).write("a/b.png", io.BytesIO(b"image-bytes"), THUMBS)

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://up-z1.qiniup.com/"
        assert request.headers["Host"] == QINIU_UPLOAD_HOSTS["z1"]
        assert request.headers["Content-Type"].startswith("multipart/form-data")

        body = request.content
        assert b'name="key"' in body and b"a/b.png" in body
        assert b'name="token"' in body
        assert b'name="file"; filename="b.png"' in body
        assert b"image-bytes" in body

    def test_token_in_form_is_scoped_to_path(self) -> None:
        recorder = Recorder(200)
        _storage(recorder).write("a/b.png", io.BytesIO(b"x"), {})

        body = recorder.requests[0].content.decode("latin-1")
        token_line = body.split('name="token"')[1].split("\r\n\r\n", 1)[1].split("\r\n", 1)[0]
        assert QiniuSigner.decode_policy(token_line)["scope"] == "bucket:a/b.png"

    def test_failure_raises_with_reason_phrase(self) -> None:
        recorder = Recorder(401, json={"error": "bad token"})

        with pytest.raises(StorageAppError) as exc_info:
            _storage(recorder).write("a.png", io.BytesIO(b"x"), {})

        assert exc_info.value.code == "storage_write_failed"
        assert exc_info.value.message == "Unauthorized"
        assert exc_info.value.details["http_status"] == 401

    def test_failure_without_reason_phrase_uses_provider_error(self) -> None:
        recorder = Recorder(614, json={"error": "file exists"})

        with pytest.raises(StorageAppError) as exc_info:
            _storage(recorder).write("a.png", io.BytesIO(b"x"), {})

        assert exc_info.value.message == "file exists"

    def test_transport_error_becomes_storage_error(self) -> None:
        def _boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(StorageAppError):
            _storage(_boom).write("a.png", io.BytesIO(b"x"), {})


class TestDelete:
    def test_signed_delete_request(self) -> None:
        recorder = Recorder(200)
        storage = _storage(recorder)
        storage.delete("a/b.png", THUMBS)

        encoded = urlsafe_b64encode("bucket:a/b.png")
        request = recorder.requests[0]
        assert str(request.url) == f"https://rs.qiniu.com/delete/{encoded}"
        assert request.headers["Host"] == "rs.qiniu.com"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Authorization"] == (
            "QBox " + storage._signer.access_token(f"/delete/{encoded}")
        )

    def test_missing_object_is_success(self) -> None:
        recorder = Recorder(612, content=json.dumps({"error": "no such file or directory"}))

        _storage(recorder).delete("gone.png", THUMBS)

        assert len(recorder.requests) == 1

    def test_other_failures_raise(self) -> None:
        recorder = Recorder(599, json={"error": "server error"})

        with pytest.raises(StorageAppError) as exc_info:
            _storage(recorder).delete("a.png", THUMBS)

        assert exc_info.value.code == "storage_delete_failed"
        assert exc_info.value.message == "server error"


def test_unknown_zone_rejected() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        _storage(Recorder(), zone="mars")
    assert exc_info.value.code == "storage_unknown_zone"


def test_zone_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        QINIU_UPLOAD_HOSTS["z9"] = "evil.example.com"  # type: ignore[index]


def test_base_url_gets_trailing_slash() -> None:
    assert _storage(Recorder(), url="https://cdn.example.com/").base_url == "https://cdn.example.com/"
    assert _storage(Recorder(), url="https://cdn.example.com").base_url == "https://cdn.example.com/"
