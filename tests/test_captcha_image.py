"""Tests for the Pillow captcha renderer."""

import base64
import io
import random

import pytest
from PIL import Image

from app.utils.captcha_image import (
    DEFAULT_CHARSET,
    CaptchaBuilder,
    generate_phrase,
)


def test_build_returns_png_of_requested_size() -> None:
    challenge = CaptchaBuilder(rng=random.Random(7)).build(120, 40)

    with Image.open(io.BytesIO(challenge.image)) as image:
        assert image.format == "PNG"
        assert image.size == (120, 40)


def test_default_phrase_uses_unambiguous_charset() -> None:
    challenge = CaptchaBuilder().build()

    assert len(challenge.phrase) == 5
    assert set(challenge.phrase) <= set(DEFAULT_CHARSET)
    assert "0" not in DEFAULT_CHARSET and "o" not in DEFAULT_CHARSET


def test_custom_length_and_charset() -> None:
    challenge = CaptchaBuilder(length=8, charset="AB").build()

    assert len(challenge.phrase) == 8
    assert set(challenge.phrase) <= {"A", "B"}


def test_inline_is_png_data_uri() -> None:
    challenge = CaptchaBuilder().build()

    prefix = "data:image/png;base64,"
    inline = challenge.inline()
    assert inline.startswith(prefix)
    assert base64.b64decode(inline[len(prefix):]) == challenge.image


def test_image_is_not_blank() -> None:
    challenge = CaptchaBuilder(rng=random.Random(1)).build()

    with Image.open(io.BytesIO(challenge.image)) as image:
        colors = image.getcolors(maxcolors=100_000)
    assert colors is not None
    assert len(colors) > 10


def test_phrases_vary() -> None:
    phrases = {generate_phrase() for _ in range(50)}
    assert len(phrases) > 1


@pytest.mark.parametrize("size", [(0, 36), (100, 0), (-1, -1)])
def test_rejects_non_positive_size(size: tuple[int, int]) -> None:
    with pytest.raises(ValueError):
        CaptchaBuilder().build(*size)


def test_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError):
        CaptchaBuilder(length=0)
    with pytest.raises(ValueError):
        CaptchaBuilder(charset="")
