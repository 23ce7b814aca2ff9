"""Image captcha rendering with Pillow.

Produces a random phrase and a PNG that shows it with enough noise to defeat
naive OCR while staying readable for people:
- each glyph is drawn with its own colour and rotation
- interference lines are drawn behind the text
- the whole picture is bent by a sine wave, then sprinkled with dots
"""

from __future__ import annotations

import base64
import io
import math
import random
import secrets
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont

# No "o"/"0" so the phrase cannot be misread.
DEFAULT_CHARSET = "abcdefghijklmnpqrstuvwxyz123456789"
DEFAULT_LENGTH = 5


@dataclass(frozen=True)
class CaptchaChallenge:
    """A rendered captcha and its answer."""

    phrase: str
    image: bytes

    def inline(self) -> str:
        """Return the image as a ``data:`` URI ready for an ``<img src>``."""
        return to_data_uri(self.image)


def to_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def generate_phrase(length: int = DEFAULT_LENGTH, charset: str = DEFAULT_CHARSET) -> str:
    """Pick a phrase using the OS CSPRNG."""
    if length < 1:
        raise ValueError("length must be >= 1")
    if not charset:
        raise ValueError("charset must not be empty")
    return "".join(secrets.choice(charset) for _ in range(length))


class CaptchaBuilder:
    """Build captcha challenges.

    The phrase always comes from ``secrets``. ``rng`` only drives the visual
    noise, so tests may pass a seeded ``random.Random`` for stable pictures.
    """

    def __init__(
        self,
        *,
        length: int = DEFAULT_LENGTH,
        charset: str = DEFAULT_CHARSET,
        rng: random.Random | None = None,
    ) -> None:
        if length < 1:
            raise ValueError("length must be >= 1")
        if not charset:
            raise ValueError("charset must not be empty")

        self.length = length
        self.charset = charset
        self._rng = rng or random.Random()

    def build(self, width: int = 100, height: int = 36) -> CaptchaChallenge:
        if width < 1 or height < 1:
            raise ValueError("width and height must be positive")

        phrase = generate_phrase(self.length, self.charset)
        return CaptchaChallenge(phrase=phrase, image=self.render(phrase, width, height))

    def render(self, phrase: str, width: int, height: int) -> bytes:
        """Render ``phrase`` into PNG bytes of exactly ``width`` x ``height``."""
        background = self._random_color(215, 255)
        image = Image.new("RGB", (width, height), background)

        self._draw_lines(ImageDraw.Draw(image), width, height, count=max(2, width // 20))
        self._draw_phrase(image, phrase)
        image = self._distort(image, background)
        self._draw_dots(ImageDraw.Draw(image), width, height)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    def _random_color(self, low: int, high: int) -> tuple[int, int, int]:
        return (
            self._rng.randint(low, high),
            self._rng.randint(low, high),
            self._rng.randint(low, high),
        )

    def _draw_lines(self, draw: ImageDraw.ImageDraw, width: int, height: int, *, count: int) -> None:
        for _ in range(count):
            start = (self._rng.randint(0, width), self._rng.randint(0, height))
            end = (self._rng.randint(0, width), self._rng.randint(0, height))
            draw.line([start, end], fill=self._random_color(100, 200), width=1)

    def _draw_phrase(self, image: Image.Image, phrase: str) -> None:
        width, height = image.size
        font_size = max(8, int(height * 0.7))
        font = ImageFont.load_default(size=font_size)
        slot = width / len(phrase)

        for index, char in enumerate(phrase):
            canvas = font_size * 2
            glyph = Image.new("RGBA", (canvas, canvas), (0, 0, 0, 0))
            ImageDraw.Draw(glyph).text(
                (canvas / 2, canvas / 2),
                char,
                font=font,
                fill=self._random_color(0, 120) + (255,),
                anchor="mm",
            )
            glyph = glyph.rotate(
                self._rng.uniform(-25, 25),
                resample=Image.Resampling.BICUBIC,
            )
            bbox = glyph.getbbox()
            if bbox is None:
                continue
            glyph = glyph.crop(bbox)

            x = int(index * slot + (slot - glyph.width) / 2) + self._rng.randint(-2, 2)
            y = (height - glyph.height) // 2 + self._rng.randint(-3, 3)
            image.paste(glyph, (x, y), glyph)

    def _distort(self, image: Image.Image, background: tuple[int, int, int]) -> Image.Image:
        width, height = image.size
        amplitude = max(1.0, height / 12)
        wavelength = self._rng.uniform(width / 3, width)
        phase = self._rng.uniform(0, 2 * math.pi)

        out = Image.new("RGB", image.size, background)
        for x in range(width):
            offset = int(amplitude * math.sin(2 * math.pi * x / wavelength + phase))
            out.paste(image.crop((x, 0, x + 1, height)), (x, offset))
        return out

    def _draw_dots(self, draw: ImageDraw.ImageDraw, width: int, height: int) -> None:
        for _ in range(width * height // 30):
            draw.point(
                (self._rng.randrange(width), self._rng.randrange(height)),
                fill=self._random_color(80, 220),
            )
