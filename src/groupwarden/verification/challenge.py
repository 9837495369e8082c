"""Image challenges shown to new participants."""

from __future__ import annotations

import random
import secrets
from io import BytesIO
from typing import Protocol

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from groupwarden.datatypes.verification_datatypes import Challenge

# Look-alike glyphs (0/O, 1/I) are left out.
CHALLENGE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class ChallengeGenerator(Protocol):
    def generate(self, width: int, height: int, length: int) -> Challenge:
        """Return a fresh code and its rendered image."""
        ...


class ImageChallengeGenerator:
    """
    Renders a distorted code onto a noisy PNG with Pillow.

    ``generate`` blocks, so callers run it with ``asyncio.to_thread``.
    """

    def __init__(self, rng: random.Random | None = None, font_size: int = 40) -> None:
        self._rng = rng or secrets.SystemRandom()
        self.font_size = font_size

    def random_code(self, length: int) -> str:
        return "".join(self._rng.choice(CHALLENGE_ALPHABET) for _ in range(length))

    def generate(self, width: int = 200, height: int = 80, length: int = 5) -> Challenge:
        code = self.random_code(length)
        rng = self._rng

        image = Image.new("RGB", (width, height), (245, 245, 240))
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default(size=self.font_size)

        for _ in range(width * height // 40):
            draw.point(
                (rng.randrange(width), rng.randrange(height)),
                fill=(rng.randint(120, 220), rng.randint(120, 220), rng.randint(120, 220)),
            )

        slot = width / (length + 1)
        for index, char in enumerate(code):
            glyph = Image.new("RGBA", (self.font_size + 10, self.font_size + 10), (0, 0, 0, 0))
            ImageDraw.Draw(glyph).text(
                (5, 0), char, font=font,
                fill=(rng.randint(0, 90), rng.randint(0, 90), rng.randint(0, 90), 255),
            )
            glyph = glyph.rotate(rng.uniform(-25, 25), resample=Image.Resampling.BICUBIC, expand=True)
            x = int(slot * (index + 0.5) + rng.uniform(-4, 4))
            y = int((height - glyph.height) / 2 + rng.uniform(-6, 6))
            image.paste(glyph, (x, y), glyph)

        for _ in range(4):
            draw.line(
                [(rng.randrange(width), rng.randrange(height)), (rng.randrange(width), rng.randrange(height))],
                fill=(rng.randint(60, 160), rng.randint(60, 160), rng.randint(60, 160)),
                width=2,
            )

        image = image.filter(ImageFilter.SMOOTH)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return Challenge(code=code, image=buffer.getvalue())
