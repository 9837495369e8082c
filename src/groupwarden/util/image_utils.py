"""Image normalization helpers shared by still images and sampled frames."""

from io import BytesIO

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from groupwarden.util.logger import get_logger

logger = get_logger("image_utils")

register_heif_opener()

MAX_SIDE = 512
JPEG_QUALITY = 85


def resize_to_max_side(img: Image.Image, max_side: int = MAX_SIDE) -> Image.Image:
    """
    Shrink ``img`` so its longest side is at most ``max_side``, keeping aspect ratio.

    Smaller images are returned unchanged.
    """
    w, h = img.size
    if max(w, h) <= max_side:
        return img

    if w > h:
        new_w = max_side
        new_h = max(1, int(h * max_side / w))
    else:
        new_h = max_side
        new_w = max(1, int(w * max_side / h))

    return img.resize((new_w, new_h))


def encode_jpeg(img: Image.Image, max_side: int = MAX_SIDE) -> bytes:
    """Convert to RGB, shrink, and encode as JPEG."""
    rgb = resize_to_max_side(img.convert("RGB"), max_side)
    buffer = BytesIO()
    rgb.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


def prepare_still_image(data: bytes, max_side: int = MAX_SIDE) -> bytes | None:
    """
    Decode any Pillow-readable image (HEIF included) and re-encode it as a small JPEG.

    This function blocks the calling thread so it should be run with
    ``asyncio.to_thread``.

    Returns:
        JPEG bytes, or None if the data could not be decoded.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            img.seek(0)
            jpeg = encode_jpeg(img, max_side)
        logger.debug("[IMAGE] Normalized still image (%d -> %d bytes)", len(data), len(jpeg))
        return jpeg
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("[IMAGE] Could not decode image: %s", exc)
        return None
