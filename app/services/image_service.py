# /app/services/image_service.py

"""
Downscales uploaded work samples before they are stored.

Photos taken on a phone are several megabytes each and every one of them is
embedded in the single state document, so every image is clamped to a maximum
width and re-encoded as a lossy JPEG before it is attached to a student.
"""

import io
import base64
import asyncio
import logging
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# --- CONFIGURATION ---
MAX_IMAGE_WIDTH = 1000
JPEG_QUALITY = 50
DATA_URL_PREFIX = "data:image/jpeg;base64,"


def decode_data_url(data_url: str) -> bytes:
    """Returns the raw bytes of a `data:<mime>;base64,<payload>` URL (or of a bare base64 string)."""
    _, _, payload = data_url.partition(",") if data_url.startswith("data:") else ("", "", data_url)
    return base64.b64decode(payload, validate=True)


def load_image(source: Union[bytes, str]) -> Image.Image:
    """Opens raw bytes or a data URL as a fully decoded Pillow image."""
    raw = decode_data_url(source) if isinstance(source, str) else source
    image = Image.open(io.BytesIO(raw))
    image.load()
    return image


def _normalize_sync(source: Union[bytes, str]) -> str:
    image = load_image(source)

    width, height = image.size
    if width > MAX_IMAGE_WIDTH:
        height = max(1, round(height * MAX_IMAGE_WIDTH / width))
        width = MAX_IMAGE_WIDTH
        image = image.resize((width, height), Image.LANCZOS)

    # JPEG has no alpha channel; flatten transparency onto white.
    if image.mode in ("RGBA", "LA", "P"):
        image = image.convert("RGBA")
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


async def normalize_image(source: Union[bytes, str]) -> Optional[str]:
    """
    Clamps an image to MAX_IMAGE_WIDTH (keeping its aspect ratio) and re-encodes
    it as a JPEG data URL at JPEG_QUALITY.

    Decoding runs in a worker thread. If the input cannot be decoded, the error
    is logged and None is returned; the caller must treat the upload as
    incomplete.
    """
    try:
        return await asyncio.to_thread(_normalize_sync, source)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.warning("Could not decode uploaded image: %s", e)
        return None
