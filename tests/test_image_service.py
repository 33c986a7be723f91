# /tests/test_image_service.py

import base64
import struct
import zlib
import pytest

from app.services import image_service
from app.services.image_service import normalize_image, load_image, decode_data_url


@pytest.mark.asyncio
async def test_wide_image_is_clamped_and_keeps_aspect_ratio(make_image_bytes):
    result = await normalize_image(make_image_bytes(width=3000, height=1500))

    assert result.startswith("data:image/jpeg;base64,")
    image = load_image(result)
    assert image.format == "JPEG"
    assert image.size == (image_service.MAX_IMAGE_WIDTH, 500)


@pytest.mark.asyncio
async def test_narrow_image_keeps_its_size(make_image_bytes):
    result = await normalize_image(make_image_bytes(width=640, height=480))
    assert load_image(result).size == (640, 480)


@pytest.mark.asyncio
async def test_transparent_image_is_flattened_to_rgb(make_image_bytes):
    result = await normalize_image(make_image_bytes(mode="RGBA"))
    assert load_image(result).mode == "RGB"


@pytest.mark.asyncio
async def test_data_url_input_is_accepted(make_image_bytes):
    data_url = "data:image/png;base64," + base64.b64encode(make_image_bytes(width=1200, height=600)).decode()
    result = await normalize_image(data_url)
    assert load_image(result).size == (1000, 500)


@pytest.mark.asyncio
async def test_undecodable_input_yields_none():
    assert await normalize_image(b"this is not an image") is None
    assert await normalize_image("data:image/png;base64,!!!notbase64") is None


def _png_header_only(width, height):
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    chunk = struct.pack(">I", len(ihdr)) + b"IHDR" + ihdr + struct.pack(">I", zlib.crc32(b"IHDR" + ihdr))
    return b"\x89PNG\r\n\x1a\n" + chunk


@pytest.mark.asyncio
async def test_oversized_image_yields_none():
    # 900M pixels trips Pillow's decompression bomb guard while opening.
    assert await normalize_image(_png_header_only(30000, 30000)) is None


def test_decode_data_url_round_trips_payload():
    payload = b"\x89PNG fake"
    data_url = "data:image/png;base64," + base64.b64encode(payload).decode()
    assert decode_data_url(data_url) == payload
