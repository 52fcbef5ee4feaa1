# tests/conftest.py
"""
Image fixtures are generated with Pillow at test time; metadata is written
through Pillow's own EXIF / PNG text / GIF comment support.
"""
from io import BytesIO

import pytest
from PIL import Image, PngImagePlugin

def _save(im: Image.Image, fmt: str, **params) -> bytes:
    buf = BytesIO()
    im.save(buf, format=fmt, **params)
    return buf.getvalue()

@pytest.fixture
def blue_png() -> bytes:
    return _save(Image.new("RGB", (100, 100), color=(0, 0, 255)), "PNG")

@pytest.fixture
def exif_jpeg() -> bytes:
    exif = Image.Exif()
    exif[0x010F] = "Canon"                 # Make
    exif[0x0110] = "Canon EOS 5D"          # Model
    exif[0x0132] = "2024:05:01 10:00:00"   # DateTime
    exif[0x013B] = "Alice"                 # Artist
    exif[0x0112] = 1                       # Orientation
    exif[0x8825] = {1: "N", 3: "W"}        # GPS IFD: LatitudeRef, LongitudeRef
    return _save(Image.new("RGB", (32, 24), color=(123, 200, 50)), "JPEG", exif=exif)

@pytest.fixture
def png_with_text() -> bytes:
    info = PngImagePlugin.PngInfo()
    info.add_text("Author", "Bob")
    info.add_text("Creation Time", "2024-05-01")
    im = Image.new("RGBA", (16, 8), color=(10, 20, 30, 128))
    im.putpixel((0, 0), (255, 0, 0, 255))
    return _save(im, "PNG", pnginfo=info, dpi=(72, 72))

@pytest.fixture
def gif_with_comment() -> bytes:
    im = Image.new("RGB", (12, 12), color=(255, 255, 0))
    im.putpixel((3, 3), (0, 0, 0))
    return _save(im, "GIF", comment=b"secret location")

@pytest.fixture
def bmp_image() -> bytes:
    im = Image.new("RGB", (10, 20), color=(1, 2, 3))
    im.putpixel((5, 5), (200, 100, 50))
    return _save(im, "BMP")
