# tests/test_images.py
"""
Stripping is decode + re-encode: the output must decode to the same raster
and carry none of the metadata the fixtures put in.
"""
from io import BytesIO

import pytest
from PIL import Image

from metastrip.cleaners.images import _fit_mode, strip_metadata
from metastrip.errors import UnreadableImage, UnsupportedFormat
from metastrip.metadata.reader import read_tags

def _open(data: bytes) -> Image.Image:
    im = Image.open(BytesIO(data))
    im.load()
    return im

def _same_raster(a: bytes, b: bytes) -> bool:
    ia, ib = _open(a).convert("RGBA"), _open(b).convert("RGBA")
    return ia.size == ib.size and ia.tobytes() == ib.tobytes()

def test_jpeg_exif_removed(exif_jpeg):
    out = strip_metadata(exif_jpeg, "photo.jpg")
    im = _open(out)
    assert im.format == "JPEG"
    assert im.size == _open(exif_jpeg).size
    assert len(im.getexif()) == 0
    directories = {t.directory for t in read_tags(out)}
    assert not directories & {"Exif IFD0", "Exif SubIFD", "GPS"}

def test_png_text_and_dpi_removed(png_with_text):
    out = strip_metadata(png_with_text, "image.png")
    im = _open(out)
    assert im.format == "PNG"
    assert im.mode == "RGBA"
    assert im.text == {}
    assert "dpi" not in im.info
    assert read_tags(out) == []
    assert _same_raster(png_with_text, out)

def test_gif_comment_removed(gif_with_comment):
    out = strip_metadata(gif_with_comment, "anim.gif")
    im = _open(out)
    assert im.format == "GIF"
    assert "comment" not in im.info
    assert _same_raster(gif_with_comment, out)

def test_bmp_raster_identical(bmp_image):
    out = strip_metadata(bmp_image, "scan.bmp")
    assert _open(out).format == "BMP"
    assert _same_raster(bmp_image, out)

def test_stripping_is_idempotent(png_with_text, exif_jpeg):
    once = strip_metadata(png_with_text, "a.png")
    twice = strip_metadata(once, "a.png")
    assert _same_raster(once, twice)

    once = strip_metadata(exif_jpeg, "a.jpeg")
    twice = strip_metadata(once, "a.jpeg")
    assert _open(twice).size == _open(once).size

def test_mixed_case_extension(exif_jpeg):
    out = strip_metadata(exif_jpeg, "photo.JPG")
    assert _open(out).format == "JPEG"

@pytest.mark.parametrize("mode,fmt,expected", [
    ("RGBA", "JPEG", "RGB"),
    ("LA", "JPEG", "L"),
    ("RGB", "JPEG", "RGB"),
    ("CMYK", "PNG", "RGB"),
    ("LA", "BMP", "RGBA"),
    ("P", "BMP", "P"),
])
def test_modes_fitted_to_writer(mode, fmt, expected):
    assert _fit_mode(Image.new(mode, (4, 4)), fmt).mode == expected

def test_unsupported_extension(blue_png):
    with pytest.raises(UnsupportedFormat) as exc:
        strip_metadata(blue_png, "image.tiff")
    assert "Unsupported file format" in exc.value.message

def test_extension_not_matching_content(blue_png):
    with pytest.raises(UnreadableImage):
        strip_metadata(blue_png, "photo.jpg")

def test_garbage_content():
    with pytest.raises(UnreadableImage):
        strip_metadata(b"test image content", "photo.png")

def test_truncated_raster(blue_png):
    with pytest.raises(UnreadableImage):
        strip_metadata(blue_png[:60], "blue.png")
