# metastrip/cleaners/images.py
"""
Image metadata stripping by decode and re-encode:
1) Decode the full pixel raster with Pillow.
2) Copy the raster into a fresh image whose info dict holds nothing but
   palette transparency, so no EXIF, ICC, XMP, comment or text chunk reaches
   the writer.
3) Save it in the format named by the file extension, with writer defaults.
Lossy formats (JPEG) go through one more generation of compression.
"""
from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from metastrip.errors import UnreadableImage, UnsupportedFormat
from metastrip.utils.signature import detect_extension, ext_equivalent, extension_of, is_supported, writer_format

logger = logging.getLogger(__name__)

# info keys that describe pixels rather than metadata
_RASTER_INFO = {"transparency"}

# Modes each writer stores as-is; anything else is converted first
_WRITER_MODES = {
    "JPEG": {"L", "RGB", "CMYK"},
    "PNG": {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"},
    "BMP": {"1", "L", "P", "RGB", "RGBA"},
}

def _decode(data: bytes) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            clean = im.copy()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise UnreadableImage() from e
    clean.info = {k: v for k, v in im.info.items() if k in _RASTER_INFO}
    return clean

def _fit_mode(im: Image.Image, fmt: str) -> Image.Image:
    allowed = _WRITER_MODES.get(fmt)
    if allowed is None or im.mode in allowed:
        return im
    if fmt == "JPEG":
        target = "L" if im.mode in {"1", "LA", "I", "I;16", "F"} else "RGB"
    else:
        target = "RGBA" if "A" in im.getbands() or "transparency" in im.info else "RGB"
    return im.convert(target)

def _encode(im: Image.Image, fmt: str) -> bytes:
    out = BytesIO()
    try:
        im.save(out, format=fmt)
    except (OSError, ValueError) as e:
        raise UnreadableImage("Failed to strip metadata from image") from e
    return out.getvalue()

def strip_metadata(data: bytes, filename: str) -> bytes:
    """Return `data` re-encoded without any metadata.

    An unsupported extension raises UnsupportedFormat; content of another
    kind, or content that cannot be decoded, raises UnreadableImage.
    """
    if not is_supported(filename):
        raise UnsupportedFormat()
    fmt = writer_format(filename)
    detected = detect_extension(data)
    if detected is None or not ext_equivalent(extension_of(filename), detected):
        logger.warning(f"Content of {filename} does not match its extension (looks like {detected})")
        raise UnreadableImage()
    im = _fit_mode(_decode(data), fmt)
    return _encode(im, fmt)
