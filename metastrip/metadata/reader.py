# metastrip/metadata/reader.py
"""
Metadata extraction with Pillow.

The upload is opened from memory and walked directory by directory:
EXIF (IFD0, Exif SubIFD, GPS, Interoperability, thumbnail IFD1), IPTC, XMP,
container header fields (JFIF, Adobe, ICC, PNG gAMA/sRGB/pHYs, comments) and
PNG text chunks. Each entry becomes a RawTag with a readable name and value.

A tag whose value cannot be described surfaces with an empty value, and a
directory that fails to parse is skipped; neither stops the remaining tags.
Only a container Pillow cannot open or decode is an error.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from io import BytesIO
from typing import Any, Callable, Dict, Iterator, List, Mapping, Tuple

from PIL import Image, IptcImagePlugin, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS, IFD, TAGS

from metastrip.errors import UnreadableMetadata
from metastrip.models import RawTag

logger = logging.getLogger(__name__)

# IFD0 entries that only point at other directories
_POINTER_TAGS = {IFD.Exif, IFD.GPSInfo, IFD.Interop}

_EXIF_DIRECTORIES: List[Tuple[str, int, Dict[int, str]]] = [
    ("Exif SubIFD", IFD.Exif, TAGS),
    ("GPS", IFD.GPSInfo, GPSTAGS),
    ("Interoperability", IFD.Interop, TAGS),
    ("Exif Thumbnail", IFD.IFD1, TAGS),
]

_NAME_OVERRIDES = {
    "FNumber": "F-Number",
    "DateTime": "Date/Time",
    "DateTimeOriginal": "Date/Time Original",
    "DateTimeDigitized": "Date/Time Digitized",
    "YCbCrPositioning": "YCbCr Positioning",
    "YCbCrSubSampling": "YCbCr Sub-Sampling",
    "YCbCrCoefficients": "YCbCr Coefficients",
}

_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

_ENUMS: Dict[str, Dict[int, str]] = {
    "Orientation": {
        1: "Top, left side (Horizontal / normal)",
        2: "Top, right side (Mirror horizontal)",
        3: "Bottom, right side (Rotate 180)",
        4: "Bottom, left side (Mirror vertical)",
        5: "Left side, top (Mirror horizontal and rotate 270 CW)",
        6: "Right side, top (Rotate 90 CW)",
        7: "Right side, bottom (Mirror horizontal and rotate 90 CW)",
        8: "Left side, bottom (Rotate 270 CW)",
    },
    "ResolutionUnit": {1: "(No unit)", 2: "Inch", 3: "cm"},
    "ColorSpace": {1: "sRGB", 65535: "Undefined"},
    "ExposureProgram": {
        0: "Unknown",
        1: "Manual control",
        2: "Program normal",
        3: "Aperture priority",
        4: "Shutter priority",
        5: "Program creative (slow program)",
        6: "Program action (high-speed program)",
        7: "Portrait mode",
        8: "Landscape mode",
    },
    "MeteringMode": {
        0: "Unknown",
        1: "Average",
        2: "Center weighted average",
        3: "Spot",
        4: "Multi-spot",
        5: "Multi-segment",
        6: "Partial",
        255: "(Other)",
    },
    "WhiteBalance": {0: "Auto white balance", 1: "Manual white balance"},
    "GPSAltitudeRef": {0: "Sea level", 1: "Below sea level"},
    "YCbCrPositioning": {1: "Center of pixel array", 2: "Datum point"},
}

_GPS_COORDINATES = {"GPSLatitude", "GPSLongitude", "GPSDestLatitude", "GPSDestLongitude"}

_IPTC_NAMES = {
    (1, 90): "Coded Character Set",
    (2, 0): "Application Record Version",
    (2, 5): "Object Name",
    (2, 10): "Urgency",
    (2, 15): "Category",
    (2, 25): "Keywords",
    (2, 40): "Special Instructions",
    (2, 55): "Date Created",
    (2, 60): "Time Created",
    (2, 62): "Digital Date Created",
    (2, 63): "Digital Time Created",
    (2, 80): "By-line",
    (2, 85): "By-line Title",
    (2, 90): "City",
    (2, 92): "Sub-location",
    (2, 95): "Province/State",
    (2, 100): "Country/Primary Location Code",
    (2, 101): "Country/Primary Location Name",
    (2, 103): "Original Transmission Reference",
    (2, 105): "Headline",
    (2, 110): "Credit",
    (2, 115): "Source",
    (2, 116): "Copyright Notice",
    (2, 118): "Contact",
    (2, 120): "Caption/Abstract",
    (2, 122): "Caption Writer/Editor",
}

_RDF = "{http://www.w3.org/1999/02/22-rdf-syntax-ns#}"

_SRGB_INTENTS = {0: "Perceptual", 1: "Relative Colorimetric", 2: "Saturation", 3: "Absolute Colorimetric"}
_JFIF_UNITS = {0: "none", 1: "inch", 2: "cm"}

# Text chunks reported under other directories
_SKIPPED_TEXT_KEYS = {"XML:com.adobe.xmp", "Raw profile type exif", "Raw profile type APP1", "exif"}

def humanize(name: str) -> str:
    """'DateTimeOriginal' -> 'Date/Time Original', 'ExposureTime' -> 'Exposure Time'."""
    if name in _NAME_OVERRIDES:
        return _NAME_OVERRIDES[name]
    return _CAMEL.sub(" ", name)

def _tag_name(tag_id: Any, names: Dict[int, str]) -> Tuple[str, str]:
    raw = names.get(tag_id)
    if raw is None:
        label = f"Unknown tag (0x{tag_id:04x})" if isinstance(tag_id, int) else str(tag_id)
        return "", label
    return raw, humanize(raw)

def _number(value: Any) -> float | None:
    if getattr(value, "denominator", 1) == 0:
        return None
    return float(value)

def _fmt(num: float) -> str:
    return f"{num:g}"

def _bytes_text(value: bytes) -> str:
    # EXIF UserComment carries an 8 byte character code prefix
    for prefix in (b"ASCII\x00\x00\x00", b"UNICODE\x00", b"\x00" * 8):
        if value.startswith(prefix):
            value = value[len(prefix):]
            break
    value = value.rstrip(b"\x00").strip()
    if not value:
        return ""
    if len(value) <= 256:
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError:
            text = None
        if text is not None and text.isprintable():
            return text
    return f"[{len(value)} bytes]"

def _exposure_time(value: Any) -> str:
    num = _number(value)
    if num is None:
        return ""
    if 0 < num < 1:
        return f"1/{round(1 / num)} sec"
    return f"{_fmt(num)} sec"

def _f_number(value: Any) -> str:
    num = _number(value)
    return "" if num is None else f"f/{_fmt(num)}"

def _focal_length(value: Any) -> str:
    num = _number(value)
    return "" if num is None else f"{_fmt(num)} mm"

def _coordinate(value: Any) -> str:
    degrees, minutes, seconds = (_number(v) for v in value)
    return f"{_fmt(degrees)}° {_fmt(minutes)}' {_fmt(seconds)}\""

def _flash(value: Any) -> str:
    return "Flash fired" if int(value) & 1 else "Flash did not fire"

_FORMATTERS: Dict[str, Callable[[Any], str]] = {
    "ExposureTime": _exposure_time,
    "FNumber": _f_number,
    "FocalLength": _focal_length,
    "Flash": _flash,
}
_FORMATTERS.update({name: _coordinate for name in _GPS_COORDINATES})

def describe(name: str, value: Any) -> str:
    """Readable description of a tag value; `name` is Pillow's tag name."""
    if value is None:
        return ""
    if name in _FORMATTERS:
        return _FORMATTERS[name](value)
    if isinstance(value, bytes):
        return _bytes_text(value)
    if isinstance(value, str):
        return value.strip("\x00").strip()
    if isinstance(value, int):
        return _ENUMS.get(name, {}).get(value, str(value))
    if isinstance(value, (tuple, list)):
        return ", ".join(describe("", v) for v in value)
    if isinstance(value, dict):
        return f"[{len(value)} entries]"
    if hasattr(value, "denominator"):
        num = _number(value)
        return "" if num is None else _fmt(num)
    return str(value)

def _entries(directory: str, entries: Mapping[int, Any], names: Dict[int, str]) -> Iterator[RawTag]:
    for tag_id in list(entries):
        if tag_id in _POINTER_TAGS:
            continue
        raw_name, name = _tag_name(tag_id, names)
        try:
            text = describe(raw_name, entries[tag_id])
        except Exception as e:
            logger.debug(f"Could not describe {directory} tag {name}: {e}")
            text = ""
        yield RawTag(directory, name, text)

def _exif_tags(im: Image.Image) -> Iterator[RawTag]:
    exif = im.getexif()
    if not exif:
        return
    yield from _entries("Exif IFD0", exif, TAGS)
    for directory, ifd, names in _EXIF_DIRECTORIES:
        try:
            entries = exif.get_ifd(ifd)
        except KeyError:
            # Pillow raises KeyError when the parent IFD has no pointer to it
            continue
        except Exception as e:
            logger.warning(f"Skipping unreadable {directory} directory: {e}")
            continue
        yield from _entries(directory, entries, names)

def _iptc_tags(im: Image.Image) -> Iterator[RawTag]:
    info = IptcImagePlugin.getiptcinfo(im)
    if not info:
        return
    for key, value in info.items():
        name = _IPTC_NAMES.get(key, f"Unknown tag ({key[0]}:{key[1]:d})")
        if isinstance(value, list):
            text = ", ".join(_bytes_text(v) for v in value)
        else:
            text = _bytes_text(value)
        yield RawTag("IPTC", name, text)

def _xmp_packet(im: Image.Image) -> bytes | str | None:
    for key in ("xmp", "XML:com.adobe.xmp"):
        packet = im.info.get(key)
        if packet:
            return packet
    return None

def _xmp_text(element: ET.Element) -> str:
    items = [li.text.strip() for li in element.iter(f"{_RDF}li") if li.text and li.text.strip()]
    if items:
        return ", ".join(items)
    return (element.text or "").strip()

def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]

def _xmp_tags(im: Image.Image) -> Iterator[RawTag]:
    packet = _xmp_packet(im)
    if packet is None:
        return
    if isinstance(packet, str):
        packet = packet.encode("utf-8")
    try:
        root = ET.fromstring(packet.strip(b"\x00 \r\n\t"))
    except ET.ParseError as e:
        logger.debug(f"XMP packet is not well-formed XML: {e}")
        yield RawTag("XMP", "XMP Packet", f"[{len(packet)} bytes]")
        return
    for description in root.iter(f"{_RDF}Description"):
        for attr, value in description.attrib.items():
            if attr.startswith(_RDF):
                continue
            yield RawTag("XMP", humanize(_local(attr)), value.strip())
        for child in description:
            yield RawTag("XMP", humanize(_local(child.tag)), _xmp_text(child))

def _header_tags(im: Image.Image) -> Iterator[RawTag]:
    info = im.info
    if "jfif_version" in info:
        major, minor = info["jfif_version"]
        yield RawTag("JFIF", "Version", f"{major}.{minor:02d}")
    if "jfif_unit" in info:
        yield RawTag("JFIF", "Resolution Units", _JFIF_UNITS.get(info["jfif_unit"], str(info["jfif_unit"])))
    if "jfif_density" in info:
        x, y = info["jfif_density"]
        yield RawTag("JFIF", "X Resolution", f"{x} dots")
        yield RawTag("JFIF", "Y Resolution", f"{y} dots")
    if "adobe" in info:
        yield RawTag("Adobe", "DCT Encode Version", str(info["adobe"]))
    if "adobe_transform" in info:
        yield RawTag("Adobe", "Color Transform", str(info["adobe_transform"]))
    if info.get("icc_profile"):
        yield RawTag("ICC Profile", "Profile Size", f"{len(info['icc_profile'])} bytes")
    if im.format == "PNG":
        if "gamma" in info:
            yield RawTag("PNG-gAMA", "Image Gamma", _fmt(info["gamma"]))
        if "srgb" in info:
            yield RawTag("PNG-sRGB", "sRGB Rendering Intent", _SRGB_INTENTS.get(info["srgb"], str(info["srgb"])))
        if "dpi" in info:
            x, y = info["dpi"]
            yield RawTag("PNG-pHYs", "Pixels Per Unit X", _fmt(x))
            yield RawTag("PNG-pHYs", "Pixels Per Unit Y", _fmt(y))
    if info.get("comment"):
        comment = info["comment"]
        text = _bytes_text(comment) if isinstance(comment, bytes) else str(comment)
        yield RawTag(f"{im.format} Comment", "Comment", text)

def _text_chunk_tags(im: Image.Image) -> Iterator[RawTag]:
    if im.format != "PNG":
        return
    for key, value in im.text.items():
        if key in _SKIPPED_TEXT_KEYS:
            continue
        yield RawTag("PNG-tEXt", key, str(value).strip())

_DIRECTORY_READERS = [
    ("EXIF", _exif_tags),
    ("IPTC", _iptc_tags),
    ("XMP", _xmp_tags),
    ("header", _header_tags),
    ("text", _text_chunk_tags),
]

def read_tags(data: bytes) -> List[RawTag]:
    """Return every metadata entry of the image in container order.

    Bytes Pillow cannot parse raise UnreadableMetadata.
    """
    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            tags: List[RawTag] = []
            for label, reader in _DIRECTORY_READERS:
                try:
                    tags.extend(reader(im))
                except Exception as e:
                    logger.warning(f"Skipping unreadable {label} metadata: {e}")
            return tags
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise UnreadableMetadata() from e
