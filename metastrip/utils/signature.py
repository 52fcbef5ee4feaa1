# metastrip/utils/signature.py
"""
Supported image extensions plus lightweight magic-number checks, so a file
whose extension lies about its content is caught before re-encoding.
"""
from __future__ import annotations

SUPPORTED_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "bmp")

def _starts(data: bytes, prefix: bytes) -> bool:
    return data.startswith(prefix)

def _is_jpeg(data: bytes) -> bool:
    return _starts(data, b"\xFF\xD8\xFF")

def _is_png(data: bytes) -> bool:
    return _starts(data, b"\x89PNG\r\n\x1a\n")

def _is_gif(data: bytes) -> bool:
    return _starts(data, b"GIF87a") or _starts(data, b"GIF89a")

def _is_bmp(data: bytes) -> bool:
    return len(data) >= 14 and _starts(data, b"BM")

_EQUIV = {
    "jpg": {"jpg", "jpeg"},
}

def extension_of(filename: str | None) -> str | None:
    """Lower-cased text after the last dot, or None without a filename."""
    if not filename:
        return None
    return filename.rsplit(".", 1)[-1].lower()

def is_supported(filename: str | None) -> bool:
    return extension_of(filename) in SUPPORTED_EXTENSIONS

def writer_format(filename: str) -> str:
    """Pillow format name used to re-serialize a file with this name."""
    ext = extension_of(filename)
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported extension: {ext}")
    return "JPEG" if ext == "jpg" else ext.upper()

def detect_extension(data: bytes) -> str | None:
    """Return a normalized extension (no dot), or None if unsupported."""
    if _is_jpeg(data): return "jpg"
    if _is_png(data):  return "png"
    if _is_gif(data):  return "gif"
    if _is_bmp(data):  return "bmp"
    return None

def ext_equivalent(a: str, b: str) -> bool:
    """True if extensions are the same or within an equivalence family."""
    a = a.lstrip(".").lower()
    b = b.lstrip(".").lower()
    if a == b: return True
    for fam in _EQUIV.values():
        if a in fam and b in fam:
            return True
    return False
