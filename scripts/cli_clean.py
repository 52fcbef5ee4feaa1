# scripts/cli_clean.py
r"""
CLI metadata viewer / stripper (no web server needed).
Usage examples (from project root, with your venv activated):

  python scripts/cli_clean.py path/to/photo.jpg --inspect
  python scripts/cli_clean.py C:\\Users\\you\\Desktop\\pic.png
  python scripts/cli_clean.py photo.jpg --output /tmp/photo_public.jpg

Without --output the stripped copy is written next to the original as *_clean.ext
"""
from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path

# Ensures "metastrip" is importable even when running by path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from metastrip.errors import MetastripError
from metastrip.logs import configure_logging
from metastrip.models import ImageMetadataReport
from metastrip.service import build_report, strip_image

logger = logging.getLogger("cli_clean")

def print_report(report: ImageMetadataReport) -> None:
    print(f"{report.file_name} ({report.file_size} bytes, {report.mime_type or 'unknown type'})")
    if not report.has_metadata:
        print("No metadata found.")
        return
    for group in report.groups():
        if not group.has_data:
            continue
        print(f"\n[{group.group_name}]")
        for key, value in group.data.items():
            print(f"  {key}: {value}")

def inspect_one(path: Path) -> None:
    mime_type, _ = mimetypes.guess_type(path.name)
    print_report(build_report(path.read_bytes(), path.name, mime_type))

def clean_one(path: Path, dst: Path | None) -> Path:
    dst = dst or path.with_name(f"{path.stem}_clean{path.suffix}")
    dst.write_bytes(strip_image(path.read_bytes(), path.name))
    print(f"✅ Cleaned: {path.name} → {dst}")
    return dst

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="View or remove image metadata (jpg/jpeg/png/gif/bmp).")
    parser.add_argument("path", help="Image file to process")
    parser.add_argument("--inspect", action="store_true", help="Print grouped metadata instead of stripping")
    parser.add_argument("--output", "-o", help="Where to write the stripped image")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else "WARNING")

    path = Path(args.path).expanduser().resolve()
    if not path.is_file():
        print(f"❌ Not found: {path}")
        return 1

    try:
        if args.inspect:
            inspect_one(path)
        else:
            clean_one(path, Path(args.output).expanduser() if args.output else None)
    except MetastripError as e:
        print(f"❌ Failed to process {path.name}: {e.message}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
