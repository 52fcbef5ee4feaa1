# metastrip/service.py
"""Entry points of the metadata pipeline.

Each public function validates its input on its own and runs to completion
on the calling thread; nothing is shared between calls.
"""

import logging
from typing import Optional

from metastrip.cleaners.images import strip_metadata
from metastrip.errors import EmptyInput, UnsupportedFormat
from metastrip.metadata.classifier import CAMERA, DATE_TIME, IMAGE, LOCATION, OTHER, classify
from metastrip.metadata.reader import read_tags
from metastrip.models import ImageMetadataReport
from metastrip.utils.signature import is_supported

logger = logging.getLogger(__name__)


def validate_upload(data: Optional[bytes], filename: Optional[str]) -> None:
    """Reject empty payloads, then missing or unsupported file names."""
    if not data:
        raise EmptyInput()
    if not filename or not is_supported(filename):
        raise UnsupportedFormat()


def build_report(data: bytes, filename: str, mime_type: Optional[str] = None) -> ImageMetadataReport:
    """Read and group the metadata of one uploaded image.

    ``mime_type`` is the type the client declared and is reported unchanged.
    """
    validate_upload(data, filename)
    logger.info(f"Extracting metadata from file: {filename}")
    try:
        tags = read_tags(data)
    except Exception:
        logger.error(f"Error extracting metadata from file: {filename}", exc_info=True)
        raise

    classified = classify(tags)
    return ImageMetadataReport(
        file_name=filename,
        file_size=len(data),
        mime_type=mime_type,
        all_tags=classified.all_tags,
        has_metadata=bool(classified.all_tags),
        camera_info=classified.group(CAMERA),
        location_info=classified.group(LOCATION),
        date_time_info=classified.group(DATE_TIME),
        image_info=classified.group(IMAGE),
        other_info=classified.group(OTHER),
    )


def strip_image(data: bytes, filename: str) -> bytes:
    """Return a copy of the image with every metadata segment removed."""
    validate_upload(data, filename)
    logger.info(f"Processing image to strip metadata: {filename}")
    try:
        cleaned = strip_metadata(data, filename)
    except Exception:
        logger.error(f"Error stripping metadata from file: {filename}", exc_info=True)
        raise
    logger.info(f"Successfully stripped metadata from: {filename}")
    return cleaned


def cleaned_filename(filename: str) -> str:
    return f"cleaned_{filename}"
