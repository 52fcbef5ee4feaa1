# metastrip/errors.py
"""Exceptions raised by the metadata pipeline and the HTTP boundary."""

from typing import Optional

from metastrip.utils.signature import SUPPORTED_EXTENSIONS


class MetastripError(Exception):
    """Base exception for metadata pipeline errors.

    ``message`` is returned to the client as is; ``http_status`` is the code
    the HTTP boundary answers with.
    """

    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyInput(MetastripError):
    """Raised when the upload is missing or zero-length."""

    def __init__(self, message: str = "File cannot be empty"):
        super().__init__(message)


class UnsupportedFormat(MetastripError):
    """Raised when the filename is missing or has an unsupported extension."""

    def __init__(self, message: Optional[str] = None):
        if message is None:
            message = "Unsupported file format. Supported formats: " + ", ".join(SUPPORTED_EXTENSIONS)
        super().__init__(message)


class UnreadableMetadata(MetastripError):
    """Raised when the container cannot be parsed for metadata."""

    def __init__(self, message: str = "Failed to extract metadata from image"):
        super().__init__(message)


class UnreadableImage(MetastripError):
    """Raised when no pixel raster can be decoded from the upload."""

    def __init__(self, message: str = "Unable to read image file"):
        super().__init__(message)


class PayloadTooLarge(MetastripError):
    """Raised by the HTTP boundary when an upload exceeds the size cap."""

    http_status = 413

    def __init__(self, limit_bytes: int):
        super().__init__(f"File size exceeds maximum limit of {limit_bytes // (1024 * 1024)}MB")
        self.limit_bytes = limit_bytes


class RateLimitExceeded(MetastripError):
    """Raised by the HTTP boundary when a client has no tokens left."""

    http_status = 429

    def __init__(self, retry_after: int, headers: Optional[dict] = None):
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after
        self.headers = headers or {}
