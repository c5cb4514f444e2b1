"""
Exception types raised by thumbnail generation and the upload pipeline.
"""

from typing import Optional


class ThumbnailError(Exception):
    """Base class for thumbnail generation failures."""
    pass


class ProcessingError(ThumbnailError):
    """Raised when a source image is unreadable, corrupt or unsupported."""
    pass


class FetchError(ThumbnailError):
    """Raised when a remote source is unreachable or not an image."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class StorageIOError(ThumbnailError, OSError):
    """Raised when writing or deleting a stored file fails."""
    pass


class UploadError(Exception):
    """
    Raised when an upload pipeline stage fails.

    Attributes:
        stage: Name of the stage that failed
        cause: The underlying exception
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Upload failed during {stage}: {cause}")
        self.stage = stage
        self.cause = cause


class Cancelled(Exception):
    """Raised when work is abandoned at a cancellation point."""
    pass
