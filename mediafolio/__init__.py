"""
mediafolio - Portfolio media service with progressive image delivery

Two halves:
    1. Server side: cover-fit thumbnail tiers (small/medium/large) generated
       from uploads, files or remote URLs, plus the upload and media API
    2. Display side: staged skeleton -> thumbnail -> full loading for grid
       cells, a paginated grid and a zoom/pan viewer

Originals can be stored on the local filesystem or in S3-compatible storage.
"""

__version__ = "1.0.0"
__author__ = "mediafolio contributors"

from .config import AppConfig, S3Config
from .errors import (
    Cancelled,
    FetchError,
    ProcessingError,
    StorageIOError,
    ThumbnailError,
    UploadError,
)
from .cancellation import CancellationToken
from .local_client import LocalConfig, LocalClient
from .s3_client import S3Client
from .variant import ThumbnailOptions, ThumbnailResult, VariantSet, DEFAULT_TIERS
from .thumbnail_generator import ThumbnailGenerator
from .media_record import MediaRecord, MediaType
from .media_library import MediaLibrary
from .uploads import UploadPipeline, UploadRequest

__all__ = [
    "AppConfig",
    "S3Config",
    "Cancelled",
    "FetchError",
    "ProcessingError",
    "StorageIOError",
    "ThumbnailError",
    "UploadError",
    "CancellationToken",
    "LocalConfig",
    "LocalClient",
    "S3Client",
    "ThumbnailOptions",
    "ThumbnailResult",
    "VariantSet",
    "DEFAULT_TIERS",
    "ThumbnailGenerator",
    "MediaRecord",
    "MediaType",
    "MediaLibrary",
    "UploadPipeline",
    "UploadRequest",
]
