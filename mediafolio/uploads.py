"""
UploadPipeline - Stores an original, generates its tiers and records it.

Stages run in order with a cancellation point between them. A failure
aborts the remaining stages, undoes what earlier stages produced and is
reported as an UploadError naming the stage.
"""

import logging
import mimetypes
import os
import re
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional, Union

from .cancellation import CancellationToken
from .config import AppConfig, THUMBNAIL_ROUTE
from .errors import ProcessingError, StorageIOError, UploadError
from .local_client import LocalClient
from .media_library import MediaLibrary
from .media_record import MediaRecord, MediaType
from .s3_client import S3Client
from .thumbnail_generator import ThumbnailGenerator
from .variant import PRIMARY_TIER, VariantSet

STAGE_STORE_ORIGINAL = 'store_original'
STAGE_GENERATE_THUMBNAILS = 'generate_thumbnails'
STAGE_SAVE_RECORD = 'save_record'

_EXTENSION_RE = re.compile(r'^[a-z0-9]{1,5}$')


@dataclass
class UploadRequest:
    """An uploaded image plus the metadata for its record."""
    data: bytes
    filename: str
    content_type: str
    title: str
    location: str = ''
    media_type: MediaType = MediaType.PHOTO


class UploadPipeline:
    """
    Runs uploads end to end and removes records with all of their files.
    """

    def __init__(
        self,
        config: AppConfig,
        generator: ThumbnailGenerator,
        library: MediaLibrary,
        originals: Union[LocalClient, S3Client],
        original_route: str = 'uploads',
        tiers: Optional[dict] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the pipeline.

        Args:
            config: Application configuration
            generator: Thumbnail generator for the tiers
            library: Record store
            originals: Storage client for full-resolution originals
            original_route: URL path the originals are served under
            tiers: Tier name -> ThumbnailOptions (default tiers if None)
            logger: Optional logger instance
        """
        self.config = config
        self.generator = generator
        self.library = library
        self.originals = originals
        self.original_route = original_route
        self.tiers = tiers
        self.logger = logger or logging.getLogger(__name__)

    def run(self, request: UploadRequest, token: Optional[CancellationToken] = None) -> MediaRecord:
        """
        Run every stage for one upload.

        Returns:
            The saved MediaRecord

        Raises:
            UploadError: Naming the stage that failed or was cancelled
        """
        token = token or CancellationToken()
        stage = STAGE_STORE_ORIGINAL
        stored_name = None
        variants = None
        start = time.time()

        try:
            token.raise_if_cancelled()
            stored_name = self._store_original(request)

            stage = STAGE_GENERATE_THUMBNAILS
            token.raise_if_cancelled()
            variants = self.generator.generate_multiple_sizes(request.data, self.tiers)
            primary = variants.get(PRIMARY_TIER)
            if primary is None:
                reason = variants.errors.get(PRIMARY_TIER, 'tier missing')
                raise ProcessingError(f"Primary thumbnail tier failed: {reason}")

            stage = STAGE_SAVE_RECORD
            token.raise_if_cancelled()
            record = MediaRecord(
                title=request.title,
                location=request.location,
                media_type=request.media_type,
                url=self.config.public_url(self.original_route, stored_name),
                thumbnail_url=primary.url,
                source='upload',
                variant_urls=variants.urls,
            )
            self.library.add(record)
        except Exception as e:
            self.logger.error(f"Upload of {request.filename} failed at {stage}: {e}")
            self._rollback(stored_name, variants)
            raise UploadError(stage, e) from e

        self.logger.info(
            f"Upload complete: {request.filename} -> {stored_name} "
            f"({len(variants.results)} tiers, {time.time() - start:.2f}s)"
        )
        return record

    def delete_media(self, record_id: str) -> Optional[MediaRecord]:
        """
        Remove a record and every file generated for it.

        Files that another remaining record still references are kept.

        Returns:
            The removed record, or None if no record has that id
        """
        record = self.library.remove(record_id)
        if record is None:
            return None

        removed = 0
        for url in self._variant_urls(record):
            if self.library.references(url):
                self.logger.info(f"Keeping {url}, still used by another record")
                continue
            try:
                if self.generator.delete_variant(url):
                    removed += 1
            except StorageIOError as e:
                self.logger.warning(f"Could not delete variant {url}: {e}")

        original = self._owned_original(record.url)
        if original and not self.library.references(record.url):
            try:
                self.originals.delete_object(original)
            except StorageIOError as e:
                self.logger.warning(f"Could not delete original {original}: {e}")

        self.logger.info(f"Deleted media {record.id} ({removed} variant files removed)")
        return record

    def _store_original(self, request: UploadRequest) -> str:
        name = f"{int(time.time() * 1000)}-{uuid.uuid4()}.{self._extension(request)}"
        self.originals.upload_object(name, request.data, request.content_type)
        return name

    @staticmethod
    def _extension(request: UploadRequest) -> str:
        ext = os.path.splitext(request.filename or '')[1].lstrip('.').lower()
        if not _EXTENSION_RE.match(ext):
            guessed = mimetypes.guess_extension(request.content_type or '') or '.jpg'
            ext = guessed.lstrip('.')
        return ext

    def _rollback(self, stored_name: Optional[str], variants: Optional[VariantSet]) -> None:
        if variants is not None:
            for url in variants.urls:
                try:
                    self.generator.delete_variant(url)
                except StorageIOError as e:
                    self.logger.warning(f"Rollback could not delete {url}: {e}")
        if stored_name:
            try:
                self.originals.delete_object(stored_name)
            except StorageIOError as e:
                self.logger.warning(f"Rollback could not delete original {stored_name}: {e}")

    def _variant_urls(self, record: MediaRecord) -> List[str]:
        """Variant URLs of the record that point into the thumbnail directory."""
        prefix = self.config.public_url(THUMBNAIL_ROUTE) + '/'
        urls = list(record.variant_urls)
        if record.thumbnail_url and record.thumbnail_url not in urls:
            urls.append(record.thumbnail_url)
        return [url for url in urls if url.startswith(prefix)]

    def _owned_original(self, url: str) -> Optional[str]:
        prefix = self.config.public_url(self.original_route) + '/'
        if url.startswith(prefix):
            return url[len(prefix):]
        return None
