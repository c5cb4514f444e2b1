"""
ThumbnailGenerator - Produces cover-fit thumbnail variants and stores them.
"""

import io
import logging
import os
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Dict, Optional, Sequence, Union
from urllib.parse import urlparse

import urllib3
from PIL import Image, ImageOps

from .config import AppConfig, THUMBNAIL_ROUTE
from .errors import FetchError, ProcessingError, StorageIOError, ThumbnailError
from .local_client import LocalClient, LocalConfig
from .variant import DEFAULT_TIERS, ThumbnailOptions, ThumbnailResult, VariantSet

Source = Union[bytes, bytearray, memoryview, str, os.PathLike]
TierSizes = Union[Dict[str, ThumbnailOptions], Sequence[ThumbnailOptions]]

TIER_NAMES = ('small', 'medium', 'large')


class ThumbnailGenerator:
    """
    Generates thumbnails from original images using Pillow.

    Every variant is cropped to exactly fill its target box, written under a
    random filename and addressed by a URL built from the configured base URL.
    """

    def __init__(
        self,
        config: AppConfig,
        storage: Optional[LocalClient] = None,
        http: Optional[urllib3.PoolManager] = None,
        temp_dir: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize thumbnail generator.

        Args:
            config: Application configuration (base URL, directories, timeouts)
            storage: Storage for the thumbnail files (default: local thumbnail dir)
            http: urllib3 pool used for downloads and probes
            temp_dir: Directory for download temp files (default: system temp)
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.storage = storage or LocalClient(LocalConfig(root_path=config.thumbnail_dir), self.logger)
        self.timeout = urllib3.Timeout(connect=config.connect_timeout, read=config.read_timeout)
        self.http = http or urllib3.PoolManager(timeout=self.timeout)
        self.temp_dir = temp_dir

    # --- Generation -----------------------------------------------------------

    def generate_from_file(
        self,
        path: Union[str, os.PathLike],
        options: Optional[ThumbnailOptions] = None
    ) -> ThumbnailResult:
        """
        Generate a thumbnail from an image file.

        Raises:
            ProcessingError: If the file is unreadable or not a valid image
            StorageIOError: If the thumbnail cannot be written
        """
        options = options or ThumbnailOptions()
        try:
            with Image.open(path) as img:
                data = self._render(img, options)
        except ProcessingError:
            raise
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            self.logger.error(f"Error generating thumbnail from {path}: {e}")
            raise ProcessingError(f"Thumbnail generation failed for {path}: {e}") from e
        return self._store(data, options)

    def generate_from_buffer(
        self,
        buffer: bytes,
        options: Optional[ThumbnailOptions] = None
    ) -> ThumbnailResult:
        """Generate a thumbnail from in-memory image bytes."""
        options = options or ThumbnailOptions()
        if not buffer:
            raise ProcessingError("Thumbnail generation failed: empty image buffer")
        try:
            with Image.open(io.BytesIO(buffer)) as img:
                data = self._render(img, options)
        except ProcessingError:
            raise
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            self.logger.error(f"Error generating thumbnail from buffer: {e}")
            raise ProcessingError(f"Thumbnail generation failed: {e}") from e
        return self._store(data, options)

    def generate_from_url(
        self,
        url: str,
        options: Optional[ThumbnailOptions] = None
    ) -> ThumbnailResult:
        """
        Download an image and generate a thumbnail from it.

        Root-relative URLs are resolved against the base URL. The download is
        staged in a temp file that is removed whether or not generation
        succeeds.

        Raises:
            FetchError: If the download fails or returns a non-2xx status
            ProcessingError: If the downloaded bytes are not a valid image
            StorageIOError: If the temp file or thumbnail cannot be written
        """
        full_url = self.config.resolve_url(url)
        fd, temp_path = tempfile.mkstemp(prefix='download_', dir=self.temp_dir)
        os.close(fd)
        try:
            data = self._download(full_url)
            try:
                with open(temp_path, 'wb') as f:
                    f.write(data)
            except OSError as e:
                raise StorageIOError(f"Failed to stage download of {full_url}: {e}") from e
            return self.generate_from_file(temp_path, options)
        except ThumbnailError as e:
            self.logger.error(f"Thumbnail generation from URL {full_url} failed: {e}")
            raise
        finally:
            self._remove_temp(temp_path)

    def generate_multiple_sizes(
        self,
        source: Source,
        sizes: Optional[TierSizes] = None,
        remote: bool = False
    ) -> VariantSet:
        """
        Generate several tiers from one source concurrently.

        Args:
            source: Image bytes, a file path, or an absolute/root-relative URL
            sizes: Mapping of tier name to options, or a sequence named
                small/medium/large in order (default: DEFAULT_TIERS)
            remote: Always fetch a string source over HTTP, even when a local
                file has the same path

        Returns:
            VariantSet with one result per tier that succeeded and an error
            message per tier that failed

        Raises:
            ThumbnailError: The first tier's error if every tier failed
        """
        tiers = self._name_tiers(sizes)
        task = self._task_for(source, remote)
        variants = VariantSet()
        first_error = None

        with ThreadPoolExecutor(max_workers=len(tiers)) as executor:
            futures = {name: executor.submit(task, options) for name, options in tiers.items()}
            for name, future in futures.items():
                try:
                    variants.results[name] = future.result()
                except ThumbnailError as e:
                    self.logger.warning(f"Tier {name} failed: {e}")
                    variants.errors[name] = str(e)
                    first_error = first_error or e

        if not variants.results and first_error is not None:
            raise first_error
        return variants

    # --- Maintenance ----------------------------------------------------------

    def delete_variant(self, url: str) -> bool:
        """
        Delete the file behind a previously returned thumbnail URL.

        Returns:
            True if removed, False if the file was already gone
        """
        filename = os.path.basename(urlparse(url).path)
        try:
            return self.storage.delete_object(filename)
        except ValueError:
            self.logger.warning(f"Not a thumbnail URL: {url}")
            return False

    def validate_remote_image(self, url: str) -> bool:
        """Probe a URL with HEAD and check that it serves an image."""
        full_url = self.config.resolve_url(url)
        try:
            response = self.http.request('HEAD', full_url, preload_content=False, timeout=self.timeout)
        except urllib3.exceptions.HTTPError as e:
            self.logger.info(f"Image probe failed for {full_url}: {e}")
            return False
        try:
            content_type = response.headers.get('Content-Type', '')
            return 200 <= response.status < 300 and content_type.lower().startswith('image/')
        finally:
            response.release_conn()

    @staticmethod
    def looks_like_url(source: str) -> bool:
        """True for http(s) URLs and root-relative paths that are not local files."""
        if source.startswith(('http://', 'https://')):
            return True
        return source.startswith('/') and not os.path.exists(source)

    # --- Internals ------------------------------------------------------------

    def _render(self, img: Image.Image, options: ThumbnailOptions) -> bytes:
        """Crop, resize and encode one variant."""
        img = ImageOps.exif_transpose(img)
        img = self._convert_color_mode(img, options.pil_format)
        img = ImageOps.fit(
            img,
            (options.width, options.height),
            method=Image.Resampling.LANCZOS,
            centering=(0.5, 0.5)
        )

        output = io.BytesIO()
        if options.pil_format == 'JPEG':
            img.save(output, format='JPEG', quality=options.quality, optimize=True, progressive=True)
        elif options.pil_format == 'WEBP':
            img.save(output, format='WEBP', quality=options.quality, method=4)
        else:
            img.save(output, format='PNG', optimize=True)

        data = output.getvalue()
        if not data:
            raise ProcessingError("Encoder produced an empty thumbnail")
        return data

    def _convert_color_mode(self, img: Image.Image, output_format: str) -> Image.Image:
        """Convert image to a color mode the output format can encode."""
        if img.mode == 'P':
            img = img.convert('RGBA' if 'transparency' in img.info else 'RGB')
        if img.mode == 'LA':
            img = img.convert('RGBA')

        if img.mode == 'RGBA':
            if output_format != 'JPEG':
                return img
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img

    def _store(self, data: bytes, options: ThumbnailOptions) -> ThumbnailResult:
        filename = f"{uuid.uuid4()}.{options.extension}"
        path = self.storage.upload_object(filename, data, options.content_type)
        url = self.config.public_url(THUMBNAIL_ROUTE, filename)
        self.logger.debug(f"Generated {filename} {options.width}x{options.height} ({len(data)} bytes)")
        return ThumbnailResult(path=path, url=url, byte_size=len(data))

    def _download(self, url: str) -> bytes:
        try:
            response = self.http.request('GET', url, timeout=self.timeout)
        except urllib3.exceptions.HTTPError as e:
            raise FetchError(f"Failed to fetch image {url}: {e}", url=url) from e
        if not 200 <= response.status < 300:
            raise FetchError(
                f"Failed to fetch image {url}: HTTP {response.status} {response.reason or ''}".rstrip(),
                url=url,
                status=response.status
            )
        return response.data

    def _remove_temp(self, temp_path: str) -> None:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not delete {temp_path}: {e}")

    def _task_for(self, source: Source, remote: bool = False) -> Callable[[ThumbnailOptions], ThumbnailResult]:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return partial(self.generate_from_buffer, bytes(source))
        if isinstance(source, os.PathLike):
            return partial(self.generate_from_file, source)
        if isinstance(source, str):
            if remote or self.looks_like_url(source):
                return partial(self.generate_from_url, source)
            return partial(self.generate_from_file, source)
        raise TypeError(f"Unsupported image source: {type(source).__name__}")

    @staticmethod
    def _name_tiers(sizes: Optional[TierSizes]) -> Dict[str, ThumbnailOptions]:
        if sizes is None:
            return dict(DEFAULT_TIERS)
        if isinstance(sizes, dict):
            tiers = dict(sizes)
        else:
            tiers = {}
            for i, options in enumerate(sizes):
                name = TIER_NAMES[i] if i < len(TIER_NAMES) else f"tier{i + 1}"
                tiers[name] = options
        if not tiers:
            raise ValueError("At least one thumbnail size is required")
        return tiers
