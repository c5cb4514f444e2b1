"""
ImageFetcher - Asynchronous image loads with load/error callbacks.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import urllib3
from PIL import Image

from ..errors import FetchError, ProcessingError


@dataclass(frozen=True)
class ImageInfo:
    """
    A loaded image.

    Attributes:
        url: URL the image was loaded from
        width: Natural width in pixels
        height: Natural height in pixels
        byte_size: Encoded size in bytes
    """
    url: str
    width: int
    height: int
    byte_size: int


LoadCallback = Callable[[ImageInfo], None]
ErrorCallback = Callable[[Exception], None]


class ImageFetcher:
    """Starts an image load and reports the outcome through callbacks."""

    def fetch(self, url: str, on_load: LoadCallback, on_error: ErrorCallback) -> None:
        raise NotImplementedError


class HttpImageFetcher(ImageFetcher):
    """
    Loads images over HTTP on a worker pool.

    A load fails on transport errors, non-2xx responses, timeouts and bytes
    that do not decode as an image.
    """

    def __init__(
        self,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
        max_workers: int = 6,
        http: Optional[urllib3.PoolManager] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.timeout = urllib3.Timeout(connect=connect_timeout, read=read_timeout)
        self.http = http or urllib3.PoolManager(timeout=self.timeout)
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='image-fetch')
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self, url: str, on_load: LoadCallback, on_error: ErrorCallback) -> None:
        self.executor.submit(self._load, url, on_load, on_error)

    def load(self, url: str) -> ImageInfo:
        """Fetch url and read its natural size."""
        try:
            response = self.http.request('GET', url, timeout=self.timeout)
        except urllib3.exceptions.HTTPError as e:
            raise FetchError(f"Failed to load {url}: {e}", url=url) from e
        if not 200 <= response.status < 300:
            raise FetchError(f"Failed to load {url}: HTTP {response.status}", url=url, status=response.status)

        data = response.data
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (OSError, Image.DecompressionBombError) as e:
            raise ProcessingError(f"Not an image: {url}") from e
        return ImageInfo(url=url, width=width, height=height, byte_size=len(data))

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False)

    def _load(self, url: str, on_load: LoadCallback, on_error: ErrorCallback) -> None:
        try:
            info = self.load(url)
        except (FetchError, ProcessingError) as e:
            self.logger.debug(f"Image load failed: {e}")
            self._notify(on_error, e)
            return
        except Exception as e:
            self.logger.exception(f"Unexpected error loading {url}")
            self._notify(on_error, e)
            return
        self._notify(on_load, info)

    def _notify(self, callback: Callable, value) -> None:
        try:
            callback(value)
        except Exception:
            self.logger.exception(f"Image load callback {callback!r} raised")
