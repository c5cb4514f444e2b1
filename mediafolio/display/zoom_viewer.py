"""
ZoomViewer - Full-screen viewer with staged loading, zoom and pan.

Zoom is kept relative to a fit baseline: the scale at which the full image
fits the container without exceeding 100%. The baseline is only known once
the full image has loaded; until then both zoom and baseline are 1.
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from ..cancellation import CancellationToken
from .fetcher import ImageFetcher, ImageInfo
from .frame import Frame, FrameKind

ZOOM_STEP = 1.5
MIN_ZOOM_FACTOR = 0.2
MAX_ZOOM_FACTOR = 5.0

ZOOM_IN_KEYS = ('+', '=')
ZOOM_OUT_KEYS = ('-',)
CLOSE_KEYS = ('Escape',)


def fit_zoom(container: Tuple[float, float], image: Tuple[float, float]) -> float:
    """Scale that fits image inside container, never above 1."""
    container_width, container_height = container
    image_width, image_height = image
    if image_width <= 0 or image_height <= 0:
        return 1.0
    return min(container_width / image_width, container_height / image_height, 1.0)


class ZoomViewer:
    """
    Zoom/pan state for one asset at a time.

    Args:
        fetcher: Loads the full-resolution image
        container: (width, height) of the viewing area
        on_close: Called when the viewer closes
        on_render: Called with the Frame whenever the visible image changes
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        container: Tuple[float, float],
        on_close: Optional[Callable[[], None]] = None,
        on_render: Optional[Callable[[Frame], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.fetcher = fetcher
        self.container = container
        self.on_close = on_close
        self.on_render = on_render
        self.logger = logger or logging.getLogger(__name__)

        self.is_open = False
        self.image_url: Optional[str] = None
        self.thumbnail_url: Optional[str] = None
        self.title = ''
        self.zoom = 1.0
        self.base_zoom = 1.0
        self.position = (0.0, 0.0)
        self.dragging = False
        self.full_loaded = False
        self.show_full = False
        self.failed = False
        self.image: Optional[ImageInfo] = None

        self._drag_start = (0.0, 0.0, 0.0, 0.0)
        self._token = CancellationToken()
        self._lock = threading.RLock()

    def open(self, image_url: str, thumbnail_url: Optional[str] = None, title: str = '') -> None:
        """Show an asset, resetting zoom and pan and starting the full load."""
        with self._lock:
            self._token.cancel()
            self._token = CancellationToken()
            self.is_open = True
            self.image_url = image_url
            self.thumbnail_url = thumbnail_url or None
            self.title = title
            self.zoom = 1.0
            self.base_zoom = 1.0
            self.position = (0.0, 0.0)
            self.dragging = False
            self.full_loaded = False
            self.failed = False
            self.image = None
            self.show_full = self.thumbnail_url is None
            token = self._token
        self._render()
        self.fetcher.fetch(image_url, token.guard(self._on_full_load), token.guard(self._on_full_error))

    def close(self) -> None:
        with self._lock:
            if not self.is_open:
                return
            self._token.cancel()
            self.is_open = False
            self.dragging = False
        if self.on_close:
            self.on_close()

    def resize(self, container: Tuple[float, float]) -> None:
        self.container = container

    @property
    def loading(self) -> bool:
        """Loading indicator shown over the thumbnail."""
        return self.is_open and self.thumbnail_url is not None and not self.full_loaded and not self.failed

    @property
    def zoom_percent(self) -> int:
        """Zoom relative to the fit baseline; 100 means fit to screen."""
        return round(self.zoom / self.base_zoom * 100)

    @property
    def can_pan(self) -> bool:
        return self.zoom > self.base_zoom

    @property
    def transform(self) -> Tuple[float, float, float]:
        """(scale, translate_x, translate_y) applied to the displayed image."""
        x, y = self.position
        return self.zoom, x / self.zoom, y / self.zoom

    @property
    def frame(self) -> Frame:
        if self.failed:
            return Frame.failed()
        if self.show_full:
            return Frame(FrameKind.FULL, src=self.image_url, fade=self.thumbnail_url is not None)
        return Frame(FrameKind.THUMBNAIL, src=self.thumbnail_url, blurred=True)

    def zoom_in(self) -> None:
        with self._lock:
            if self.is_open:
                self.zoom = min(self.zoom * ZOOM_STEP, self.base_zoom * MAX_ZOOM_FACTOR)

    def zoom_out(self) -> None:
        with self._lock:
            if self.is_open:
                self.zoom = max(self.zoom / ZOOM_STEP, self.base_zoom * MIN_ZOOM_FACTOR)

    def pointer_down(self, x: float, y: float) -> None:
        with self._lock:
            if self.is_open and self.can_pan:
                self.dragging = True
                self._drag_start = (x, y, self.position[0], self.position[1])

    def pointer_move(self, x: float, y: float) -> None:
        with self._lock:
            if self.dragging and self.can_pan:
                start_x, start_y, pos_x, pos_y = self._drag_start
                self.position = (pos_x + (x - start_x), pos_y + (y - start_y))

    def pointer_up(self) -> None:
        self.dragging = False

    def handle_key(self, key: str) -> bool:
        """
        Apply a keyboard shortcut.

        Returns:
            True if the key was handled
        """
        if not self.is_open:
            return False
        if key in CLOSE_KEYS:
            self.close()
        elif key in ZOOM_IN_KEYS:
            self.zoom_in()
        elif key in ZOOM_OUT_KEYS:
            self.zoom_out()
        else:
            return False
        return True

    def _on_full_load(self, info: ImageInfo) -> None:
        with self._lock:
            self.image = info
            fit = fit_zoom(self.container, (info.width, info.height))
            self.base_zoom = fit
            self.zoom = fit
            self.position = (0.0, 0.0)
            self.full_loaded = True
            self.show_full = True
        self.logger.debug(f"Full image {info.width}x{info.height} loaded, fit zoom {fit:.3f}")
        self._render()

    def _on_full_error(self, error: Exception) -> None:
        with self._lock:
            self.failed = True
        self.logger.info(f"Full image failed to load: {error}")
        self._render()

    def _render(self) -> None:
        if self.on_render:
            self.on_render(self.frame)
