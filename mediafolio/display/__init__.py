"""
Display model for progressive image loading.

Platform-neutral state machines for grid cells, the paginated grid and the
zoom viewer. Timers, image loads and visibility come from injected
Scheduler, ImageFetcher and ViewportObserver objects.
"""

from .scheduler import Scheduler, ThreadingScheduler, TimerHandle
from .fetcher import ImageFetcher, HttpImageFetcher, ImageInfo
from .frame import Frame, FrameKind
from .viewport import Rect, ViewportObserver
from .lazy_image import LazyImage, LoadStage
from .grid import PaginatedGrid
from .zoom_viewer import ZoomViewer, fit_zoom

__all__ = [
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "ImageFetcher",
    "HttpImageFetcher",
    "ImageInfo",
    "Frame",
    "FrameKind",
    "Rect",
    "ViewportObserver",
    "LazyImage",
    "LoadStage",
    "PaginatedGrid",
    "ZoomViewer",
    "fit_zoom",
]
