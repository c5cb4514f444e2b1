"""
LazyImage - Staged skeleton -> thumbnail -> full image loading for one cell.

Nothing is fetched until the cell's container enters the viewport. With a
thumbnail configured the thumbnail loads first and the full image is only
requested on hover or, in immediate mode, a fixed delay after the thumbnail
is ready. Every callback is guarded by the instance's cancellation token,
so nothing changes after unmount().
"""

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from ..cancellation import CancellationToken
from .fetcher import ImageFetcher, ImageInfo
from .frame import Frame, FrameKind
from .scheduler import Scheduler, TimerHandle
from .viewport import Rect, ViewportObserver

FULL_IMAGE_DELAY = 1.5


class LoadStage(Enum):
    NOT_REQUESTED = 'not-requested'
    OBSERVING = 'observing'
    THUMBNAIL_LOADING = 'thumbnail-loading'
    THUMBNAIL_READY = 'thumbnail-ready'
    FULL_LOADING = 'full-loading'
    FULL_READY = 'full-ready'
    FAILED = 'failed'


class LazyImage:
    """
    Display state machine for one rendered image.

    Args:
        src: Full-resolution URL
        thumbnail_url: Optional placeholder tier URL
        fetcher: Loads images asynchronously
        scheduler: Runs the immediate-mode delay
        load_full_immediately: Promote to the full image after full_delay
        full_delay: Seconds between thumbnail ready and full request
        on_render: Called with every new Frame
        on_load: Called with ImageInfo once the full image is shown
        on_error: Called with the exception when loading fails
    """

    def __init__(
        self,
        src: str,
        thumbnail_url: Optional[str],
        fetcher: ImageFetcher,
        scheduler: Scheduler,
        load_full_immediately: bool = False,
        full_delay: float = FULL_IMAGE_DELAY,
        on_render: Optional[Callable[[Frame], None]] = None,
        on_load: Optional[Callable[[ImageInfo], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.src = src
        self.thumbnail_url = thumbnail_url or None
        self.fetcher = fetcher
        self.scheduler = scheduler
        self.load_full_immediately = load_full_immediately
        self.full_delay = full_delay
        self.on_render = on_render
        self.on_load = on_load
        self.on_error = on_error
        self.logger = logger or logging.getLogger(__name__)

        self.stage = LoadStage.NOT_REQUESTED
        self.in_view = False
        self.image: Optional[ImageInfo] = None
        self.frames: List[Frame] = [Frame.skeleton()]

        self._token = CancellationToken()
        self._lock = threading.RLock()
        self._timer: Optional[TimerHandle] = None
        self._hover_pending = False
        self._observer: Optional[ViewportObserver] = None
        self._subscription: Optional[int] = None

    @property
    def frame(self) -> Frame:
        return self.frames[-1]

    @property
    def mounted(self) -> bool:
        return not self._token.cancelled

    def mount(self, observer: ViewportObserver, container: Rect) -> None:
        """Start watching the container for its first viewport entry."""
        self._observer = observer
        self._subscription = observer.observe(container, self._token.guard(self.enter_viewport))

    def unmount(self) -> None:
        """Tear down; late load, error and timer callbacks are ignored."""
        self._token.cancel()
        with self._lock:
            self._cancel_timer()
            if self._observer is not None and self._subscription is not None:
                self._observer.unobserve(self._subscription)
            self._subscription = None

    def enter_viewport(self) -> None:
        """Viewport entry; only the first call has any effect."""
        with self._lock:
            if self.stage is not LoadStage.NOT_REQUESTED or not self.mounted:
                return
            self.in_view = True
            self._subscription = None
            self.stage = LoadStage.OBSERVING
            if self.thumbnail_url:
                self._set_stage(LoadStage.THUMBNAIL_LOADING)
                self.fetcher.fetch(
                    self.thumbnail_url,
                    self._token.guard(self._on_thumbnail_load),
                    self._token.guard(self._on_error)
                )
            else:
                self._start_full()

    def hover(self) -> None:
        """Pointer entered the image: request the full image now."""
        with self._lock:
            if not self.thumbnail_url or not self.mounted:
                return
            if self.stage is LoadStage.THUMBNAIL_READY:
                self._cancel_timer()
                self._start_full()
            elif self.stage is LoadStage.THUMBNAIL_LOADING:
                self._hover_pending = True

    def _on_thumbnail_load(self, info: ImageInfo) -> None:
        with self._lock:
            if self.stage is not LoadStage.THUMBNAIL_LOADING:
                return
            self._set_stage(LoadStage.THUMBNAIL_READY)
            if self._hover_pending:
                self._start_full()
            elif self.load_full_immediately:
                self._timer = self.scheduler.call_later(self.full_delay, self._token.guard(self._promote))

    def _promote(self) -> None:
        with self._lock:
            self._timer = None
            if self.stage is LoadStage.THUMBNAIL_READY:
                self._start_full()

    def _start_full(self) -> None:
        self._set_stage(LoadStage.FULL_LOADING)
        self.fetcher.fetch(
            self.src,
            self._token.guard(self._on_full_load),
            self._token.guard(self._on_error)
        )

    def _on_full_load(self, info: ImageInfo) -> None:
        with self._lock:
            if self.stage is not LoadStage.FULL_LOADING:
                return
            self.image = info
            self._set_stage(LoadStage.FULL_READY)
        if self.on_load:
            self.on_load(info)

    def _on_error(self, error: Exception) -> None:
        with self._lock:
            if self.stage not in (LoadStage.THUMBNAIL_LOADING, LoadStage.FULL_LOADING):
                return
            self.logger.info(f"Image failed at {self.stage.value}: {error}")
            self._cancel_timer()
            self._set_stage(LoadStage.FAILED)
        if self.on_error:
            self.on_error(error)

    def _set_stage(self, stage: LoadStage) -> None:
        self.stage = stage
        frame = self._frame_for(stage)
        if frame != self.frames[-1]:
            self.frames.append(frame)
            if self.on_render:
                self.on_render(frame)

    def _frame_for(self, stage: LoadStage) -> Frame:
        if stage is LoadStage.FAILED:
            return Frame.failed()
        if stage is LoadStage.FULL_READY:
            return Frame(FrameKind.FULL, src=self.src, fade=True)
        if stage is LoadStage.THUMBNAIL_LOADING:
            return Frame(FrameKind.THUMBNAIL, src=self.thumbnail_url, blurred=True, skeleton_visible=True)
        if stage in (LoadStage.THUMBNAIL_READY, LoadStage.FULL_LOADING) and self.thumbnail_url:
            return Frame(FrameKind.THUMBNAIL, src=self.thumbnail_url)
        return Frame.skeleton()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
