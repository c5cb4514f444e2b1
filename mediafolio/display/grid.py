"""
PaginatedGrid - Bounds how many image cells are mounted at once.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence

from ..cancellation import CancellationToken
from ..media_record import MediaRecord
from .fetcher import ImageFetcher
from .lazy_image import LazyImage
from .scheduler import Scheduler, TimerHandle

PAGE_SIZE = 12
LOAD_MORE_DELAY = 0.1


class PaginatedGrid:
    """
    Shows the first page of items and grows one page per load_more().

    Each displayed item gets its own LazyImage cell. Replacing the item list
    with a different list object starts over at the first page and unmounts
    every existing cell.
    """

    def __init__(
        self,
        items: Sequence[MediaRecord],
        fetcher: ImageFetcher,
        scheduler: Scheduler,
        page_size: int = PAGE_SIZE,
        load_delay: float = LOAD_MORE_DELAY,
        load_full_immediately: bool = False,
        on_change: Optional[Callable[['PaginatedGrid'], None]] = None,
        logger: Optional[logging.Logger] = None
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.fetcher = fetcher
        self.scheduler = scheduler
        self.page_size = page_size
        self.load_delay = load_delay
        self.load_full_immediately = load_full_immediately
        self.on_change = on_change
        self.logger = logger or logging.getLogger(__name__)

        self._items = items
        self._visible = page_size
        self._cells: Dict[int, LazyImage] = {}
        self._loading = False
        self._timer: Optional[TimerHandle] = None
        self._token = CancellationToken()
        self._lock = threading.RLock()

    @property
    def items(self) -> Sequence[MediaRecord]:
        return self._items

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def visible_count(self) -> int:
        return min(self._visible, len(self._items))

    @property
    def displayed_items(self) -> List[MediaRecord]:
        return list(self._items[:self._visible])

    @property
    def has_more(self) -> bool:
        """Whether the load-more action is shown."""
        return self._visible < len(self._items)

    @property
    def remaining(self) -> int:
        return max(len(self._items) - self._visible, 0)

    @property
    def is_empty(self) -> bool:
        return len(self._items) == 0

    def set_items(self, items: Sequence[MediaRecord]) -> None:
        """Replace the item list; a different list resets pagination."""
        with self._lock:
            if items is self._items:
                return
            self._reset()
            self._items = items
        self._changed()

    def cells(self) -> List[LazyImage]:
        """One cell per displayed item, created on first request."""
        with self._lock:
            cells = []
            for index, item in enumerate(self.displayed_items):
                cell = self._cells.get(index)
                if cell is None:
                    cell = self._make_cell(item)
                    self._cells[index] = cell
                cells.append(cell)
            return cells

    def load_more(self) -> bool:
        """
        Show the next page after a short delay.

        Returns:
            False if a load is already running or nothing remains
        """
        with self._lock:
            if self._loading or not self.has_more:
                return False
            self._loading = True
            token = self._token
            self._timer = self.scheduler.call_later(self.load_delay, token.guard(self._finish_load))
        self._changed()
        return True

    def close(self) -> None:
        """Unmount every cell and drop pending work."""
        with self._lock:
            self._reset()

    def _finish_load(self) -> None:
        with self._lock:
            self._timer = None
            self._visible += self.page_size
            self._loading = False
            self.logger.debug(f"Grid showing {self.visible_count} of {len(self._items)} items")
        self._changed()

    def _make_cell(self, item: MediaRecord) -> LazyImage:
        return LazyImage(
            src=item.url,
            thumbnail_url=item.thumbnail_url,
            fetcher=self.fetcher,
            scheduler=self.scheduler,
            load_full_immediately=self.load_full_immediately,
            logger=self.logger,
        )

    def _reset(self) -> None:
        self._token.cancel()
        self._token = CancellationToken()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for cell in self._cells.values():
            cell.unmount()
        self._cells.clear()
        self._visible = self.page_size
        self._loading = False

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)
