"""
ViewportObserver - Edge-triggered, one-shot visibility notifications.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return max(self.width, 0) * max(self.height, 0)

    def expand(self, margin: float) -> 'Rect':
        return Rect(self.left - margin, self.top - margin, self.width + 2 * margin, self.height + 2 * margin)

    def intersection_ratio(self, root: 'Rect') -> float:
        """Fraction of this rect's area that lies inside root."""
        width = min(self.right, root.right) - max(self.left, root.left)
        height = min(self.bottom, root.bottom) - max(self.top, root.top)
        if width < 0 or height < 0:
            return 0.0
        if self.area == 0:
            return 1.0
        return (width * height) / self.area


class ViewportObserver:
    """
    Notifies subscribers once, the first time their target becomes visible.

    A target counts as visible when at least `threshold` of its area lies
    inside the viewport grown by `root_margin` on every side. After the
    callback fires the subscription is dropped.
    """

    def __init__(
        self,
        viewport: Rect,
        root_margin: float = 100.0,
        threshold: float = 0.1,
        logger: Optional[logging.Logger] = None
    ):
        self.viewport = viewport
        self.root_margin = root_margin
        self.threshold = threshold
        self.logger = logger or logging.getLogger(__name__)
        self._ids = itertools.count(1)
        self._subscriptions: Dict[int, Tuple[Rect, Callable[[], None]]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def observe(self, target: Rect, callback: Callable[[], None]) -> int:
        """
        Watch target; fires immediately if it is already visible.

        Returns:
            Subscription id for unobserve()
        """
        with self._lock:
            sub_id = next(self._ids)
            self._subscriptions[sub_id] = (target, callback)
        self._evaluate([sub_id])
        return sub_id

    def unobserve(self, sub_id: int) -> None:
        with self._lock:
            self._subscriptions.pop(sub_id, None)

    def move_target(self, sub_id: int, target: Rect) -> None:
        """Record a layout change for a watched target."""
        with self._lock:
            if sub_id not in self._subscriptions:
                return
            self._subscriptions[sub_id] = (target, self._subscriptions[sub_id][1])
        self._evaluate([sub_id])

    def set_viewport(self, viewport: Rect) -> None:
        self.viewport = viewport
        self._evaluate(list(self._subscriptions))

    def scroll_to(self, top: float) -> None:
        self.set_viewport(replace(self.viewport, top=top))

    def is_visible(self, target: Rect) -> bool:
        ratio = target.intersection_ratio(self.viewport.expand(self.root_margin))
        return ratio > 0 and ratio >= self.threshold

    def _evaluate(self, sub_ids) -> None:
        fired = []
        with self._lock:
            for sub_id in sub_ids:
                entry = self._subscriptions.get(sub_id)
                if entry and self.is_visible(entry[0]):
                    del self._subscriptions[sub_id]
                    fired.append(entry[1])
                    self.logger.debug(f"Target {sub_id} entered viewport")
        for callback in fired:
            callback()
