"""
Frame - What an image slot shows at one moment.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

FAILED_MESSAGE = 'Failed to load image'


class FrameKind(Enum):
    SKELETON = 'skeleton'
    THUMBNAIL = 'thumbnail'
    FULL = 'full'
    FAILED = 'failed'


@dataclass(frozen=True)
class Frame:
    """
    Attributes:
        kind: Which element is visible
        src: URL of the visible image, if any
        blurred: Draw the image blurred (low-res placeholder)
        skeleton_visible: Shimmer skeleton still drawn underneath
        fade: Image fades in when it appears
        message: Text of the failure placeholder
    """
    kind: FrameKind
    src: Optional[str] = None
    blurred: bool = False
    skeleton_visible: bool = False
    fade: bool = False
    message: Optional[str] = None

    @classmethod
    def skeleton(cls) -> 'Frame':
        return cls(FrameKind.SKELETON, skeleton_visible=True)

    @classmethod
    def failed(cls) -> 'Frame':
        return cls(FrameKind.FAILED, message=FAILED_MESSAGE)

    @property
    def has_content(self) -> bool:
        """Every frame draws something; blank frames are never produced."""
        return self.kind in (FrameKind.SKELETON, FrameKind.FAILED) or self.src is not None
