"""
Variant types - thumbnail options, generated results and tier sets.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

FORMATS = {
    'jpeg': ('JPEG', 'jpeg', 'image/jpeg'),
    'jpg': ('JPEG', 'jpeg', 'image/jpeg'),
    'webp': ('WEBP', 'webp', 'image/webp'),
    'png': ('PNG', 'png', 'image/png'),
}

DEFAULT_WIDTH = 200
DEFAULT_HEIGHT = 200
DEFAULT_QUALITY = 60
DEFAULT_FORMAT = 'jpeg'


@dataclass(frozen=True)
class ThumbnailOptions:
    """
    Target geometry and encoding for one variant.

    Attributes:
        width: Output width in pixels
        height: Output height in pixels
        quality: Encoder quality, 1-100 (ignored by PNG)
        format: Output format name ('jpeg', 'webp' or 'png')
    """
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    quality: int = DEFAULT_QUALITY
    format: str = DEFAULT_FORMAT

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Thumbnail size must be positive: {self.width}x{self.height}")
        fmt = (self.format or DEFAULT_FORMAT).lower()
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported thumbnail format: {self.format}")
        object.__setattr__(self, 'format', FORMATS[fmt][1])
        object.__setattr__(self, 'quality', max(1, min(100, int(self.quality))))

    @property
    def pil_format(self) -> str:
        return FORMATS[self.format][0]

    @property
    def extension(self) -> str:
        return FORMATS[self.format][1]

    @property
    def content_type(self) -> str:
        return FORMATS[self.format][2]

    @classmethod
    def parse_size(cls, text: str, **kwargs) -> 'ThumbnailOptions':
        """Build options from a 'WIDTHxHEIGHT' string."""
        try:
            width, height = (int(part) for part in text.lower().split('x', 1))
        except ValueError:
            raise ValueError(f"Size must look like 400x300, got {text!r}")
        return cls(width=width, height=height, **kwargs)


# Small is the progressive-loading placeholder tier.
DEFAULT_TIERS: Dict[str, ThumbnailOptions] = {
    'small': ThumbnailOptions(150, 150, 60, 'jpeg'),
    'medium': ThumbnailOptions(400, 300, 80, 'jpeg'),
    'large': ThumbnailOptions(800, 600, 85, 'jpeg'),
}

PRIMARY_TIER = 'small'


@dataclass(frozen=True)
class ThumbnailResult:
    """
    One generated variant.

    Attributes:
        path: Storage path of the written file
        url: Public URL of the file
        byte_size: Size of the encoded file in bytes
    """
    path: str
    url: str
    byte_size: int

    def to_dict(self) -> dict:
        return {'path': self.path, 'url': self.url, 'size': self.byte_size}

    @classmethod
    def from_dict(cls, data: dict) -> 'ThumbnailResult':
        return cls(path=data['path'], url=data['url'], byte_size=data['size'])


@dataclass
class VariantSet:
    """Results of a multi-tier generation, keyed by tier name."""
    results: Dict[str, ThumbnailResult] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def small(self) -> Optional[ThumbnailResult]:
        return self.results.get('small')

    @property
    def medium(self) -> Optional[ThumbnailResult]:
        return self.results.get('medium')

    @property
    def large(self) -> Optional[ThumbnailResult]:
        return self.results.get('large')

    def get(self, tier: str) -> Optional[ThumbnailResult]:
        return self.results.get(tier)

    @property
    def urls(self) -> List[str]:
        """Every URL produced, for later cleanup."""
        return [r.url for r in self.results.values()]

    @property
    def complete(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        data = {tier: result.to_dict() for tier, result in self.results.items()}
        if self.errors:
            data['errors'] = dict(self.errors)
        return data
