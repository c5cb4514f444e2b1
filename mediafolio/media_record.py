"""
MediaRecord - Metadata for one item in the portfolio.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class MediaType(str, Enum):
    PHOTO = 'Photo'
    PANORAMA_180 = '180° Panorama'
    PANORAMA_360 = '360° Panorama'
    VIDEO = 'Video'

    @classmethod
    def parse(cls, value: str) -> 'MediaType':
        """Accept either the display value or the member name."""
        for member in cls:
            if value in (member.value, member.name):
                return member
        raise ValueError(f"Unknown media type: {value!r}")


@dataclass
class MediaRecord:
    """
    Record for a single portfolio item.

    Attributes:
        title: Display title
        location: Where the media was captured
        media_type: Kind of media
        url: Full-resolution URL
        thumbnail_url: Small placeholder tier URL, if one was generated
        source: Origin of the record ('manual', 'upload', ...)
        variant_urls: Every generated variant URL, removed with the record
        id: Record identifier
        created_at: ISO timestamp of creation
    """
    title: str
    location: str
    media_type: MediaType
    url: str
    thumbnail_url: Optional[str] = None
    source: str = 'manual'
    variant_urls: List[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_image(self) -> bool:
        return self.media_type != MediaType.VIDEO

    def to_dict(self) -> dict:
        """Convert to the JSON shape served to the gallery."""
        return {
            'id': self.id,
            'title': self.title,
            'location': self.location,
            'mediaType': self.media_type.value,
            'url': self.url,
            'thumbnailUrl': self.thumbnail_url,
            'source': self.source,
            'variantUrls': list(self.variant_urls),
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MediaRecord':
        """Create from a dictionary produced by to_dict or posted by a client."""
        kwargs = {}
        if data.get('id'):
            kwargs['id'] = data['id']
        if data.get('createdAt'):
            kwargs['created_at'] = data['createdAt']
        return cls(
            title=data['title'],
            location=data['location'],
            media_type=MediaType.parse(data['mediaType']),
            url=data['url'],
            thumbnail_url=data.get('thumbnailUrl') or None,
            source=data.get('source') or 'manual',
            variant_urls=list(data.get('variantUrls') or []),
            **kwargs
        )

    @classmethod
    def from_client(cls, data: dict) -> 'MediaRecord':
        """
        Create a new record from client input.

        id, createdAt and variantUrls are assigned here and never taken
        from the client.
        """
        return cls(
            title=data['title'],
            location=data['location'],
            media_type=MediaType.parse(data['mediaType']),
            url=data['url'],
            thumbnail_url=data.get('thumbnailUrl') or None,
            source=data.get('source') or 'manual',
        )
