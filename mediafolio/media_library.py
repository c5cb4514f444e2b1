"""
MediaLibrary - JSON-file backed collection of media records.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional

from .media_record import MediaRecord, MediaType


class MediaLibrary:
    """
    In-memory record store, optionally persisted to a JSON file.

    Listings are newest first.
    """

    def __init__(self, path: Optional[str] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the library.

        Args:
            path: JSON file to load from and save to (None keeps records in memory)
            logger: Optional logger instance
        """
        self.path = path
        self.logger = logger or logging.getLogger(__name__)
        self._records: Dict[str, MediaRecord] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def add(self, record: MediaRecord) -> MediaRecord:
        """
        Add a record and persist it.

        The record is only kept if saving succeeds.

        Raises:
            OSError: If the library file cannot be written
        """
        with self._lock:
            previous = self._records.get(record.id)
            self._records[record.id] = record
            try:
                self._persist()
            except Exception:
                if previous is None:
                    del self._records[record.id]
                else:
                    self._records[record.id] = previous
                raise
        return record

    def get(self, record_id: str) -> Optional[MediaRecord]:
        with self._lock:
            return self._records.get(record_id)

    def remove(self, record_id: str) -> Optional[MediaRecord]:
        """Remove and return a record, or None if it does not exist."""
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                return None
            try:
                self._persist()
            except Exception:
                self._records[record_id] = record
                raise
        return record

    def references(self, url: str) -> bool:
        """True if any record uses url as its original, thumbnail or a variant."""
        with self._lock:
            return any(
                url == r.url or url == r.thumbnail_url or url in r.variant_urls
                for r in self._records.values()
            )

    def all(self) -> List[MediaRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def by_type(self, media_type: MediaType) -> List[MediaRecord]:
        return [r for r in self.all() if r.media_type == media_type]

    def by_location(self, location: str) -> List[MediaRecord]:
        """Case-insensitive substring match on location."""
        needle = location.lower()
        return [r for r in self.all() if needle in r.location.lower()]

    def to_dict(self) -> dict:
        return {'items': [r.to_dict() for r in self.all()]}

    def save(self, filepath: Optional[str] = None) -> None:
        """Save records to a JSON file."""
        path = Path(filepath or self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + '.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    @classmethod
    def load(cls, filepath: str, logger: Optional[logging.Logger] = None) -> 'MediaLibrary':
        """Load a library from a JSON file; a missing file gives an empty library."""
        library = cls(filepath, logger)
        if not os.path.exists(filepath):
            library.logger.info(f"No media library at {filepath}, starting empty")
            return library
        with open(filepath, 'r') as f:
            data = json.load(f)
        for item in data.get('items', []):
            record = MediaRecord.from_dict(item)
            library._records[record.id] = record
        library.logger.info(f"Loaded {len(library)} media records from {filepath}")
        return library

    def _persist(self) -> None:
        if self.path:
            with self._lock:
                self.save()
