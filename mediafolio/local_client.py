"""
LocalClient - Filesystem storage with the same interface as S3Client.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from mimetypes import guess_type
from typing import List, Optional

from .errors import StorageIOError


@dataclass
class LocalConfig:
    """
    Local storage configuration.

    Attributes:
        root_path: Directory holding the stored files
        prefix: Optional sub-directory inside root_path
    """
    root_path: str
    prefix: str = ''

    @property
    def directory(self) -> str:
        if self.prefix:
            return os.path.join(self.root_path, self.prefix)
        return self.root_path

    def validate(self) -> List[str]:
        errors = []
        if not self.root_path:
            errors.append("Local root path is empty")
        elif os.path.exists(self.root_path) and not os.path.isdir(self.root_path):
            errors.append(f"Local root is not a directory: {self.root_path}")
        return errors


class LocalClient:
    """
    Stores objects as flat files in one directory.

    Keys are plain filenames; anything that would escape the directory is
    rejected.
    """

    def __init__(self, config: LocalConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize the client and create its directory if needed.

        Args:
            config: Local storage configuration
            logger: Optional logger instance

        Raises:
            StorageIOError: If the directory cannot be created
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.ensure_directory()

    @property
    def directory(self) -> str:
        return self.config.directory

    def ensure_directory(self) -> None:
        """Create the storage directory; an existing one is fine."""
        try:
            os.makedirs(self.directory, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create directory {self.directory}: {e}")
            raise StorageIOError(f"Cannot create storage directory {self.directory}: {e}") from e

    def path_for(self, key: str) -> str:
        """Return the filesystem path for a key."""
        name = os.path.basename(key)
        if not name or name in ('.', '..') or name != key:
            raise ValueError(f"Invalid object key: {key!r}")
        return os.path.join(self.directory, name)

    def object_exists(self, key: str) -> bool:
        return os.path.isfile(self.path_for(key))

    def get_object_metadata(self, key: str) -> Optional[dict]:
        """Get size, modification time and content type, or None if missing."""
        path = self.path_for(key)
        try:
            stat = os.stat(path)
        except FileNotFoundError:
            return None
        content_type, _ = guess_type(path)
        return {
            'size': stat.st_size,
            'last_modified': datetime.fromtimestamp(stat.st_mtime).isoformat(),
            'content_type': content_type or 'application/octet-stream',
        }

    def download_object(self, key: str) -> bytes:
        with open(self.path_for(key), 'rb') as f:
            return f.read()

    def upload_object(
        self,
        key: str,
        data: bytes,
        content_type: str = 'application/octet-stream'
    ) -> str:
        """
        Write data under key.

        Returns:
            Filesystem path of the written file

        Raises:
            StorageIOError: If the write fails
        """
        path = self.path_for(key)
        try:
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            self.logger.error(f"Failed to write {path}: {e}")
            raise StorageIOError(f"Failed to write {path}: {e}") from e
        self.logger.debug(f"Wrote {path} ({len(data)} bytes, {content_type})")
        return path

    def delete_object(self, key: str) -> bool:
        """
        Delete the file for key.

        Returns:
            True if a file was removed, False if it was already gone

        Raises:
            StorageIOError: If the file exists but cannot be removed
        """
        path = self.path_for(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            self.logger.debug(f"Already absent: {path}")
            return False
        except OSError as e:
            raise StorageIOError(f"Failed to delete {path}: {e}") from e
        self.logger.debug(f"Deleted {path}")
        return True
