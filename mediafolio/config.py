"""
Configuration objects for the generator, storage clients and HTTP service.

Values come from the process environment and may be overridden by CLI flags.
"""

import os
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_PORT = 5000
THUMBNAIL_ROUTE = 'thumbnails'


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'y', 't')


@dataclass
class S3Config:
    """
    S3/MinIO connection settings for original image storage.

    Attributes:
        endpoint: S3 endpoint URL
        bucket: Bucket holding the originals
        prefix: Key prefix inside the bucket
        access_key: Access key id
        secret_key: Secret access key
        region: Region name
        verify_ssl: Verify TLS certificates
    """
    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    prefix: str = 'originals'
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = 'us-east-1'
    verify_ssl: bool = True

    @classmethod
    def from_env(cls) -> 'S3Config':
        """Build configuration from S3_* environment variables."""
        return cls(
            endpoint=os.getenv('S3_ENDPOINT'),
            bucket=os.getenv('S3_BUCKET'),
            prefix=os.getenv('S3_PREFIX', 'originals'),
            access_key=os.getenv('S3_ACCESS_KEY'),
            secret_key=os.getenv('S3_SECRET_KEY'),
            region=os.getenv('S3_REGION', 'us-east-1'),
            verify_ssl=_env_bool('S3_VERIFY_SSL', True),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors = []
        if not self.endpoint:
            errors.append("S3_ENDPOINT is not set")
        if not self.bucket:
            errors.append("S3_BUCKET is not set")
        if not self.access_key:
            errors.append("S3_ACCESS_KEY is not set")
        if not self.secret_key:
            errors.append("S3_SECRET_KEY is not set")
        return errors


@dataclass
class AppConfig:
    """
    Settings shared by the generator, upload pipeline and HTTP service.

    Attributes:
        base_url: Public URL prefix the static routes are served under
        thumbnail_dir: Directory thumbnails are written to
        upload_dir: Directory local originals are written to
        library_path: JSON file backing the media library
        max_upload_mb: Largest accepted upload body
        connect_timeout: Seconds allowed to open a fetch connection
        read_timeout: Seconds allowed between bytes of a fetch response
        log_level: Logging level name
        host: Interface the HTTP service binds to
        port: Port the HTTP service listens on
    """
    base_url: str = f"http://localhost:{DEFAULT_PORT}"
    thumbnail_dir: str = 'thumbnails'
    upload_dir: str = 'uploads'
    library_path: str = 'media.json'
    max_upload_mb: int = 300
    connect_timeout: float = 5.0
    read_timeout: float = 30.0
    log_level: str = 'INFO'
    host: str = '0.0.0.0'
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """
        Build configuration from the environment.

        BASE_URL wins over the HOST/PORT pair; without either the service
        assumes http://localhost:5000.
        """
        port = int(os.getenv('PORT', str(DEFAULT_PORT)))
        public_host = os.getenv('PUBLIC_HOST', 'localhost')
        base_url = os.getenv('BASE_URL') or f"http://{public_host}:{port}"
        return cls(
            base_url=base_url.rstrip('/'),
            thumbnail_dir=os.getenv('THUMBNAIL_DIR', 'thumbnails'),
            upload_dir=os.getenv('UPLOAD_DIR', 'uploads'),
            library_path=os.getenv('LIBRARY_PATH', 'media.json'),
            max_upload_mb=int(os.getenv('MAX_UPLOAD_MB', '300')),
            connect_timeout=float(os.getenv('FETCH_CONNECT_TIMEOUT', '5')),
            read_timeout=float(os.getenv('FETCH_READ_TIMEOUT', '30')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            host=os.getenv('HOST', '0.0.0.0'),
            port=port,
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def public_url(self, *parts: str) -> str:
        """Join path parts onto the base URL."""
        path = '/'.join(p.strip('/') for p in parts if p)
        return f"{self.base_url.rstrip('/')}/{path}"

    def resolve_url(self, url: str) -> str:
        """Resolve a root-relative URL against the base URL."""
        if url.startswith('/') and not url.startswith('//'):
            return f"{self.base_url.rstrip('/')}{url}"
        return url

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors = []
        if not self.base_url.startswith(('http://', 'https://')):
            errors.append(f"BASE_URL must be an http(s) URL: {self.base_url}")
        if not self.thumbnail_dir:
            errors.append("THUMBNAIL_DIR is empty")
        if self.max_upload_mb <= 0:
            errors.append("MAX_UPLOAD_MB must be positive")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            errors.append("Fetch timeouts must be positive")
        return errors
