"""
Pytest fixtures for mediafolio tests.
"""

import io
import logging

import pytest
from PIL import Image


class ManualTimer:
    def __init__(self, scheduler, due, callback):
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = ManualTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = sorted((t for t in self.pending if t.due <= self.now), key=lambda t: t.due)
        for timer in due:
            self.timers.remove(timer)
            timer.callback()


class ManualFetcher:
    """ImageFetcher that holds requests until a test resolves or fails them."""

    def __init__(self):
        self.requests = []

    def fetch(self, url, on_load, on_error):
        self.requests.append((url, on_load, on_error))

    @property
    def urls(self):
        return [url for url, _, _ in self.requests]

    def _take(self, url):
        for i, request in enumerate(self.requests):
            if request[0] == url:
                return self.requests.pop(i)
        raise AssertionError(f"No pending request for {url}")

    def resolve(self, url, width=800, height=600):
        from mediafolio.display.fetcher import ImageInfo

        _, on_load, _ = self._take(url)
        on_load(ImageInfo(url=url, width=width, height=height, byte_size=1024))

    def fail(self, url, error=None):
        from mediafolio.errors import FetchError

        _, _, on_error = self._take(url)
        on_error(error or FetchError(f"Failed to load {url}", url=url, status=404))


def _image_bytes(mode, size, color, fmt):
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes."""
    return _image_bytes('RGB', (100, 100), 'red', 'JPEG')


@pytest.fixture
def large_image_bytes():
    """Fixture providing a 4000x3000 JPEG."""
    return _image_bytes('RGB', (4000, 3000), (30, 120, 200), 'JPEG')


@pytest.fixture
def sample_png_bytes():
    """Fixture providing sample PNG image bytes with transparency."""
    return _image_bytes('RGBA', (120, 80), (255, 0, 0, 128), 'PNG')


@pytest.fixture
def sample_image_file(tmp_path, sample_image_bytes):
    path = tmp_path / 'source.jpg'
    path.write_bytes(sample_image_bytes)
    return str(path)


@pytest.fixture
def app_config(tmp_path):
    """Fixture providing an AppConfig rooted in a temp directory."""
    from mediafolio.config import AppConfig

    return AppConfig(
        base_url='http://localhost:5000',
        thumbnail_dir=str(tmp_path / 'thumbnails'),
        upload_dir=str(tmp_path / 'uploads'),
        library_path=str(tmp_path / 'media.json'),
    )


@pytest.fixture
def s3_config():
    """Fixture providing S3 configuration."""
    from mediafolio.config import S3Config

    return S3Config(
        endpoint='https://test-endpoint.example.com:9000',
        bucket='test-bucket',
        prefix='originals',
        access_key='test-access-key',
        secret_key='test-secret-key',
        region='us-east-1',
    )


@pytest.fixture
def mock_http(mocker):
    """Fixture providing a mocked urllib3 PoolManager."""
    return mocker.MagicMock()


@pytest.fixture
def temp_dir(tmp_path):
    path = tmp_path / 'tmp'
    path.mkdir()
    return path


@pytest.fixture
def generator(app_config, mock_http, temp_dir, logger):
    """Fixture providing a ThumbnailGenerator writing into the temp thumbnail dir."""
    from mediafolio.thumbnail_generator import ThumbnailGenerator

    return ThumbnailGenerator(app_config, http=mock_http, temp_dir=str(temp_dir), logger=logger)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def fetcher():
    return ManualFetcher()


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')
