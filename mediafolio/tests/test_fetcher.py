"""Tests for HttpImageFetcher."""

import threading
from unittest.mock import MagicMock

import pytest
import urllib3

from mediafolio.display.fetcher import HttpImageFetcher, ImageInfo
from mediafolio.display.scheduler import ThreadingScheduler
from mediafolio.errors import FetchError, ProcessingError


@pytest.fixture
def fetcher_with_mock(mock_http):
    fetcher = HttpImageFetcher(connect_timeout=1, read_timeout=2, max_workers=2, http=mock_http)
    yield fetcher
    fetcher.shutdown()


def respond(mock_http, status=200, data=b''):
    response = MagicMock()
    response.status = status
    response.data = data
    mock_http.request.return_value = response


class TestLoad:
    """Tests for the synchronous load."""

    def test_reads_natural_size(self, fetcher_with_mock, mock_http, large_image_bytes):
        respond(mock_http, data=large_image_bytes)

        info = fetcher_with_mock.load('http://localhost:5000/uploads/a.jpg')

        assert (info.width, info.height) == (4000, 3000)
        assert info.byte_size == len(large_image_bytes)

    def test_timeout_passed(self, fetcher_with_mock, mock_http, sample_image_bytes):
        respond(mock_http, data=sample_image_bytes)

        fetcher_with_mock.load('http://localhost:5000/uploads/a.jpg')

        timeout = mock_http.request.call_args.kwargs['timeout']
        assert timeout.connect_timeout == 1
        assert timeout.read_timeout == 2

    def test_http_error_status(self, fetcher_with_mock, mock_http):
        respond(mock_http, status=404)

        with pytest.raises(FetchError) as exc_info:
            fetcher_with_mock.load('http://localhost:5000/uploads/a.jpg')

        assert exc_info.value.status == 404

    def test_timeout_is_load_error(self, fetcher_with_mock, mock_http):
        mock_http.request.side_effect = urllib3.exceptions.ReadTimeoutError(None, 'http://x', 'timed out')

        with pytest.raises(FetchError):
            fetcher_with_mock.load('http://x/a.jpg')

    def test_not_an_image(self, fetcher_with_mock, mock_http):
        respond(mock_http, data=b'<html></html>')

        with pytest.raises(ProcessingError):
            fetcher_with_mock.load('http://x/a.jpg')


class TestFetch:
    """Tests for the callback interface."""

    def test_on_load(self, fetcher_with_mock, mock_http, sample_image_bytes):
        respond(mock_http, data=sample_image_bytes)
        done = threading.Event()
        results = []

        def on_load(info):
            results.append(info)
            done.set()

        fetcher_with_mock.fetch('http://x/a.jpg', on_load, lambda e: done.set())

        assert done.wait(5)
        assert isinstance(results[0], ImageInfo)

    def test_on_error(self, fetcher_with_mock, mock_http):
        respond(mock_http, status=500)
        done = threading.Event()
        errors = []

        def on_error(error):
            errors.append(error)
            done.set()

        fetcher_with_mock.fetch('http://x/a.jpg', lambda info: done.set(), on_error)

        assert done.wait(5)
        assert isinstance(errors[0], FetchError)

    def test_unexpected_error_goes_to_on_error(self, fetcher_with_mock, mock_http):
        mock_http.request.side_effect = RuntimeError("pool closed")
        errors = []

        fetcher_with_mock._load('http://x/a.jpg', lambda info: None, errors.append)

        assert isinstance(errors[0], RuntimeError)

    def test_callback_error_is_logged(self, fetcher_with_mock, mock_http, sample_image_bytes, caplog):
        respond(mock_http, data=sample_image_bytes)

        def on_load(info):
            raise ValueError("bad cell")

        fetcher_with_mock._load('http://x/a.jpg', on_load, lambda e: None)

        assert any(isinstance(r.exc_info[1], ValueError) for r in caplog.records if r.exc_info)


class TestThreadingScheduler:
    """Tests for the thread-backed scheduler."""

    def test_call_later(self):
        done = threading.Event()

        ThreadingScheduler().call_later(0.01, done.set)

        assert done.wait(5)

    def test_cancel(self):
        fired = threading.Event()

        handle = ThreadingScheduler().call_later(0.2, fired.set)
        handle.cancel()

        assert not fired.wait(0.4)
