"""Tests for ZoomViewer."""

import pytest

from mediafolio.display.frame import FrameKind
from mediafolio.display.zoom_viewer import ZoomViewer, fit_zoom

FULL = 'http://localhost:5000/uploads/full.jpg'
THUMB = 'http://localhost:5000/thumbnails/small.jpeg'


@pytest.fixture
def viewer(fetcher):
    return ZoomViewer(fetcher, (1000, 750))


@pytest.fixture
def loaded(viewer, fetcher):
    """Viewer showing a 4000x3000 image fit to 25%."""
    viewer.open(FULL, THUMB, 'Glacier')
    fetcher.resolve(FULL, 4000, 3000)
    return viewer


class TestFitZoom:
    """Tests for the fit baseline."""

    def test_downscale(self):
        assert fit_zoom((1000, 750), (4000, 3000)) == 0.25

    def test_never_upscale(self):
        assert fit_zoom((1000, 750), (200, 100)) == 1.0

    def test_limited_by_height(self):
        assert fit_zoom((1000, 500), (1000, 1000)) == 0.5

    def test_zero_size(self):
        assert fit_zoom((1000, 750), (0, 0)) == 1.0


class TestOpen:
    """Tests for staged loading in the viewer."""

    def test_open_resets_state(self, viewer, fetcher):
        viewer.open(FULL, THUMB, 'Glacier')

        assert viewer.is_open
        assert viewer.zoom == 1.0
        assert viewer.base_zoom == 1.0
        assert viewer.position == (0.0, 0.0)
        assert viewer.loading
        assert fetcher.urls == [FULL]

    def test_thumbnail_shown_while_loading(self, viewer):
        viewer.open(FULL, THUMB)

        assert viewer.frame.kind is FrameKind.THUMBNAIL
        assert viewer.frame.src == THUMB

    def test_without_thumbnail_shows_full_at_once(self, viewer):
        viewer.open(FULL)

        assert viewer.show_full
        assert viewer.frame.kind is FrameKind.FULL
        assert not viewer.loading

    def test_load_sets_fit_baseline(self, loaded):
        assert loaded.base_zoom == 0.25
        assert loaded.zoom == 0.25
        assert loaded.zoom_percent == 100
        assert loaded.frame.kind is FrameKind.FULL
        assert not loaded.loading

    def test_load_error(self, viewer, fetcher):
        viewer.open(FULL, THUMB)

        fetcher.fail(FULL)

        assert viewer.frame.kind is FrameKind.FAILED
        assert not viewer.loading

    def test_reopen_ignores_previous_load(self, viewer, fetcher):
        viewer.open(FULL, THUMB)
        viewer.open('http://localhost:5000/uploads/other.jpg')

        fetcher.resolve(FULL, 4000, 3000)

        assert viewer.base_zoom == 1.0

    def test_render_callback(self, fetcher):
        frames = []
        viewer = ZoomViewer(fetcher, (1000, 750), on_render=frames.append)

        viewer.open(FULL, THUMB)
        fetcher.resolve(FULL, 4000, 3000)

        assert [f.kind for f in frames] == [FrameKind.THUMBNAIL, FrameKind.FULL]


class TestZoom:
    """Zoom is clamped relative to the fit baseline."""

    def test_zoom_in_steps(self, loaded):
        loaded.zoom_in()

        assert loaded.zoom == pytest.approx(0.375)
        assert loaded.zoom_percent == 150

    def test_zoom_in_clamped(self, loaded):
        for _ in range(20):
            loaded.zoom_in()

        assert loaded.zoom == pytest.approx(1.25)
        assert loaded.zoom_percent == 500

    def test_zoom_out_clamped(self, loaded):
        for _ in range(20):
            loaded.zoom_out()

        assert loaded.zoom == pytest.approx(0.05)
        assert loaded.zoom_percent == 20

    def test_zoom_ignored_when_closed(self, viewer):
        viewer.zoom_in()

        assert viewer.zoom == 1.0


class TestPan:
    """Panning only applies above the baseline."""

    def test_no_pan_at_baseline(self, loaded):
        loaded.pointer_down(100, 100)
        loaded.pointer_move(200, 150)

        assert not loaded.dragging
        assert loaded.position == (0.0, 0.0)

    def test_pan_when_zoomed(self, loaded):
        loaded.zoom_in()

        loaded.pointer_down(100, 100)
        loaded.pointer_move(160, 80)
        loaded.pointer_up()
        loaded.pointer_move(500, 500)

        assert loaded.position == (60.0, -20.0)
        assert not loaded.dragging

    def test_transform(self, loaded):
        loaded.zoom_in()
        loaded.pointer_down(0, 0)
        loaded.pointer_move(75, 0)

        scale, x, y = loaded.transform

        assert scale == pytest.approx(0.375)
        assert x == pytest.approx(200.0)
        assert y == 0.0


class TestKeys:
    """Keyboard shortcuts."""

    def test_zoom_keys(self, loaded):
        assert loaded.handle_key('+')
        assert loaded.handle_key('=')
        assert loaded.zoom_percent == 225

        assert loaded.handle_key('-')
        assert loaded.zoom_percent == 150

    def test_escape_closes(self, fetcher):
        closed = []
        viewer = ZoomViewer(fetcher, (1000, 750), on_close=lambda: closed.append(True))
        viewer.open(FULL)

        assert viewer.handle_key('Escape')

        assert not viewer.is_open
        assert closed == [True]

    def test_unknown_key(self, loaded):
        assert loaded.handle_key('x') is False

    def test_keys_ignored_when_closed(self, viewer):
        assert viewer.handle_key('+') is False
        assert viewer.zoom == 1.0

    def test_load_after_close_ignored(self, viewer, fetcher):
        viewer.open(FULL, THUMB)
        viewer.close()

        fetcher.resolve(FULL, 4000, 3000)

        assert viewer.base_zoom == 1.0
