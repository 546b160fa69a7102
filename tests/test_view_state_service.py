import numpy as np
import pytest

from imageviewer.models.color_offset import ColorOffset
from imageviewer.models.errors import DecodeError
from imageviewer.models.view_state import ViewCommand, ViewMode
from imageviewer.services.view_state_service import ViewStateService


def test_starts_without_image(view):
    assert view.mode is ViewMode.NO_IMAGE
    assert not view.has_image
    assert view.active_buffer() is None
    assert view.render() is None
    assert view.snapshot() is None


def test_commands_are_noops_without_image(view):
    view.zoom_in()
    view.zoom_out()
    view.request_grayscale()
    view.request_original()
    view.set_color_offset(ColorOffset(10, 10, 10))
    view.reset_color()
    assert view.mode is ViewMode.NO_IMAGE
    assert view.zoom_factor == 1.0
    assert view.offset.is_zero()


def test_load_selects_original(view, scenario_buffer):
    view.load_image(scenario_buffer)
    assert view.mode is ViewMode.ORIGINAL
    assert view.active_buffer() is scenario_buffer
    assert view.render().dimensions() == (2, 2)


def test_load_rejects_non_buffer(view):
    with pytest.raises(TypeError):
        view.load_image(None)


def test_scenario_color_offset(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.set_color_offset(ColorOffset(red_delta=50, green_delta=0, blue_delta=-100))
    assert view.mode is ViewMode.COLOR_ADJUSTED
    active = view.active_buffer()
    assert active.get(0, 0) == (60, 20, 0, 255)
    assert active.get(1, 1) == (150, 110, 20, 255)
    assert scenario_buffer.get(0, 0) == (10, 20, 30, 255)


def test_scenario_grayscale(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.request_grayscale()
    assert view.mode is ViewMode.GRAYSCALE
    assert view.active_buffer().get(0, 0) == (20, 20, 20, 255)


def test_offsets_are_not_cumulative(view, random_buffer):
    view.load_image(random_buffer)
    view.set_color_offset(ColorOffset(50, 0, 0))
    view.set_color_offset(ColorOffset(50, 0, 0))
    expected = np.clip(random_buffer.pixels[:, :, 0].astype(int) + 50, 0, 255)
    assert np.array_equal(view.active_buffer().pixels[:, :, 0], expected)

    view.set_color_offset(ColorOffset.zero())
    assert view.mode is ViewMode.ORIGINAL
    assert np.array_equal(view.active_buffer().pixels, random_buffer.pixels)
    assert view.state.adjusted is None


def test_offset_ignored_while_grayscale(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.request_grayscale()
    view.set_color_offset(ColorOffset(100, 0, 0))
    assert view.mode is ViewMode.GRAYSCALE
    assert view.offset.is_zero()
    assert view.active_buffer().get(0, 0) == (20, 20, 20, 255)

    view.request_original()
    assert view.mode is ViewMode.ORIGINAL
    assert view.active_buffer().get(0, 0) == (10, 20, 30, 255)


def test_grayscale_computed_once_per_load(view, scenario_buffer, random_buffer):
    view.load_image(scenario_buffer)
    view.request_grayscale()
    first = view.state.grayscale
    view.request_original()
    view.request_grayscale()
    assert view.state.grayscale is first

    view.load_image(random_buffer)
    assert view.state.grayscale is None
    view.request_grayscale()
    assert view.active_buffer().dimensions() == random_buffer.dimensions()


def test_grayscale_from_adjusted_drops_adjustment(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.set_color_offset(ColorOffset(10, 10, 10))
    view.request_grayscale()
    assert view.mode is ViewMode.GRAYSCALE
    assert view.state.adjusted is None
    assert view.active_buffer().get(0, 0) == (20, 20, 20, 255)


def test_reset_color(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.set_color_offset(ColorOffset(-5, 5, 0))
    view.reset_color()
    assert view.mode is ViewMode.ORIGINAL
    assert view.offset.is_zero()
    assert view.active_buffer() is scenario_buffer


def test_zoom_round_trip(view, random_buffer):
    view.load_image(random_buffer)
    for _ in range(10):
        view.zoom_in()
    assert view.zoom_factor == pytest.approx(1.1 ** 10)
    for _ in range(10):
        view.zoom_out()
    assert view.zoom_factor == pytest.approx(1.0)
    assert view.mode is ViewMode.ORIGINAL


def test_zoom_is_clamped(view, scenario_buffer):
    view.load_image(scenario_buffer)
    for _ in range(200):
        view.zoom_out()
    assert view.zoom_factor == pytest.approx(view.min_zoom)
    assert view.render().dimensions() == (1, 1)
    for _ in range(400):
        view.zoom_in()
    assert view.zoom_factor == pytest.approx(view.max_zoom)


def test_render_uses_zoom(view, random_buffer):
    view.load_image(random_buffer)
    view.zoom_in()
    assert view.render().dimensions() == (25, 18)


def test_load_resets_session(view, scenario_buffer, random_buffer):
    view.load_image(scenario_buffer)
    view.zoom_in()
    view.set_color_offset(ColorOffset(1, 2, 3))
    view.load_image(random_buffer)
    assert view.mode is ViewMode.ORIGINAL
    assert view.zoom_factor == 1.0
    assert view.offset.is_zero()
    assert view.state.adjusted is None


def test_generation_increases(view, scenario_buffer):
    view.load_image(scenario_buffer)
    seen = [view.generation]
    view.zoom_in()
    seen.append(view.generation)
    view.request_grayscale()
    seen.append(view.generation)
    assert seen == sorted(set(seen))
    assert view.snapshot().generation == view.generation


def test_open_bytes_failure_keeps_session(view, scenario_buffer):
    view.load_image(scenario_buffer)
    view.request_grayscale()
    with pytest.raises(DecodeError):
        view.open_bytes(b"garbage")
    assert view.mode is ViewMode.GRAYSCALE
    assert view.state.original is scenario_buffer


def test_open_failure_without_image(view, tmp_path):
    bad = tmp_path / "broken.png"
    bad.write_bytes(b"nope")
    with pytest.raises(DecodeError):
        view.open(bad)
    assert view.mode is ViewMode.NO_IMAGE


def test_open_file(view, tmp_path, scenario_png):
    path = tmp_path / "image.png"
    path.write_bytes(scenario_png)
    view.open(path)
    assert view.mode is ViewMode.ORIGINAL
    assert view.active_buffer().path == path


def test_dispatch(view, scenario_buffer):
    view.dispatch(ViewCommand.LOAD_IMAGE, scenario_buffer)
    view.dispatch(ViewCommand.SET_COLOR_OFFSET, ColorOffset(50, 0, -100))
    assert view.mode is ViewMode.COLOR_ADJUSTED
    view.dispatch(ViewCommand.ZOOM_IN)
    view.dispatch(ViewCommand.ZOOM_OUT)
    assert view.zoom_factor == pytest.approx(1.0)
    view.dispatch(ViewCommand.REQUEST_GRAYSCALE)
    assert view.mode is ViewMode.GRAYSCALE
    view.dispatch(ViewCommand.RESET_COLOR)
    assert view.mode is ViewMode.ORIGINAL
    view.dispatch(ViewCommand.REQUEST_ORIGINAL)
    assert view.mode is ViewMode.ORIGINAL

    with pytest.raises(ValueError):
        view.dispatch("zoom_in")


def test_positive_offset_range(scenario_buffer):
    view = ViewStateService(offset_range="positive")
    view.load_image(scenario_buffer)
    view.set_color_offset(ColorOffset(0, 255, 10))
    assert view.mode is ViewMode.COLOR_ADJUSTED
    with pytest.raises(ValueError):
        view.set_color_offset(ColorOffset(-1, 0, 0))


def test_configuration_from_environment(monkeypatch):
    monkeypatch.setenv("ZOOM_STEP", "2.0")
    monkeypatch.setenv("COLOR_OFFSET_RANGE", "POSITIVE")
    view = ViewStateService()
    assert view.zoom_step == 2.0
    assert view.min_delta == 0


@pytest.mark.parametrize("kwargs", [
    {"zoom_step": 0.9},
    {"min_zoom": 2.0},
    {"max_zoom": 0.5},
    {"offset_range": "both"},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        ViewStateService(**kwargs)
