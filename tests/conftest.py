from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

from imageviewer.models.raster_buffer import RasterBuffer
from imageviewer.services.view_state_service import ViewStateService

SCENARIO_PIXELS = [
    [(10, 20, 30, 255), (40, 50, 60, 255)],
    [(70, 80, 90, 255), (100, 110, 120, 255)],
]


def png_bytes(pixels: np.ndarray, fmt: str = "PNG") -> bytes:
    out = BytesIO()
    PILImage.fromarray(pixels).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def scenario_pixels() -> np.ndarray:
    """The 2x2 image used throughout: pixel 0 top-left, pixel 3 bottom-right."""
    return np.array(SCENARIO_PIXELS, dtype=np.uint8)


@pytest.fixture
def scenario_buffer(scenario_pixels) -> RasterBuffer:
    return RasterBuffer(scenario_pixels)


@pytest.fixture
def random_buffer() -> RasterBuffer:
    rng = np.random.default_rng(42)
    return RasterBuffer(rng.integers(0, 256, size=(17, 23, 4), dtype=np.uint8))


@pytest.fixture
def scenario_png(scenario_pixels) -> bytes:
    return png_bytes(scenario_pixels)


@pytest.fixture
def view(monkeypatch) -> ViewStateService:
    for var in ("ZOOM_STEP", "MIN_ZOOM", "MAX_ZOOM", "COLOR_OFFSET_RANGE"):
        monkeypatch.delenv(var, raising=False)
    return ViewStateService()
