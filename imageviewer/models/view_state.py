from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .color_offset import ColorOffset
from .raster_buffer import RasterBuffer


class ViewMode(Enum):
    NO_IMAGE = "no_image"
    ORIGINAL = "original"
    GRAYSCALE = "grayscale"
    COLOR_ADJUSTED = "color_adjusted"


class ViewCommand(Enum):
    """Every input the UI can send to the view state."""
    LOAD_IMAGE = "load_image"
    SET_COLOR_OFFSET = "set_color_offset"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    REQUEST_GRAYSCALE = "request_grayscale"
    REQUEST_ORIGINAL = "request_original"
    RESET_COLOR = "reset_color"


@dataclass
class ViewState:
    """
    Data object for the single image session: which mode is selected,
    the zoom factor, and the buffers derived from the original.
    Derived buffers are replaced, never mutated.
    """
    mode: ViewMode = ViewMode.NO_IMAGE
    zoom_factor: float = 1.0
    offset: ColorOffset = field(default_factory=ColorOffset.zero)
    original: RasterBuffer | None = None
    grayscale: RasterBuffer | None = None  # Lazily computed, once per load.
    adjusted: RasterBuffer | None = None   # Present only in COLOR_ADJUSTED.
    generation: int = 0  # Bumped on every change, used to drop stale renders.

    @property
    def has_image(self) -> bool:
        return self.original is not None

    def reset(self) -> None:
        """Forget everything derived from the previous image."""
        self.grayscale = None
        self.adjusted = None
        self.offset = ColorOffset.zero()
        self.zoom_factor = 1.0
