from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union
import logging
import os

from dotenv import load_dotenv

from ..models.color_offset import ColorOffset
from ..models.raster_buffer import RasterBuffer
from ..models.view_state import ViewCommand, ViewMode, ViewState
from ..repositories.raster_repository import RasterRepository
from .color_adjustment_service import ColorAdjustmentService
from .grayscale_service import GrayscaleService
from .resampling_service import ResamplingService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OFFSET_RANGES = {"signed": -255, "positive": 0}


@dataclass(frozen=True)
class RenderRequest:
    """Everything the render worker needs, frozen at submit time."""
    buffer: RasterBuffer
    zoom_factor: float
    mode: ViewMode
    generation: int


class ViewStateService:
    """
    Single source of truth for the viewer session.
    UI widgets send commands here and receive the rendered buffer back;
    every transition recomputes derived buffers from the original.
    With no image loaded every command is a silent no-op.
    """

    def __init__(self,
                 zoom_step: float = None,
                 min_zoom: float = None,
                 max_zoom: float = None,
                 offset_range: str = None,
                 repository: RasterRepository = None):
        """
        Args:
            zoom_step: Zoom multiplier per zoom_in/zoom_out (defaults to env var)
            min_zoom: Lower zoom clamp (defaults to env var)
            max_zoom: Upper zoom clamp (defaults to env var)
            offset_range: "signed" for [-255, 255] sliders, "positive" for [0, 255]
            repository: Decoder used by open()/open_bytes()
        """
        self.zoom_step = zoom_step or float(os.getenv("ZOOM_STEP", "1.1"))
        self.min_zoom = min_zoom or float(os.getenv("MIN_ZOOM", "0.05"))
        self.max_zoom = max_zoom or float(os.getenv("MAX_ZOOM", "40.0"))
        if self.zoom_step <= 1.0:
            raise ValueError(f"ZOOM_STEP must be greater than 1, got {self.zoom_step}")
        if not 0 < self.min_zoom <= 1.0 <= self.max_zoom:
            raise ValueError(f"Zoom bounds must satisfy 0 < MIN_ZOOM <= 1 <= MAX_ZOOM, "
                             f"got [{self.min_zoom}, {self.max_zoom}]")

        offset_range = (offset_range or os.getenv("COLOR_OFFSET_RANGE", "signed")).lower()
        if offset_range not in OFFSET_RANGES:
            raise ValueError(f"COLOR_OFFSET_RANGE must be one of {sorted(OFFSET_RANGES)}, "
                             f"got {offset_range!r}")
        self.offset_range = offset_range
        self.min_delta = OFFSET_RANGES[offset_range]

        self.repository = repository or RasterRepository()
        self.color_adjuster = ColorAdjustmentService()
        self.grayscale_converter = GrayscaleService()
        self.resampler = ResamplingService()
        self.state = ViewState()

    # ─── Queries ───────────────────────────────────────────────────
    @property
    def mode(self) -> ViewMode:
        return self.state.mode

    @property
    def zoom_factor(self) -> float:
        return self.state.zoom_factor

    @property
    def offset(self) -> ColorOffset:
        return self.state.offset

    @property
    def has_image(self) -> bool:
        return self.state.has_image

    @property
    def generation(self) -> int:
        return self.state.generation

    def active_buffer(self) -> RasterBuffer | None:
        """Buffer selected by the current mode, resolved on every call."""
        state = self.state
        if state.mode is ViewMode.GRAYSCALE:
            return state.grayscale
        if state.mode is ViewMode.COLOR_ADJUSTED:
            return state.adjusted
        return state.original

    def render(self) -> RasterBuffer | None:
        """Active buffer resampled at the current zoom factor."""
        buffer = self.active_buffer()
        if buffer is None:
            return None
        return self.resampler.scale(buffer, self.state.zoom_factor)

    def snapshot(self) -> RenderRequest | None:
        buffer = self.active_buffer()
        if buffer is None:
            return None
        return RenderRequest(buffer=buffer,
                             zoom_factor=self.state.zoom_factor,
                             mode=self.state.mode,
                             generation=self.state.generation)

    # ─── Commands ──────────────────────────────────────────────────
    def load_image(self, buffer: RasterBuffer) -> None:
        if not isinstance(buffer, RasterBuffer):
            raise TypeError(f"load_image expects a RasterBuffer, got {type(buffer).__name__}")
        self.state.reset()
        self.state.original = buffer
        self._transition(ViewMode.ORIGINAL)
        logger.info(f"Image loaded: {buffer.width}x{buffer.height}")

    def open(self, path: Union[str, Path]) -> None:
        """
        Decode a file and load it. Decode errors propagate and leave the
        current session untouched.
        """
        self.load_image(self.repository.load(path))

    def open_bytes(self, data: bytes) -> None:
        self.load_image(self.repository.decode(data))

    def request_grayscale(self) -> None:
        if not self.has_image:
            return
        if self.state.grayscale is None:
            self.state.grayscale = self.grayscale_converter.apply(self.state.original)
        self._discard_adjustment()
        self._transition(ViewMode.GRAYSCALE)

    def request_original(self) -> None:
        if not self.has_image:
            return
        self._discard_adjustment()
        self._transition(ViewMode.ORIGINAL)

    def set_color_offset(self, offset: ColorOffset) -> None:
        """
        Recompute the adjusted buffer from the original. Ignored while the
        grayscale view is shown.

        Raises:
            ValueError: if a delta lies below the configured slider range.
        """
        if offset.min_delta() < self.min_delta:
            raise ValueError(f"Color offset {offset} outside the {self.offset_range} "
                             f"range [{self.min_delta}, 255]")
        if not self.has_image or self.state.mode is ViewMode.GRAYSCALE:
            return

        if offset.is_zero():
            self._discard_adjustment()
            self._transition(ViewMode.ORIGINAL)
            return

        self.state.adjusted = self.color_adjuster.apply(self.state.original, offset)
        self.state.offset = offset
        self._transition(ViewMode.COLOR_ADJUSTED)

    def reset_color(self) -> None:
        if not self.has_image:
            return
        self._discard_adjustment()
        self._transition(ViewMode.ORIGINAL)

    def zoom_in(self) -> None:
        self._set_zoom(self.state.zoom_factor * self.zoom_step)

    def zoom_out(self) -> None:
        self._set_zoom(self.state.zoom_factor / self.zoom_step)

    def dispatch(self, command: ViewCommand, payload: Any = None) -> None:
        """
        Route a UI command to its transition.
        LOAD_IMAGE takes a RasterBuffer, SET_COLOR_OFFSET a ColorOffset.
        """
        if command is ViewCommand.LOAD_IMAGE:
            self.load_image(payload)
        elif command is ViewCommand.SET_COLOR_OFFSET:
            self.set_color_offset(payload)
        elif command is ViewCommand.ZOOM_IN:
            self.zoom_in()
        elif command is ViewCommand.ZOOM_OUT:
            self.zoom_out()
        elif command is ViewCommand.REQUEST_GRAYSCALE:
            self.request_grayscale()
        elif command is ViewCommand.REQUEST_ORIGINAL:
            self.request_original()
        elif command is ViewCommand.RESET_COLOR:
            self.reset_color()
        else:
            raise ValueError(f"Unknown view command: {command!r}")

    # ─── Internal helpers ──────────────────────────────────────────
    def _set_zoom(self, factor: float) -> None:
        if not self.has_image:
            return
        clamped = min(self.max_zoom, max(self.min_zoom, factor))
        if clamped != factor:
            logger.debug(f"Zoom {factor:.4f} clamped to {clamped:.4f}")
        self.state.zoom_factor = clamped
        self.state.generation += 1

    def _discard_adjustment(self) -> None:
        self.state.adjusted = None
        self.state.offset = ColorOffset.zero()

    def _transition(self, mode: ViewMode) -> None:
        if mode is not self.state.mode:
            logger.info(f"View mode {self.state.mode.value} → {mode.value}")
        self.state.mode = mode
        self.state.generation += 1
