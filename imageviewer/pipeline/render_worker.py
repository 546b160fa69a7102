"""
Render Worker
Resamples the active buffer off the UI thread and hands finished frames
back through a callback. Only the newest request is ever delivered.
"""

from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional
import logging
import threading

from ..models.raster_buffer import RasterBuffer
from ..models.view_state import ViewMode
from ..services.resampling_service import ResamplingService
from ..services.view_state_service import RenderRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderFrame:
    """A resampled buffer ready for the display collaborator."""
    buffer: RasterBuffer
    zoom_factor: float
    mode: ViewMode
    generation: int


class RenderWorker:
    """
    Single background thread running the resampler.

    Each submit() records the request's generation as the latest one; a
    frame whose generation is no longer the latest when it finishes is
    dropped instead of being passed to on_frame.
    """

    def __init__(self,
                 on_frame: Callable[[RenderFrame], None],
                 resampler: ResamplingService = None):
        self.on_frame = on_frame
        self.resampler = resampler or ResamplingService()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="render")
        self._lock = threading.Lock()
        self._latest = -1

    @property
    def latest_generation(self) -> int:
        with self._lock:
            return self._latest

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._latest

    def submit(self, request: Optional[RenderRequest]) -> Optional[Future]:
        """
        Queue a render. Returns a Future resolving to the RenderFrame, or to
        None if the frame was superseded before delivery.
        """
        if request is None:
            return None
        with self._lock:
            self._latest = max(self._latest, request.generation)
        return self._executor.submit(self._render, request)

    def _render(self, request: RenderRequest) -> Optional[RenderFrame]:
        if not self.is_current(request.generation):
            logger.debug(f"Skipping stale render request (generation {request.generation})")
            return None

        scaled = self.resampler.scale(request.buffer, request.zoom_factor)
        frame = RenderFrame(buffer=scaled,
                            zoom_factor=request.zoom_factor,
                            mode=request.mode,
                            generation=request.generation)

        if not self.is_current(request.generation):
            logger.debug(f"Discarding stale frame (generation {request.generation})")
            return None
        try:
            self.on_frame(frame)
        except Exception:
            logger.exception(f"Frame callback failed (generation {request.generation})")
            raise
        return frame

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(wait=True)
