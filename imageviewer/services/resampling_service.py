import logging
import math
import numbers
from typing import Tuple

import cv2
import numpy as np

from ..models.errors import InvalidZoomError
from ..models.raster_buffer import RasterBuffer

logger = logging.getLogger(__name__)


class ResamplingService:
    """
    Scales a buffer by a zoom factor with smooth interpolation.
    Shrinking uses area averaging, enlarging uses bilinear interpolation.
    """

    @staticmethod
    def target_dimensions(source: RasterBuffer, factor: float) -> Tuple[int, int]:
        """
        Returns:
            (width, height) after scaling, each floored and at least 1.

        Raises:
            InvalidZoomError: if factor is not a positive finite number.
        """
        if isinstance(factor, bool) or not isinstance(factor, numbers.Real):
            raise InvalidZoomError(f"Zoom factor must be a number, got {factor!r}")
        if not math.isfinite(factor) or factor <= 0:
            raise InvalidZoomError(f"Zoom factor must be positive and finite, got {factor}")

        width = max(1, math.floor(source.width * factor))
        height = max(1, math.floor(source.height * factor))
        return width, height

    def scale(self, source: RasterBuffer, factor: float) -> RasterBuffer:
        width, height = self.target_dimensions(source, factor)
        if (width, height) == source.dimensions():
            return RasterBuffer(source.pixels.copy(), source.path)

        shrinking = width * height < source.width * source.height
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
        # OpenCV wants a writeable source array
        src = np.array(source.pixels, copy=True)
        scaled = cv2.resize(src, (width, height), interpolation=interpolation)

        logger.debug(
            f"Resampled {source.width}x{source.height} → {width}x{height} (factor={float(factor):.4f})"
        )
        return RasterBuffer(scaled, source.path)
