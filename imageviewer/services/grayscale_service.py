import logging

import numpy as np

from ..models.raster_buffer import RasterBuffer

logger = logging.getLogger(__name__)


class GrayscaleService:
    """
    Flat-average grayscale: gray = (r + g + b) // 3, replicated into R, G, B.
    Not a perceptual luma weighting. Alpha is kept as-is.
    """

    @staticmethod
    def _average(rgb: np.ndarray) -> np.ndarray:
        return (rgb.astype(np.uint16).sum(axis=2) // 3).astype(np.uint8)

    def apply(self, source: RasterBuffer) -> RasterBuffer:
        gray = self._average(source.pixels[:, :, :3])

        out = np.empty_like(source.pixels)
        out[:, :, 0] = gray
        out[:, :, 1] = gray
        out[:, :, 2] = gray
        out[:, :, 3] = source.pixels[:, :, 3]

        logger.debug(f"Grayscale computed for {source.width}x{source.height}")
        return RasterBuffer(out, source.path)
