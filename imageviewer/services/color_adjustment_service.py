import logging

import numpy as np

from ..models.color_offset import ColorOffset
from ..models.raster_buffer import RasterBuffer

logger = logging.getLogger(__name__)


class ColorAdjustmentService:
    """
    Adds per-channel offsets to a buffer and returns a *new* buffer.
    Pure: the source buffer is never touched and results do not compound,
    the caller always passes the original image.
    """

    @staticmethod
    def apply(source: RasterBuffer, offset: ColorOffset) -> RasterBuffer:
        if offset.is_zero():
            return RasterBuffer(source.pixels.copy(), source.path)

        rgb = source.pixels[:, :, :3].astype(np.int16) + offset.as_array()
        out = np.empty_like(source.pixels)
        out[:, :, :3] = np.clip(rgb, 0, 255).astype(np.uint8)
        out[:, :, 3] = source.pixels[:, :, 3]

        logger.debug(
            f"Color offset ({offset.red_delta}, {offset.green_delta}, {offset.blue_delta}) "
            f"applied to {source.width}x{source.height}"
        )
        return RasterBuffer(out, source.path)
