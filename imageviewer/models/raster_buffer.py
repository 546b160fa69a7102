from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple
import numpy as np

from .errors import OutOfRangeError
from .pixel import Pixel


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """
    Simple data object: RGBA pixels (+ optional source path for bookkeeping).
    The pixel array is locked read-only on construction, transforms always
    produce a new buffer.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.
    path: Path | None = None  # Source of the image.

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8:
            raise ValueError("RasterBuffer pixels must be a uint8 numpy array")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"RasterBuffer pixels must have shape (H, W, 4), got {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("RasterBuffer must hold at least one pixel")
        # Always own the data, a read-only view can still change through its base
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def get(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """
        Bounds-checked access to the (r, g, b, a) sample at column x, row y.

        Raises:
            OutOfRangeError: if x or y falls outside the buffer.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfRangeError(
                f"pixel ({x}, {y}) outside {self.width}x{self.height} buffer"
            )
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def pixel_at(self, x: int, y: int) -> Pixel:
        r, g, b, a = self.get(x, y)
        return Pixel(r, g, b, a, x, y)

    def iter_pixels(self) -> Iterator[Pixel]:
        """Yield every pixel in row-major order."""
        for y in range(self.height):
            row = self.pixels[y]
            for x in range(self.width):
                r, g, b, a = row[x]
                yield Pixel(int(r), int(g), int(b), int(a), x, y)
