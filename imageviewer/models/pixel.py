from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Pixel:
    """
    One RGBA sample together with its position in the buffer.
    """
    red: int
    green: int
    blue: int
    alpha: int
    x: int
    y: int

    def rgba(self):
        return self.red, self.green, self.blue, self.alpha
