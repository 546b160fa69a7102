from __future__ import annotations
from dataclasses import dataclass
import numpy as np

MAX_DELTA = 255


@dataclass(frozen=True)
class ColorOffset:
    """
    Value-object holding additive per-channel deltas in 8-bit units.
    Alpha is never touched by an offset.
    """
    red_delta: int = 0      # [-255 , +255]
    green_delta: int = 0    # [-255 , +255]
    blue_delta: int = 0     # [-255 , +255]

    def __post_init__(self):
        for name in ("red_delta", "green_delta", "blue_delta"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if not -MAX_DELTA <= value <= MAX_DELTA:
                raise ValueError(f"{name}={value} outside [-{MAX_DELTA}, {MAX_DELTA}]")
            object.__setattr__(self, name, int(value))

    @classmethod
    def zero(cls) -> ColorOffset:
        return cls()

    def is_zero(self) -> bool:
        return self.red_delta == 0 and self.green_delta == 0 and self.blue_delta == 0

    def min_delta(self) -> int:
        return min(self.red_delta, self.green_delta, self.blue_delta)

    def as_array(self) -> np.ndarray:
        """RGB deltas as an int16 vector, ready to broadcast over (H, W, 3)."""
        return np.array([self.red_delta, self.green_delta, self.blue_delta], dtype=np.int16)
