from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Union
import logging
import os

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError
from dotenv import load_dotenv

from ..models.errors import DecodeError
from ..models.raster_buffer import RasterBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

PNG_FORMAT = "PNG"
# Modes Pillow uses for 16-bit grayscale PNGs
WIDE_GRAY_MODES = {"I", "I;16", "I;16B", "I;16L"}


class RasterRepository:
    """
    Handles decoding and encoding of RasterBuffer entities.
    Only PNG is accepted; every PNG mode is normalised to RGBA.
    """
    def __init__(self, valid_exts: str | None = None):
        exts = valid_exts or os.getenv("VALID_IMAGE_EXTENSIONS", ".png")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def create_buffer(pixels: np.ndarray, path: Union[str, Path] = None) -> RasterBuffer:
        if path is None:
            return RasterBuffer(pixels)
        return RasterBuffer(pixels=pixels, path=Path(path))

    @staticmethod
    def decode(data: bytes, path: Union[str, Path] = None) -> RasterBuffer:
        """
        Decode a PNG byte stream into an RGBA RasterBuffer.

        Raises:
            DecodeError: if the bytes are empty, not a PNG, or truncated.
        """
        if not data:
            raise DecodeError("Empty image data")
        try:
            with PILImage.open(BytesIO(data)) as pil_img:
                fmt = pil_img.format
                pixels = RasterRepository._to_rgba(pil_img) if fmt == PNG_FORMAT else None
        except (UnidentifiedImageError, PILImage.DecompressionBombError,
                OSError, SyntaxError, EOFError, ValueError) as err:
            raise DecodeError(f"Error loading image: {err}") from err

        if pixels is None:
            raise DecodeError(f"Unsupported image format: {fmt}")
        return RasterRepository.create_buffer(pixels, path)

    @staticmethod
    def _to_rgba(pil_img: PILImage.Image) -> np.ndarray:
        """
        RGBA uint8 pixels for any PNG mode. 16-bit grayscale is scaled down
        to 8 bits (Pillow's own convert would clip it).
        """
        if pil_img.mode in WIDE_GRAY_MODES:
            wide = np.asarray(pil_img).astype(np.int64)
            gray = (np.clip(wide, 0, 0xFFFF) >> 8).astype(np.uint8)
            alpha = np.full(gray.shape, 255, dtype=np.uint8)
            return np.dstack([gray, gray, gray, alpha])
        return np.asarray(pil_img.convert("RGBA"), dtype=np.uint8)

    def load(self, path: Union[str, Path]) -> RasterBuffer:
        path = Path(path)
        if path.suffix.lower() not in self.VALID_EXTS:
            logger.warning(f"Rejected {path.name}: extension not in {sorted(self.VALID_EXTS)}")
            raise DecodeError(f"Unsupported file extension: {path.suffix or '<none>'}")
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        buffer = self.decode(path.read_bytes(), path)
        logger.info(f"Loaded {path.name}: {buffer.width}x{buffer.height}")
        return buffer

    @staticmethod
    def to_pil_image(buffer: RasterBuffer) -> PILImage.Image:
        """
        Convert RasterBuffer.pixels → PIL Image object.
        Ensures the NumPy array is C-contiguous.
        """
        np_img = buffer.pixels
        if not np_img.flags['C_CONTIGUOUS']:
            np_img = np.ascontiguousarray(np_img)
        return PILImage.fromarray(np_img)

    @staticmethod
    def encode_png(buffer: RasterBuffer) -> bytes:
        """PNG bytes for a display collaborator; nothing is written to disk."""
        out = BytesIO()
        RasterRepository.to_pil_image(buffer).save(out, format=PNG_FORMAT)
        return out.getvalue()
