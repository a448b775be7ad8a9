"""
==============================================================================
Pixel Surface Module
==============================================================================

Immutable RGBA image value shared by every stage of the decode pipeline.

A PixelSurface wraps a read-only numpy array of shape (height, width, 4)
in RGBA row-major order. Transforms never modify a surface in place;
each one allocates and returns a new surface.

Constructors:
-------------
- PixelSurface.from_rgba_bytes(): raw RGBA buffer (width*height*4 bytes)
- PixelSurface.from_frame(): OpenCV frame (BGR, BGRA or grayscale)
- PixelSurface.from_encoded(): PNG/JPEG/... file contents

==============================================================================
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import cv2
import numpy as np


# Module logger
logger = logging.getLogger(__name__)

# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def _to_uint8(frame: np.ndarray) -> np.ndarray:
    """Bring a 16-bit or float frame into the 0-255 range."""
    if frame.dtype == np.uint8:
        return frame
    if frame.dtype == np.uint16:
        return cv2.convertScaleAbs(frame, alpha=255.0 / 65535.0)
    if np.issubdtype(frame.dtype, np.floating):
        return np.clip(np.rint(frame * 255.0), 0, 255).astype(np.uint8)
    raise ValueError(f"Unsupported frame dtype {frame.dtype}")


class BandRegion(NamedTuple):
    """Full-width horizontal strip of a surface."""

    y_start: int
    height: int


class PixelSurface:
    """
    Immutable RGBA pixel buffer.

    Attributes:
        width: Surface width in pixels
        height: Surface height in pixels
        pixels: Read-only uint8 array of shape (height, width, 4)

    Example:
        >>> surface = PixelSurface.from_rgba_bytes(2, 1, bytes(8))
        >>> surface.width, surface.height
        (2, 1)
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        """
        Wrap an RGBA array.

        Args:
            pixels: uint8 array of shape (height, width, 4)

        Raises:
            ValueError: If the array is not a non-empty uint8 RGBA image
        """
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Surface must be at least 1x1")

        data = np.array(pixels, copy=True, order="C")
        data.setflags(write=False)
        self._pixels = data

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def from_rgba_bytes(cls, width: int, height: int, buffer: bytes) -> PixelSurface:
        """Build a surface from a raw RGBA row-major buffer."""
        expected = width * height * 4
        if len(buffer) != expected:
            raise ValueError(
                f"RGBA buffer has {len(buffer)} bytes, expected {expected}"
            )
        array = np.frombuffer(buffer, dtype=np.uint8).reshape(height, width, 4)
        return cls(array)

    @classmethod
    def from_frame(cls, frame: np.ndarray) -> PixelSurface:
        """
        Build a surface from an OpenCV frame.

        Args:
            frame: Grayscale (H, W), BGR (H, W, 3) or BGRA (H, W, 4) image.
                16-bit frames are scaled down to 8 bits, float frames are
                read as 0.0-1.0.

        Returns:
            New PixelSurface
        """
        frame = _to_uint8(frame)
        if frame.ndim == 2 or frame.shape[2] == 1:
            rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
        elif frame.shape[2] == 3:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        elif frame.shape[2] == 4:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
        else:
            raise ValueError(f"Unsupported frame shape {frame.shape}")
        return cls(rgba)

    @classmethod
    def from_encoded(cls, data: bytes) -> PixelSurface:
        """
        Decode an encoded image (PNG, JPEG, ...) into a surface.

        Raises:
            ValueError: If OpenCV cannot decode the bytes
        """
        nparr = np.frombuffer(data, np.uint8)
        frame = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)
        if frame is None:
            raise ValueError("Image data could not be decoded")
        return cls.from_frame(frame)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def pixels(self) -> np.ndarray:
        """Read-only RGBA array."""
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def alpha(self) -> np.ndarray:
        return self._pixels[:, :, 3]

    def luminance(self) -> np.ndarray:
        """Per-pixel luminance 0.299R + 0.587G + 0.114B as float64."""
        rgb = self._pixels[:, :, :3].astype(np.float64)
        return rgb @ LUMA_WEIGHTS

    def to_gray(self) -> np.ndarray:
        """Luminance rounded to a uint8 image, as the decode backends expect."""
        return np.clip(np.rint(self.luminance()), 0, 255).astype(np.uint8)

    def to_bytes(self) -> bytes:
        return self._pixels.tobytes()

    # =========================================================================
    # DERIVATION HELPERS
    # =========================================================================

    def with_rgb(self, rgb: np.ndarray) -> PixelSurface:
        """
        New surface with replaced RGB channels and this surface's alpha.

        Args:
            rgb: (H, W) gray values replicated to R, G, B, or (H, W, 3)
        """
        out = np.empty_like(self._pixels)
        if rgb.ndim == 2:
            out[:, :, :3] = rgb[:, :, np.newaxis]
        else:
            out[:, :, :3] = rgb
        out[:, :, 3] = self._pixels[:, :, 3]
        return PixelSurface(out)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelSurface):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    def __hash__(self) -> int:
        return hash((self.width, self.height, self._pixels.tobytes()))

    def __repr__(self) -> str:
        return f"PixelSurface(width={self.width}, height={self.height})"
