"""
==============================================================================
Band Detector Module
==============================================================================

Locates the horizontal strip of an image most likely to contain barcode bars.

Barcodes produce dense left-to-right luminance transitions. Each row gets an
"edge energy" (sum of absolute differences between horizontally adjacent
pixels) and a fixed-height window slides down the image; the window with the
highest total energy is the band.

==============================================================================
"""

from __future__ import annotations

import logging
import math

import numpy as np

from .surface import BandRegion, PixelSurface


# Module logger
logger = logging.getLogger(__name__)

MIN_BAND_HEIGHT = 8


def row_edge_energy(surface: PixelSurface) -> np.ndarray:
    """
    Per-row sum of |L(x+1, y) - L(x, y)|.

    Returns:
        float64 array of length surface.height
    """
    lum = surface.luminance()
    if lum.shape[1] < 2:
        return np.zeros(lum.shape[0], dtype=np.float64)
    return np.abs(np.diff(lum, axis=1)).sum(axis=1)


def band_height(surface_height: int, band_fraction: float) -> int:
    """Window height: max(8, floor(H * fraction)), never taller than H."""
    return min(surface_height, max(MIN_BAND_HEIGHT, int(math.floor(surface_height * band_fraction))))


def detect_band(surface: PixelSurface, band_fraction: float = 0.35) -> BandRegion:
    """
    Find the densest horizontal band.

    Ties keep the earliest (topmost) window.

    Args:
        surface: Source surface
        band_fraction: Band height as a fraction of surface height, in (0, 1)

    Returns:
        BandRegion with 0 <= y_start and y_start + height <= surface.height

    Raises:
        ValueError: If band_fraction is outside (0, 1)
    """
    if not 0.0 < band_fraction < 1.0:
        raise ValueError(f"band_fraction must be in (0, 1), got {band_fraction}")

    energy = row_edge_energy(surface)
    height = band_height(surface.height, band_fraction)

    window = float(energy[:height].sum())
    best_sum = window
    best_start = 0

    for start in range(1, surface.height - height + 1):
        window += energy[start + height - 1] - energy[start - 1]
        if window > best_sum:
            best_sum = window
            best_start = start

    logger.debug(
        f"Band detected at y={best_start} (height={height}, energy={best_sum:.1f})"
    )
    return BandRegion(y_start=best_start, height=height)
