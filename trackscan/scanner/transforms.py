"""
==============================================================================
Transform Library Module
==============================================================================

Deterministic pixel-surface transforms used to generate alternative views of
a source image for barcode decoding.

Every transform is a pure function: it reads the source surface and returns a
newly allocated PixelSurface. Luminance is always L = 0.299R + 0.587G + 0.114B
computed in float64; binary outputs are replicated across R, G and B while
alpha is carried over unchanged.

Transforms:
-----------
- scale:                  bilinear resample by a factor
- global_threshold:       L > t -> 255 else 0
- adaptive_threshold:     integral-image local mean threshold
- vertical_edge_enhance:  horizontal Sobel gradient, binarized
- invert:                 255 - channel on RGB
- rotate:                 90 / 180 / 270 degrees clockwise
- crop_band / band_crop:  full-width strip, then upscale
- crop_center_band:       centred full-width strip, then upscale
- crop_rect:              manual rectangle crop
- contrast_stretch:       gray (L - 128) * gain + 128
- sharpen:                vertical unsharp 3L - above - below
- limit_size:             downscale so the long side fits a bound
- barcode_optimized:      upscale small images, threshold at 140

==============================================================================
"""

from __future__ import annotations

import logging
import math

import cv2
import numpy as np

from .band import detect_band
from .surface import BandRegion, PixelSurface


# Module logger
logger = logging.getLogger(__name__)

# Horizontal gradient kernel
SOBEL_X = np.array([
    [-1.0, 0.0, 1.0],
    [-2.0, 0.0, 2.0],
    [-1.0, 0.0, 1.0],
], dtype=np.float64)

EDGE_BINARY_THRESHOLD = 64
MAX_ENHANCE_SIDE = 1920
BARCODE_MIN_SIDE = 800
BARCODE_THRESHOLD = 140


def _binary(mask: np.ndarray) -> np.ndarray:
    """Boolean mask -> uint8 {0, 255}."""
    return np.where(mask, 255, 0).astype(np.uint8)


def _clamp_u8(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0, 255).astype(np.uint8)


# =============================================================================
# GEOMETRY
# =============================================================================

def scale(surface: PixelSurface, factor: float) -> PixelSurface:
    """
    Resample to int(width * factor) x int(height * factor).

    Args:
        surface: Source surface
        factor: Positive scale factor

    Returns:
        Resampled surface (at least 1x1)
    """
    if factor <= 0:
        raise ValueError(f"Scale factor must be positive, got {factor}")

    width = max(1, int(surface.width * factor))
    height = max(1, int(surface.height * factor))

    if (width, height) == (surface.width, surface.height):
        return PixelSurface(surface.pixels)

    interpolation = cv2.INTER_AREA if factor < 1.0 else cv2.INTER_LINEAR
    # cv2 wants a writable buffer; surface pixels are read-only
    resized = cv2.resize(np.array(surface.pixels), (width, height), interpolation=interpolation)
    return PixelSurface(resized)


def rotate(surface: PixelSurface, degrees: int) -> PixelSurface:
    """
    Rotate clockwise about the centre.

    90 and 270 swap width and height.

    Raises:
        ValueError: For angles other than 90, 180, 270
    """
    turns = {90: -1, 180: 2, 270: 1}
    if degrees not in turns:
        raise ValueError(f"Rotation must be 90, 180 or 270 degrees, got {degrees}")
    return PixelSurface(np.rot90(surface.pixels, k=turns[degrees]))


def crop_band(surface: PixelSurface, region: BandRegion, factor: float = 1.0) -> PixelSurface:
    """
    Crop a full-width horizontal band, then resample by factor.

    Raises:
        ValueError: If the region falls outside the surface
    """
    if region.y_start < 0 or region.height <= 0 or region.y_start + region.height > surface.height:
        raise ValueError(f"Band {region} outside surface of height {surface.height}")

    strip = PixelSurface(surface.pixels[region.y_start:region.y_start + region.height])
    return scale(strip, factor)


def band_crop(surface: PixelSurface, band_fraction: float = 0.35, factor: float = 2.0) -> PixelSurface:
    """Crop the densest edge-energy band and upscale it."""
    region = detect_band(surface, band_fraction)
    return crop_band(surface, region, factor)


def crop_center_band(surface: PixelSurface, fraction: float = 0.35, factor: float = 2.0) -> PixelSurface:
    """Crop a vertically centred full-width band of height floor(H * fraction)."""
    height = max(1, int(math.floor(surface.height * fraction)))
    y_start = (surface.height - height) // 2
    return crop_band(surface, BandRegion(y_start=y_start, height=height), factor)


def crop_rect(surface: PixelSurface, x: int, y: int, width: int, height: int) -> PixelSurface:
    """
    Crop an arbitrary rectangle, clamped to the surface bounds.

    Raises:
        ValueError: If nothing of the rectangle lies inside the surface
    """
    x0 = max(0, int(x))
    y0 = max(0, int(y))
    x1 = min(surface.width, int(x) + int(width))
    y1 = min(surface.height, int(y) + int(height))

    if x1 <= x0 or y1 <= y0:
        raise ValueError(
            f"Crop ({x}, {y}, {width}x{height}) does not intersect "
            f"{surface.width}x{surface.height} surface"
        )

    return PixelSurface(surface.pixels[y0:y1, x0:x1])


def limit_size(surface: PixelSurface, max_side: int = MAX_ENHANCE_SIDE) -> PixelSurface:
    """Downscale so neither side exceeds max_side, preserving aspect ratio."""
    if surface.width <= max_side and surface.height <= max_side:
        return surface
    return scale(surface, min(max_side / surface.width, max_side / surface.height))


# =============================================================================
# TONE
# =============================================================================

def invert(surface: PixelSurface) -> PixelSurface:
    """255 - channel on R, G, B; alpha unchanged."""
    return surface.with_rgb(255 - surface.pixels[:, :, :3])


def global_threshold(surface: PixelSurface, threshold: float = 128) -> PixelSurface:
    """Binarize: 255 where L > threshold, else 0."""
    return surface.with_rgb(_binary(surface.luminance() > threshold))


def contrast_stretch(surface: PixelSurface, gain: float = 1.8) -> PixelSurface:
    """Grayscale with contrast expanded around mid-gray."""
    stretched = (surface.luminance() - 128.0) * gain + 128.0
    return surface.with_rgb(_clamp_u8(stretched))


def sharpen(surface: PixelSurface) -> PixelSurface:
    """
    Vertical sharpen on luminance: 3L - L_above - L_below.

    First and last rows keep their original pixels.
    """
    if surface.height < 3:
        return PixelSurface(surface.pixels)

    lum = surface.luminance()
    out = np.array(surface.pixels, copy=True)
    sharpened = lum[1:-1] * 3.0 - lum[:-2] - lum[2:]
    out[1:-1, :, :3] = _clamp_u8(sharpened)[:, :, np.newaxis]
    return PixelSurface(out)


# =============================================================================
# LOCAL / GRADIENT FILTERS
# =============================================================================

def integral_image(values: np.ndarray) -> np.ndarray:
    """
    Zero-padded 2D prefix sum.

    integral[y, x] is the sum of values[:y, :x], so the sum over rows
    y0..y1 and columns x0..x1 (inclusive) is
    I[y1+1, x1+1] - I[y0, x1+1] - I[y1+1, x0] + I[y0, x0].
    """
    height, width = values.shape
    integral = np.zeros((height + 1, width + 1), dtype=np.float64)
    integral[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    return integral


def local_mean(values: np.ndarray, window: int) -> np.ndarray:
    """
    Mean over the square neighbourhood of half-width `window`, clamped to bounds.

    O(1) per pixel via the integral image.
    """
    height, width = values.shape
    integral = integral_image(values)

    ys = np.arange(height)
    xs = np.arange(width)
    y0 = np.maximum(ys - window, 0)
    y1 = np.minimum(ys + window, height - 1) + 1
    x0 = np.maximum(xs - window, 0)
    x1 = np.minimum(xs + window, width - 1) + 1

    sums = (
        integral[y1[:, None], x1[None, :]]
        - integral[y0[:, None], x1[None, :]]
        - integral[y1[:, None], x0[None, :]]
        + integral[y0[:, None], x0[None, :]]
    )
    counts = (y1 - y0)[:, None] * (x1 - x0)[None, :]
    return sums / counts


def adaptive_threshold(
    surface: PixelSurface,
    window: int = 12,
    c: float = 10,
    factor: float = 2.0,
) -> PixelSurface:
    """
    Local-mean threshold after scaling.

    A pixel becomes 0 when its luminance is more than `c` below the mean of
    its (2*window+1)^2 neighbourhood, otherwise 255.

    Args:
        surface: Source surface
        window: Neighbourhood half-width in pixels
        c: Offset subtracted from the local mean
        factor: Scale applied before thresholding
    """
    if window < 0:
        raise ValueError(f"window must be non-negative, got {window}")

    scaled = scale(surface, factor)
    lum = scaled.luminance()
    mean = local_mean(lum, window)
    return scaled.with_rgb(_binary(~(lum < mean - c)))


def vertical_edge_enhance(surface: PixelSurface, factor: float = 2.0) -> PixelSurface:
    """
    Emphasize vertical bars with a horizontal gradient.

    The 3x3 kernel is applied to interior pixels only; the 1-pixel border
    stays 0. |gx| is capped at 255 then binarized at 64.
    """
    scaled = scale(surface, factor)
    lum = scaled.luminance()
    height, width = lum.shape

    magnitude = np.zeros_like(lum)
    if height >= 3 and width >= 3:
        gx = np.zeros((height - 2, width - 2), dtype=np.float64)
        for dy in range(3):
            for dx in range(3):
                weight = SOBEL_X[dy, dx]
                if weight:
                    gx += weight * lum[dy:dy + height - 2, dx:dx + width - 2]
        magnitude[1:-1, 1:-1] = np.minimum(255.0, np.abs(gx))

    return scaled.with_rgb(_binary(magnitude > EDGE_BINARY_THRESHOLD))


# =============================================================================
# COMPOSITES
# =============================================================================

def barcode_optimized(surface: PixelSurface) -> PixelSurface:
    """
    Upscale small captures then apply a strong threshold for bar edges.

    Scale is max(2.0, 800 / min(W, H)), clamped so the long side of the
    result stays within MAX_ENHANCE_SIDE.
    """
    factor = max(2.0, BARCODE_MIN_SIDE / min(surface.width, surface.height))
    factor = min(factor, MAX_ENHANCE_SIDE / max(surface.width, surface.height))
    return global_threshold(scale(surface, factor), BARCODE_THRESHOLD)
