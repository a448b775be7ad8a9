"""
==============================================================================
Candidate Variants Module
==============================================================================

Named, parameterized transform descriptors and the fixed order in which the
decode orchestrator tries them.

Order matters: the orchestrator stops at the first variant that decodes, so
cheap and likely views come first and expensive or unusual ones last.

Default Sequence:
-----------------
 1  original                     10  vertical edge enhance x2
 2  scale x2.0                   11  global threshold 128
 3  scale x1.5                   12  barcode-optimized (threshold 140)
 4  scale x0.75                  13  contrast stretch
 5  band-detected crop x2        14  sharpen
 6  centre band 35% x2           15  invert
 7  centre band 60% x1.5         16  rotate 90
 8  adaptive threshold 12/10 x2  17  rotate 180
 9  adaptive threshold 24/15 x1  18  rotate 270

==============================================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from . import transforms
from .surface import PixelSurface


class VariantKind(str, enum.Enum):
    """Transform family of a candidate variant."""

    ORIGINAL = "original"
    SCALE = "scale"
    BAND_CROP = "band_crop"
    CENTER_CROP = "center_crop"
    ADAPTIVE_THRESHOLD = "adaptive_threshold"
    VERTICAL_EDGE = "vertical_edge"
    GLOBAL_THRESHOLD = "global_threshold"
    BARCODE_OPTIMIZED = "barcode_optimized"
    CONTRAST_STRETCH = "contrast_stretch"
    SHARPEN = "sharpen"
    INVERT = "invert"
    ROTATE = "rotate"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value


def _original(surface: PixelSurface) -> PixelSurface:
    return surface


def _size_limited(func: Callable[..., PixelSurface]) -> Callable[..., PixelSurface]:
    """Run an enhancement on a copy capped at 1920 px per side."""
    def wrapper(surface: PixelSurface, **params: Any) -> PixelSurface:
        return func(transforms.limit_size(surface), **params)
    return wrapper


_TRANSFORMS: Dict[VariantKind, Callable[..., PixelSurface]] = {
    VariantKind.ORIGINAL: _original,
    VariantKind.SCALE: transforms.scale,
    VariantKind.BAND_CROP: transforms.band_crop,
    VariantKind.CENTER_CROP: transforms.crop_center_band,
    VariantKind.ADAPTIVE_THRESHOLD: transforms.adaptive_threshold,
    VariantKind.VERTICAL_EDGE: transforms.vertical_edge_enhance,
    VariantKind.GLOBAL_THRESHOLD: _size_limited(transforms.global_threshold),
    VariantKind.BARCODE_OPTIMIZED: transforms.barcode_optimized,
    VariantKind.CONTRAST_STRETCH: _size_limited(transforms.contrast_stretch),
    VariantKind.SHARPEN: _size_limited(transforms.sharpen),
    VariantKind.INVERT: transforms.invert,
    VariantKind.ROTATE: transforms.rotate,
}


@dataclass(frozen=True)
class CandidateVariant:
    """
    One deterministic view of the source image.

    Attributes:
        name: Human-readable label used in logs and API responses
        kind: Transform family
        params: Keyword arguments for the transform, as sorted pairs
    """

    name: str
    kind: VariantKind
    params: Tuple[Tuple[str, Any], ...] = field(default=())

    @classmethod
    def of(cls, name: str, kind: VariantKind, **params: Any) -> CandidateVariant:
        return cls(name=name, kind=kind, params=tuple(sorted(params.items())))

    def apply(self, surface: PixelSurface) -> PixelSurface:
        """Realize this variant on a source surface."""
        return _TRANSFORMS[self.kind](surface, **dict(self.params))

    def describe(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind.value, **dict(self.params)}


def default_variants(band_fraction: float = 0.35) -> List[CandidateVariant]:
    """
    Build the fixed, ordered candidate list.

    Args:
        band_fraction: Height fraction handed to the band detector

    Returns:
        List of 18 variants in decode order
    """
    v = CandidateVariant.of
    return [
        v("original", VariantKind.ORIGINAL),
        v("scale-2.0", VariantKind.SCALE, factor=2.0),
        v("scale-1.5", VariantKind.SCALE, factor=1.5),
        v("scale-0.75", VariantKind.SCALE, factor=0.75),
        v("band-crop", VariantKind.BAND_CROP, band_fraction=band_fraction, factor=2.0),
        v("center-band-35", VariantKind.CENTER_CROP, fraction=0.35, factor=2.0),
        v("center-band-60", VariantKind.CENTER_CROP, fraction=0.6, factor=1.5),
        v("adaptive-12-10", VariantKind.ADAPTIVE_THRESHOLD, window=12, c=10, factor=2.0),
        v("adaptive-24-15", VariantKind.ADAPTIVE_THRESHOLD, window=24, c=15, factor=1.0),
        v("vertical-edge", VariantKind.VERTICAL_EDGE, factor=2.0),
        v("threshold-128", VariantKind.GLOBAL_THRESHOLD, threshold=128),
        v("barcode-optimized", VariantKind.BARCODE_OPTIMIZED),
        v("contrast-stretch", VariantKind.CONTRAST_STRETCH, gain=1.8),
        v("sharpen", VariantKind.SHARPEN),
        v("invert", VariantKind.INVERT),
        v("rotate-90", VariantKind.ROTATE, degrees=90),
        v("rotate-180", VariantKind.ROTATE, degrees=180),
        v("rotate-270", VariantKind.ROTATE, degrees=270),
    ]
