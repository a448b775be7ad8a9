"""
==============================================================================
Decode Backends Module
==============================================================================

Capability wrappers around the two barcode decoding libraries.

Backends:
---------
- NativeDetector:  pyzbar (ZBar). Fast, tried first on every variant.
                   Returns every symbol found, possibly none.
- FallbackDecoder: zxing-cpp. Multi-format decoder driven by DecodeHints.
                   Returns one symbol or None.

Both operate on the luminance of a PixelSurface. Neither raises for a
frame without a barcode; absence is an empty list / None.

ZBar is a shared library that is not present on every host. When it
cannot be loaded the native detector reports itself unavailable and the
orchestrator skips that step.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
import zxingcpp
from pydantic import BaseModel, ConfigDict, Field

from .surface import PixelSurface

try:
    from pyzbar.pyzbar import decode as zbar_decode
except ImportError:  # libzbar missing on this host
    zbar_decode = None


# Module logger
logger = logging.getLogger(__name__)


class DecodedSymbol(BaseModel):
    """A single symbol reported by a backend."""

    model_config = ConfigDict(frozen=True)

    text: str
    format_hint: str = Field(default="", description="Symbology reported by the backend")

    @property
    def length(self) -> int:
        return len(self.text)


class DecodeHints(BaseModel):
    """
    Fallback decoder configuration.

    Attributes:
        try_harder: Exhaustive search (rotation + downscale) vs fast path
        also_inverted: Also test the colour-inverted surface
        pure_barcode: Assume the symbol fills the frame
    """

    model_config = ConfigDict(frozen=True)

    try_harder: bool = False
    also_inverted: bool = False
    pure_barcode: bool = False


BASELINE_HINTS = DecodeHints(try_harder=True)
PERMISSIVE_HINTS = DecodeHints(try_harder=True, also_inverted=True, pure_barcode=False)


class NativeDetector:
    """
    ZBar-backed symbol detector.

    Example:
        >>> detector = NativeDetector()
        >>> if detector.available:
        ...     symbols = detector.detect(surface)
    """

    name = "native"

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    def available(self) -> bool:
        """True when ZBar is loadable and the detector is enabled."""
        return self._enabled and zbar_decode is not None

    def detect(self, surface: PixelSurface) -> List[DecodedSymbol]:
        """
        Detect every symbol in a surface.

        Returns:
            Symbols in the order ZBar reports them; empty when nothing is found
        """
        if not self.available:
            return []

        try:
            barcodes = zbar_decode(surface.to_gray())
        except Exception as e:
            logger.debug(f"Native detect error: {e}")
            return []

        symbols = []
        for barcode in barcodes:
            text = barcode.data.decode("utf-8", errors="replace").strip()
            if text:
                symbols.append(DecodedSymbol(text=text, format_hint=str(barcode.type)))
        return symbols


class FallbackDecoder:
    """
    zxing-cpp backed decoder.

    Example:
        >>> decoder = FallbackDecoder()
        >>> symbol = decoder.decode(surface, BASELINE_HINTS)
    """

    name = "fallback"

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    def available(self) -> bool:
        return self._enabled

    def _read(self, gray: np.ndarray, hints: DecodeHints) -> Optional[DecodedSymbol]:
        try:
            results = zxingcpp.read_barcodes(
                gray,
                try_rotate=hints.try_harder,
                try_downscale=hints.try_harder,
                is_pure=hints.pure_barcode,
            )
        except Exception as e:
            logger.debug(f"Fallback decode error: {e}")
            return None

        for result in results:
            text = (result.text or "").strip()
            if text:
                return DecodedSymbol(text=text, format_hint=result.format.name)
        return None

    def decode(self, surface: PixelSurface, hints: DecodeHints = BASELINE_HINTS) -> Optional[DecodedSymbol]:
        """
        Decode the first readable symbol.

        Args:
            surface: Surface to decode
            hints: Search configuration

        Returns:
            The decoded symbol, or None when not found
        """
        if not self.available:
            return None

        gray = surface.to_gray()
        symbol = self._read(gray, hints)
        if symbol is None and hints.also_inverted:
            symbol = self._read(255 - gray, hints)
        return symbol
