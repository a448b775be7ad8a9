"""
==============================================================================
Scanner Package - Barcode Decode Pipeline
==============================================================================

Image transforms, band detection, backend orchestration and live-mode
stability voting, using OpenCV, pyzbar and zxing-cpp.

Classes:
--------
- BarcodeScanner: Session object for still-image and live scanning
- DecodeOrchestrator: Variant x backend search
- StabilityGate: Consecutive-frame voting with cooldown
- PixelSurface: Immutable RGBA image

==============================================================================
"""

from .core import BarcodeScanner, ScanResult, ScanState
from .orchestrator import DecodeBackend, DecodeOrchestrator, DecodeOutcome
from .stability import StabilityGate
from .surface import BandRegion, PixelSurface

__all__ = [
    "BandRegion",
    "BarcodeScanner",
    "DecodeBackend",
    "DecodeOrchestrator",
    "DecodeOutcome",
    "PixelSurface",
    "ScanResult",
    "ScanState",
    "StabilityGate",
]
