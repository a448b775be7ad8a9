"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides synthetic surfaces, scripted decode backends, scanner sessions and
an API client wired to the scripted backends.

==============================================================================
"""

import base64
from typing import Callable, Dict, Generator, List, Optional, Sequence

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from trackscan.core.dependencies import get_native_detector, get_scanner
from trackscan.main import app
from trackscan.scanner import BarcodeScanner, DecodeOrchestrator, PixelSurface, StabilityGate
from trackscan.scanner.backends import (
    BASELINE_HINTS,
    DecodedSymbol,
    DecodeHints,
    FallbackDecoder,
    NativeDetector,
)


# ============================================================================
# SCRIPTED BACKENDS
# ============================================================================

class FakeNativeDetector(NativeDetector):
    """Native detector that reports a fixed list of texts."""

    def __init__(
        self,
        texts: Sequence[str] = (),
        available: bool = True,
        when: Optional[Callable[[PixelSurface], bool]] = None,
    ):
        super().__init__(enabled=available)
        self._texts = list(texts)
        self._is_available = available
        self._when = when
        self.calls = 0

    @property
    def available(self) -> bool:
        return self._is_available

    def detect(self, surface: PixelSurface) -> List[DecodedSymbol]:
        self.calls += 1
        if self._when is not None and not self._when(surface):
            return []
        return [DecodedSymbol(text=text) for text in self._texts]


class FakeFallbackDecoder(FallbackDecoder):
    """Fallback decoder that records the hints it was called with."""

    def __init__(
        self,
        text: Optional[str] = None,
        when: Optional[Callable[[PixelSurface, DecodeHints], bool]] = None,
    ):
        super().__init__(enabled=True)
        self._text = text
        self._when = when
        self.hints: List[DecodeHints] = []

    def decode(self, surface: PixelSurface, hints: DecodeHints = BASELINE_HINTS) -> Optional[DecodedSymbol]:
        self.hints.append(hints)
        if self._text is None:
            return None
        if self._when is not None and not self._when(surface, hints):
            return None
        return DecodedSymbol(text=self._text)


# ============================================================================
# SURFACE FIXTURES
# ============================================================================

def make_surface(gray: np.ndarray) -> PixelSurface:
    """Opaque surface with R = G = B = gray."""
    height, width = gray.shape
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[:, :, :3] = gray[:, :, np.newaxis]
    rgba[:, :, 3] = 255
    return PixelSurface(rgba)


@pytest.fixture
def noise_surface() -> PixelSurface:
    """64x48 surface of random RGBA noise."""
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    return PixelSurface(pixels)


@pytest.fixture
def label_frame() -> np.ndarray:
    """80x60 BGR frame with a block of vertical bars."""
    frame = np.full((60, 80, 3), 255, dtype=np.uint8)
    frame[20:40, 10:70:4] = 0
    return frame


@pytest.fixture
def encode_png() -> Callable[[np.ndarray], str]:
    """Encode an OpenCV frame as base64 PNG."""
    def encode(frame: np.ndarray) -> str:
        ok, buffer = cv2.imencode(".png", frame)
        assert ok
        return base64.b64encode(buffer.tobytes()).decode("ascii")
    return encode


# ============================================================================
# SCANNER FIXTURES
# ============================================================================

@pytest.fixture
def make_scanner() -> Callable[..., BarcodeScanner]:
    """Factory for scanner sessions over scripted backends."""
    def factory(
        native_texts: Sequence[str] = (),
        fallback_text: Optional[str] = None,
        native_available: bool = True,
    ) -> BarcodeScanner:
        orchestrator = DecodeOrchestrator(
            native=FakeNativeDetector(native_texts, available=native_available),
            fallback=FakeFallbackDecoder(fallback_text),
        )
        return BarcodeScanner(
            orchestrator=orchestrator,
            gate=StabilityGate(),
            live_interval_seconds=0,
        )
    return factory


# ============================================================================
# CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def backend_script() -> Dict[str, object]:
    """What the scripted backends return; tests edit it before requesting."""
    return {"native": [], "fallback": None, "native_available": True}


@pytest.fixture(scope="function")
def client(backend_script: Dict[str, object], make_scanner) -> Generator[TestClient, None, None]:
    """Create test client with scripted decode backends."""
    def override_get_scanner():
        return make_scanner(
            native_texts=backend_script["native"],
            fallback_text=backend_script["fallback"],
            native_available=backend_script["native_available"],
        )

    def override_get_native_detector():
        return FakeNativeDetector(available=backend_script["native_available"])

    app.dependency_overrides[get_scanner] = override_get_scanner
    app.dependency_overrides[get_native_detector] = override_get_native_detector

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
