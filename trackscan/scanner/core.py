"""
==============================================================================
Barcode Scanner Core Module
==============================================================================

Scanning session: one object owning the decode pipeline, the stability gate
and the live-loop state for a single user session.

Modes:
------
- Single image (file upload / manual crop): one full decode pass, the
  result is returned whether or not it is a tracking number.
- Live video: frames are polled at a fixed interval, each frame gets one
  full decode pass, and only stable tracking numbers are emitted.

Session States:
---------------
    IDLE ──start_live()──► LIVE_CAMERA ──stop()──► IDLE
      │                                              ▲
      └──scan_surface()──► STATIC_PREVIEW ──reset()──┘

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union

import cv2
import numpy as np
from pydantic import BaseModel, Field

from trackscan.config import Settings, get_settings
from trackscan.core import exceptions
from trackscan.tracking import TrackingMatch, extract_tracking_number

from .backends import FallbackDecoder, NativeDetector
from .orchestrator import DecodeOrchestrator, DecodeOutcome
from .stability import StabilityGate
from .surface import PixelSurface
from .transforms import crop_rect
from .variants import default_variants


# Module logger
logger = logging.getLogger(__name__)

FrameSource = Callable[[], Optional[Union[PixelSurface, np.ndarray]]]
EmitCallback = Callable[["ScanResult"], None]


class ScanState(str, enum.Enum):
    """Session state."""

    IDLE = "idle"
    LIVE_CAMERA = "live-camera"
    STATIC_PREVIEW = "static-preview"

    def __str__(self) -> str:
        return self.value


class ScanResult(BaseModel):
    """
    Payload delivered to the result consumer.

    Attributes:
        found: Whether any barcode text was decoded
        raw_text: Decoded text, exactly as the backend returned it
        tracking: Carrier match for raw_text, if any
        variant: Name of the variant that decoded
        backend: Backend that decoded ("native" / "fallback")
        attempts: Variants tried
    """

    found: bool = False
    raw_text: Optional[str] = None
    tracking: Optional[TrackingMatch] = None
    variant: Optional[str] = None
    backend: Optional[str] = None
    attempts: int = Field(default=0, ge=0)

    @classmethod
    def from_outcome(cls, outcome: DecodeOutcome) -> ScanResult:
        if outcome.result is None:
            return cls(found=False, attempts=outcome.attempts)

        text = outcome.result.text
        return cls(
            found=True,
            raw_text=text,
            tracking=extract_tracking_number(text),
            variant=outcome.result.source_variant.name,
            backend=outcome.result.backend.value,
            attempts=outcome.attempts,
        )


class BarcodeScanner:
    """
    Tracking-number scanner session.

    Attributes:
        orchestrator: Decode pipeline
        gate: Stability gate used in live mode
        state: Current session state

    Example:
        >>> scanner = BarcodeScanner.from_settings()
        >>> result = scanner.scan_image(Path("label.jpg"))
        >>> if result.tracking:
        ...     print(result.tracking.carrier, result.tracking.number)
    """

    def __init__(
        self,
        orchestrator: Optional[DecodeOrchestrator] = None,
        gate: Optional[StabilityGate] = None,
        camera_index: int = 0,
        live_interval_seconds: float = 0.4,
    ) -> None:
        self._orchestrator = orchestrator or DecodeOrchestrator()
        self._gate = gate or StabilityGate()
        self._camera_index = camera_index
        self._interval = live_interval_seconds
        self._cap = None
        self._stop = threading.Event()
        self._state = ScanState.IDLE

        logger.debug(f"Scanner created (camera {camera_index})")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> BarcodeScanner:
        """Build a session wired from application settings."""
        settings = settings or get_settings()
        orchestrator = DecodeOrchestrator(
            native=NativeDetector(enabled=settings.native_enabled),
            fallback=FallbackDecoder(enabled=settings.fallback_enabled),
            variants=default_variants(settings.band_fraction),
        )
        gate = StabilityGate(
            stable_frames=settings.stable_frames,
            cooldown_ms=settings.cooldown_ms,
        )
        return cls(
            orchestrator=orchestrator,
            gate=gate,
            camera_index=settings.camera_index,
            live_interval_seconds=settings.live_interval_seconds,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def orchestrator(self) -> DecodeOrchestrator:
        return self._orchestrator

    @property
    def gate(self) -> StabilityGate:
        return self._gate

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def is_active(self) -> bool:
        """True while a live session is running."""
        return self._state == ScanState.LIVE_CAMERA and not self._stop.is_set()

    # =========================================================================
    # SINGLE IMAGE METHODS
    # =========================================================================

    def scan_surface(self, surface: PixelSurface) -> ScanResult:
        """
        Run one full decode pass on a still image.

        Returns:
            ScanResult; found is False when every variant missed
        """
        self._state = ScanState.STATIC_PREVIEW
        result = ScanResult.from_outcome(self._orchestrator.attempt_decode(surface))

        if result.tracking:
            logger.info(f"Found {result.tracking.carrier} tracking number: {result.tracking.number}")
        elif result.found:
            logger.info(f"Scanned text not recognized as tracking number: {result.raw_text!r}")

        return result

    def scan_crop(self, surface: PixelSurface, x: int, y: int, width: int, height: int) -> ScanResult:
        """Decode a user-selected rectangle of a still image."""
        try:
            region = crop_rect(surface, x, y, width, height)
        except ValueError as e:
            raise exceptions.invalid_crop(str(e)) from e

        logger.info(f"Processing crop area: {x}, {y}, {width}x{height}")
        return self.scan_surface(region)

    def scan_image(self, image_path: Path) -> ScanResult:
        """
        Scan a static image file.

        Raises:
            AppException: INVALID_IMAGE if the file is missing or unreadable
        """
        if not image_path.exists():
            logger.error(f"Image not found: {image_path}")
            raise exceptions.invalid_image(f"Image not found: {image_path}")

        frame = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
        if frame is None:
            logger.error(f"Could not read image: {image_path}")
            raise exceptions.invalid_image(f"Could not read image: {image_path}")

        try:
            surface = PixelSurface.from_frame(frame)
        except ValueError as e:
            logger.error(f"Unsupported image format {frame.dtype} {frame.shape}: {image_path}")
            raise exceptions.invalid_image(f"Unsupported image format: {image_path}") from e

        return self.scan_surface(surface)

    # =========================================================================
    # LIVE METHODS
    # =========================================================================

    def start_live(self) -> None:
        """Enter live mode with a fresh stability state."""
        self._gate.reset()
        self._stop.clear()
        self._state = ScanState.LIVE_CAMERA
        logger.info("📷 Live scanning started")

    def stop(self) -> None:
        """Leave live mode; the loop exits at its next check point."""
        self._stop.set()
        self._gate.reset()
        self._state = ScanState.IDLE
        logger.info("🛑 Live scanning stopped")

    def reset(self) -> None:
        """Return to IDLE from any state."""
        self.stop()
        self.close()

    def process_frame(self, frame: Union[PixelSurface, np.ndarray], now_ms: Optional[float] = None) -> Optional[ScanResult]:
        """
        One live iteration: decode, extract, vote.

        Args:
            frame: Camera frame (surface or OpenCV array)
            now_ms: Clock override for the cooldown, in milliseconds

        Returns:
            ScanResult when the stability gate emits, else None
        """
        surface = frame if isinstance(frame, PixelSurface) else PixelSurface.from_frame(frame)
        outcome = self._orchestrator.attempt_decode(surface, cancel=self._stop)

        # Stopped mid-decode: leave the gate untouched
        if self._stop.is_set():
            return None

        result = ScanResult.from_outcome(outcome)
        if result.found:
            logger.debug(f"Live frame detected text {result.raw_text!r}")

        if self._gate.evaluate(result.tracking, now_ms):
            return result
        return None

    def run_live(
        self,
        frame_source: FrameSource,
        on_emit: EmitCallback,
        max_iterations: int = 0,
    ) -> int:
        """
        Poll a frame source until stopped.

        The stop flag is checked before each iteration and after each
        decode. A source returning None ends the session.

        Args:
            frame_source: Returns the next frame, or None when unavailable
            on_emit: Called with every stable tracking result
            max_iterations: Stop after this many frames (0 = until stopped)

        Returns:
            Number of frames processed
        """
        self.start_live()
        iterations = 0
        emitted = 0

        try:
            while not self._stop.is_set():
                frame = frame_source()
                if frame is None:
                    logger.warning("Failed to read frame")
                    break

                iterations += 1
                result = self.process_frame(frame)
                if self._stop.is_set():
                    break

                if result is not None:
                    emitted += 1
                    on_emit(result)
                elif iterations % 5 == 0:
                    logger.debug(f"Live attempt {iterations}: no emission")

                if max_iterations and iterations >= max_iterations:
                    break

                self._stop.wait(self._interval)
        finally:
            if self._state == ScanState.LIVE_CAMERA:
                self.stop()

        logger.info(f"📊 Live session: {iterations} frames, {emitted} emissions")
        return iterations

    def scan_camera_live(self, on_emit: EmitCallback, duration_seconds: int = 0) -> int:
        """
        Live scanning from a local camera.

        Args:
            on_emit: Called with every stable tracking result
            duration_seconds: How long to scan (0 = until stop())

        Returns:
            Number of frames processed

        Raises:
            AppException: CAMERA_UNAVAILABLE if the device cannot be opened
        """
        self._cap = cv2.VideoCapture(self._camera_index)

        if not self._cap.isOpened():
            logger.error(f"Cannot open camera {self._camera_index}")
            self.close()
            raise exceptions.camera_unavailable(self._camera_index)

        timer = None
        if duration_seconds > 0:
            timer = threading.Timer(duration_seconds, self.stop)
            timer.daemon = True
            timer.start()

        def read_frame() -> Optional[np.ndarray]:
            ret, frame = self._cap.read()
            return frame if ret else None

        try:
            return self.run_live(read_frame, on_emit)
        finally:
            if timer is not None:
                timer.cancel()
            self.close()

    def close(self) -> None:
        """Release the camera if one is open."""
        if self._cap:
            self._cap.release()
            self._cap = None
            logger.debug("Camera released")
