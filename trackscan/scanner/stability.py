"""
==============================================================================
Stability Gate Module
==============================================================================

Consecutive-frame voting with a re-emit cooldown for live video scanning.

A tracking number is emitted only after the same candidate is read on
STABLE_FRAMES consecutive non-empty frames. Once emitted, the same number
is suppressed for COOLDOWN_MS, while a different stable number may emit
immediately.

==============================================================================
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

from trackscan.tracking import TrackingMatch


# Module logger
logger = logging.getLogger(__name__)

STABLE_FRAMES = 3
COOLDOWN_MS = 900


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class StabilityState:
    """Mutable voting state; touched only by StabilityGate."""

    previous_candidate: Optional[str] = None
    streak: int = 0
    last_emitted: Optional[str] = None
    cooldown_until: float = 0.0


class StabilityGate:
    """
    Debounces frame-by-frame tracking matches.

    Example:
        >>> gate = StabilityGate()
        >>> for match in frames:
        ...     if gate.evaluate(match):
        ...         publish(match)
    """

    def __init__(
        self,
        stable_frames: int = STABLE_FRAMES,
        cooldown_ms: float = COOLDOWN_MS,
    ) -> None:
        if stable_frames < 1:
            raise ValueError(f"stable_frames must be >= 1, got {stable_frames}")

        self._stable_frames = stable_frames
        self._cooldown_ms = cooldown_ms
        self._state = StabilityState()

    @property
    def state(self) -> StabilityState:
        return self._state

    def evaluate(self, match: Optional[TrackingMatch], now_ms: Optional[float] = None) -> bool:
        """
        Feed one frame's extraction result.

        Args:
            match: Extractor output for the frame, or None
            now_ms: Current time in milliseconds (monotonic clock by default)

        Returns:
            True when this frame's candidate should be emitted
        """
        state = self._state

        if match is None:
            state.streak = 0
            state.previous_candidate = None
            return False

        candidate = match.number
        if candidate == state.previous_candidate:
            state.streak += 1
        else:
            state.previous_candidate = candidate
            state.streak = 1

        if state.streak < self._stable_frames:
            return False

        now = monotonic_ms() if now_ms is None else now_ms
        if candidate != state.last_emitted or now > state.cooldown_until:
            state.last_emitted = candidate
            state.cooldown_until = now + self._cooldown_ms
            logger.info(f"📦 Stable tracking number: {candidate} ({match.carrier})")
            return True

        return False

    def reset(self) -> None:
        """Forget all voting and cooldown state."""
        self._state = StabilityState()
