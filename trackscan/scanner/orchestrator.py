"""
==============================================================================
Decode Orchestrator Module
==============================================================================

Sequential search over candidate variants and decode backends.

For each variant, in order:
    1. Native detector. If it reports symbols, pick one (Amazon TBA prefix
       first, otherwise the longest text, ties to the first) and stop.
    2. Fallback decoder with baseline hints (try_harder).
    3. Fallback decoder again with permissive hints (also_inverted).
    4. Next variant.

Running out of variants is a normal outcome: the orchestrator returns a
DecodeOutcome with no result and the number of variants attempted.

Variants are never decoded concurrently. Each transform is CPU-bound and
the first success in list order wins.

==============================================================================
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import cv2

from .backends import (
    BASELINE_HINTS,
    PERMISSIVE_HINTS,
    DecodedSymbol,
    FallbackDecoder,
    NativeDetector,
)
from .surface import PixelSurface
from .variants import CandidateVariant, default_variants


# Module logger
logger = logging.getLogger(__name__)

AMAZON_PREFIX = re.compile(r"TBA\d+", re.IGNORECASE)


class DecodeBackend(str, enum.Enum):
    """Which backend produced a result."""

    NATIVE = "native"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        return self.value


class CancellationToken(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class DecodeAttemptResult:
    """Successful decode of one variant."""

    text: str
    source_variant: CandidateVariant
    backend: DecodeBackend


@dataclass(frozen=True)
class DecodeOutcome:
    """
    Result of a full orchestrator pass.

    Attributes:
        result: The successful attempt, or None when every variant missed
        attempts: Number of variants tried
    """

    result: Optional[DecodeAttemptResult]
    attempts: int

    @property
    def found(self) -> bool:
        return self.result is not None


def select_symbol(symbols: Sequence[DecodedSymbol]) -> Optional[DecodedSymbol]:
    """
    Choose one symbol from a native detection.

    Any symbol starting with TBA<digits> wins regardless of length;
    otherwise the longest text, ties going to the first reported.
    """
    if not symbols:
        return None

    for symbol in symbols:
        if AMAZON_PREFIX.match(symbol.text):
            return symbol

    best = symbols[0]
    for symbol in symbols[1:]:
        if symbol.length > best.length:
            best = symbol
    return best


class DecodeOrchestrator:
    """
    Drives variant transforms through the native and fallback backends.

    Attributes:
        variants: Ordered candidate list
        native: Native detector capability
        fallback: Fallback decoder capability

    Example:
        >>> orchestrator = DecodeOrchestrator()
        >>> outcome = orchestrator.attempt_decode(surface)
        >>> if outcome.found:
        ...     print(outcome.result.text)
    """

    def __init__(
        self,
        native: Optional[NativeDetector] = None,
        fallback: Optional[FallbackDecoder] = None,
        variants: Optional[Sequence[CandidateVariant]] = None,
    ) -> None:
        self._native = native if native is not None else NativeDetector()
        self._fallback = fallback if fallback is not None else FallbackDecoder()
        self._variants = tuple(variants) if variants is not None else tuple(default_variants())

        if not self._native.available:
            logger.info("Native detector unavailable; using fallback decoder only")

    @property
    def variants(self) -> Sequence[CandidateVariant]:
        return self._variants

    @property
    def native(self) -> NativeDetector:
        return self._native

    @property
    def fallback(self) -> FallbackDecoder:
        return self._fallback

    def _try_variant(self, view: PixelSurface, variant: CandidateVariant) -> Optional[DecodeAttemptResult]:
        """Run both backends against one transformed surface."""
        if self._native.available:
            symbol = select_symbol(self._native.detect(view))
            if symbol is not None:
                return DecodeAttemptResult(symbol.text, variant, DecodeBackend.NATIVE)

        for hints in (BASELINE_HINTS, PERMISSIVE_HINTS):
            symbol = self._fallback.decode(view, hints)
            if symbol is not None:
                return DecodeAttemptResult(symbol.text, variant, DecodeBackend.FALLBACK)

        return None

    def attempt_decode(
        self,
        surface: PixelSurface,
        cancel: Optional[CancellationToken] = None,
    ) -> DecodeOutcome:
        """
        Search the variant list until one decodes.

        Args:
            surface: Source image
            cancel: Optional token; when set, the search stops before the
                next variant and reports no result

        Returns:
            DecodeOutcome with the first successful attempt or None
        """
        attempts = 0

        for index, variant in enumerate(self._variants, start=1):
            if cancel is not None and cancel.is_set():
                logger.debug(f"Decode cancelled after {attempts} variants")
                break

            attempts += 1
            try:
                view = variant.apply(surface)
            except (ValueError, cv2.error) as e:
                logger.debug(f"Variant {index}/{len(self._variants)} ({variant.name}) skipped: {e}")
                continue

            result = self._try_variant(view, variant)
            if result is not None:
                logger.info(
                    f"✅ Decoded with variant {index}/{len(self._variants)} "
                    f"({variant.name}, {result.backend}): {result.text!r}"
                )
                return DecodeOutcome(result=result, attempts=attempts)

            logger.debug(f"Variant {index}/{len(self._variants)} ({variant.name}) failed")

        logger.info(f"No barcode found after {attempts} attempts")
        return DecodeOutcome(result=None, attempts=attempts)
