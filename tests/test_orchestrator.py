"""
==============================================================================
Decode Orchestrator Tests
==============================================================================

Tests for symbol selection and the variant x backend search.

==============================================================================
"""

import threading

import numpy as np

from conftest import FakeFallbackDecoder, FakeNativeDetector, make_surface
from trackscan.scanner import DecodeBackend, DecodeOrchestrator, PixelSurface
from trackscan.scanner.backends import BASELINE_HINTS, PERMISSIVE_HINTS, DecodedSymbol
from trackscan.scanner.orchestrator import select_symbol
from trackscan.scanner.variants import CandidateVariant, VariantKind, default_variants


def symbols(*texts):
    return [DecodedSymbol(text=text) for text in texts]


class StopAfter:
    """Cancellation token that trips after a number of checks."""

    def __init__(self, checks: int):
        self._remaining = checks

    def is_set(self) -> bool:
        self._remaining -= 1
        return self._remaining < 0


class TestSelectSymbol:
    """Tests for choosing among native symbols."""

    def test_amazon_prefix_wins(self):
        """Test a TBA symbol beats a longer one."""
        chosen = select_symbol(symbols("9999999999999999999999", "TBA000000000001"))
        assert chosen.text == "TBA000000000001"

    def test_amazon_prefix_case_insensitive(self):
        """Test lowercase tba is preferred too."""
        chosen = select_symbol(symbols("9999999999999999999999", "tba000000000001"))
        assert chosen.text == "tba000000000001"

    def test_longest_wins(self):
        """Test the longest text is chosen without a TBA symbol."""
        chosen = select_symbol(symbols("12345", "1234567890", "123"))
        assert chosen.text == "1234567890"

    def test_tie_keeps_first(self):
        """Test equal lengths resolve to the first reported."""
        chosen = select_symbol(symbols("AAAA", "BBBB"))
        assert chosen.text == "AAAA"

    def test_empty(self):
        """Test an empty detection selects nothing."""
        assert select_symbol([]) is None


class TestAttemptDecode:
    """Tests for the sequential search."""

    def test_native_success_on_first_variant(self, noise_surface: PixelSurface):
        """Test a native hit stops the search immediately."""
        native = FakeNativeDetector(["TBA000000000001", "9999999999999999999999"])
        fallback = FakeFallbackDecoder()
        outcome = DecodeOrchestrator(native=native, fallback=fallback).attempt_decode(noise_surface)

        assert outcome.found
        assert outcome.result.text == "TBA000000000001"
        assert outcome.result.backend == DecodeBackend.NATIVE
        assert outcome.result.source_variant.name == "original"
        assert outcome.attempts == 1
        assert fallback.hints == []

    def test_fallback_hint_sequence(self, noise_surface: PixelSurface):
        """Test fallback is tried with baseline then permissive hints."""
        native = FakeNativeDetector()
        fallback = FakeFallbackDecoder("1Z999AA10123456784", when=lambda s, hints: hints.also_inverted)
        outcome = DecodeOrchestrator(native=native, fallback=fallback).attempt_decode(noise_surface)

        assert outcome.result.backend == DecodeBackend.FALLBACK
        assert outcome.result.text == "1Z999AA10123456784"
        assert fallback.hints == [BASELINE_HINTS, PERMISSIVE_HINTS]
        assert native.calls == 1

    def test_native_unavailable_skipped(self, noise_surface: PixelSurface):
        """Test an unavailable native detector is never called."""
        native = FakeNativeDetector(["ignored"], available=False)
        fallback = FakeFallbackDecoder("123456789012")
        outcome = DecodeOrchestrator(native=native, fallback=fallback).attempt_decode(noise_surface)

        assert outcome.result.backend == DecodeBackend.FALLBACK
        assert native.calls == 0

    def test_later_variant_succeeds(self, noise_surface: PixelSurface):
        """Test the search continues until a variant decodes."""
        native = FakeNativeDetector(["TBA123456789012"], when=lambda s: s.width == 128)
        outcome = DecodeOrchestrator(native=native, fallback=FakeFallbackDecoder()).attempt_decode(noise_surface)

        assert outcome.result.source_variant.name == "scale-2.0"
        assert outcome.attempts == 2

    def test_full_exhaustion(self, noise_surface: PixelSurface):
        """Test noise yields no result after every variant is tried."""
        native = FakeNativeDetector()
        fallback = FakeFallbackDecoder()
        orchestrator = DecodeOrchestrator(native=native, fallback=fallback)
        count = len(default_variants())

        outcome = orchestrator.attempt_decode(noise_surface)

        assert not outcome.found
        assert outcome.result is None
        assert outcome.attempts == count
        assert native.calls == count
        assert len(fallback.hints) == 2 * count

    def test_thin_strip_exhausts(self):
        """Test a 2x600 strip runs every variant without exhausting memory."""
        strip = make_surface(np.full((600, 2), 200, dtype=np.uint8))
        orchestrator = DecodeOrchestrator(native=FakeNativeDetector(), fallback=FakeFallbackDecoder())

        outcome = orchestrator.attempt_decode(strip)

        assert not outcome.found
        assert outcome.attempts == len(default_variants())

    def test_failing_transform_is_a_miss(self, noise_surface: PixelSurface):
        """Test a variant whose transform raises is skipped."""
        variants = [
            CandidateVariant.of("rotate-45", VariantKind.ROTATE, degrees=45),
            CandidateVariant.of("original", VariantKind.ORIGINAL),
        ]
        native = FakeNativeDetector(["TBA123456789012"])
        orchestrator = DecodeOrchestrator(native=native, fallback=FakeFallbackDecoder(), variants=variants)

        outcome = orchestrator.attempt_decode(noise_surface)

        assert outcome.result.source_variant.name == "original"
        assert outcome.attempts == 2
        assert native.calls == 1


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_start(self, noise_surface: PixelSurface):
        """Test a set token prevents any attempt."""
        native = FakeNativeDetector(["TBA123456789012"])
        cancel = threading.Event()
        cancel.set()

        outcome = DecodeOrchestrator(native=native, fallback=FakeFallbackDecoder()).attempt_decode(
            noise_surface, cancel=cancel
        )

        assert outcome.result is None
        assert outcome.attempts == 0
        assert native.calls == 0

    def test_cancelled_mid_search(self, noise_surface: PixelSurface):
        """Test the search stops at the next variant boundary."""
        native = FakeNativeDetector()
        orchestrator = DecodeOrchestrator(native=native, fallback=FakeFallbackDecoder())

        outcome = orchestrator.attempt_decode(noise_surface, cancel=StopAfter(3))

        assert outcome.result is None
        assert outcome.attempts == 3
        assert native.calls == 3
