"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for live tracking-number scanning.

Handlers:
---------
- scanner: Frame-by-frame decoding with stability voting

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
