"""
==============================================================================
Utilities Package
==============================================================================

Utility classes for the application.

Modules:
--------
- image_io: Base64 image payload decoding

==============================================================================
"""

from .image_io import ImagePayloadDecoder

__all__ = [
    "ImagePayloadDecoder",
]
