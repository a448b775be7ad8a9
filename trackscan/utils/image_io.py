"""
==============================================================================
Image Payload Module
==============================================================================

Decoding of base64 image payloads received over HTTP and WebSocket.

Accepted Input:
--------------
- Plain base64 of an encoded image (PNG, JPEG, BMP, WebP, ...)
- A data URL ("data:image/png;base64,....") as produced by canvas.toDataURL()

==============================================================================
"""

from __future__ import annotations

import base64
import binascii
import logging

from trackscan.core import exceptions
from trackscan.scanner.surface import PixelSurface


# Module logger
logger = logging.getLogger(__name__)


class ImagePayloadDecoder:
    """
    Converts base64 image payloads to PixelSurfaces.

    Example:
        >>> decoder = ImagePayloadDecoder(max_bytes=10 * 1024 * 1024, max_pixels=16_000_000)
        >>> surface = decoder.decode(payload)
    """

    DATA_URL_MARKER = ";base64,"

    def __init__(self, max_bytes: int, max_pixels: int = 16_000_000) -> None:
        self._max_bytes = max_bytes
        self._max_pixels = max_pixels

    def to_bytes(self, payload: str) -> bytes:
        """
        Strip an optional data-URL prefix and base64-decode.

        Raises:
            AppException: INVALID_IMAGE for malformed base64,
                IMAGE_TOO_LARGE above the size limit
        """
        if not payload:
            raise exceptions.invalid_image("Image payload is empty")

        if payload.startswith("data:"):
            marker = payload.find(self.DATA_URL_MARKER)
            if marker < 0:
                raise exceptions.invalid_image("Data URL is not base64 encoded")
            payload = payload[marker + len(self.DATA_URL_MARKER):]

        # base64 expands 3 bytes to 4 characters
        estimated = len(payload) * 3 // 4
        if estimated > self._max_bytes:
            raise exceptions.image_too_large(estimated, self._max_bytes)

        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning(f"Malformed base64 image payload: {e}")
            raise exceptions.invalid_image("Image payload is not valid base64") from e

    def decode(self, payload: str) -> PixelSurface:
        """
        Decode a base64 image payload.

        Raises:
            AppException: INVALID_IMAGE when the bytes are not an image,
                IMAGE_TOO_LARGE above the pixel-count limit
        """
        data = self.to_bytes(payload)
        try:
            surface = PixelSurface.from_encoded(data)
        except ValueError as e:
            logger.warning(f"Undecodable image payload ({len(data)} bytes)")
            raise exceptions.invalid_image() from e

        # A small, highly compressed file can still expand to a huge raster
        pixels = surface.width * surface.height
        if pixels > self._max_pixels:
            logger.warning(f"Image {surface.width}x{surface.height} exceeds pixel limit")
            raise exceptions.image_too_large(pixels, self._max_pixels, unit="pixels")

        logger.debug(f"Image decoded: {surface.width}x{surface.height}")
        return surface
