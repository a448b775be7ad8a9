"""
==============================================================================
Scan Endpoints
==============================================================================

Still-image decoding: uploaded photos and manually cropped regions.

A request that decodes nothing is still a successful call; the response
carries found=false and the number of variants attempted.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from trackscan.core.dependencies import get_image_decoder, get_scanner
from trackscan.scanner import BarcodeScanner
from trackscan.schemas.scan import ScanRequest, ScanResponse
from trackscan.utils.image_io import ImagePayloadDecoder


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["Scan"])


class ScanController:
    """Controller for still-image scan operations."""

    def __init__(self, scanner: BarcodeScanner, decoder: ImagePayloadDecoder):
        self._scanner = scanner
        self._decoder = decoder

    def scan(self, request: ScanRequest) -> ScanResponse:
        """Decode the image, or the requested crop of it."""
        surface = self._decoder.decode(request.image)
        logger.info(f"Processing image {surface.width}x{surface.height}")

        if request.crop:
            crop = request.crop
            result = self._scanner.scan_crop(surface, crop.x, crop.y, crop.width, crop.height)
        else:
            result = self._scanner.scan_surface(surface)

        if not result.found:
            logger.info(f"No barcode found after {result.attempts} attempts")

        return ScanResponse(**result.model_dump())


@router.post("", response_model=ScanResponse)
async def scan_image(
    request: ScanRequest,
    scanner: BarcodeScanner = Depends(get_scanner),
    decoder: ImagePayloadDecoder = Depends(get_image_decoder),
):
    """
    Decode a barcode from a base64 image.

    Tries every image variant against both backends until one yields text,
    then classifies the text as a carrier tracking number.
    """
    controller = ScanController(scanner, decoder)
    return await run_in_threadpool(controller.scan, request)
