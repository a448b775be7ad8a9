"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Live tracking-number scanning over a WebSocket connection.

Protocol:
---------
1. Client connects; server replies {"type": "ready"}
2. Client sends frames as {"type": "frame", "frame": "<base64 image>"}
   at its polling interval (400 ms by default)
3. Each frame gets one full decode pass; when the same tracking number
   has been read on enough consecutive frames the server sends
   {"type": "tracking", "frame_id", "raw_text", "tracking"}
4. Client sends {"type": "stop"} (or disconnects) to end the session

Frames are handled strictly one at a time: the next message is not read
until the current decode pass has finished.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool

from trackscan.core.dependencies import get_image_decoder, get_scanner
from trackscan.core.exceptions import AppException
from trackscan.scanner import BarcodeScanner
from trackscan.utils.image_io import ImagePayloadDecoder


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ScannerWebSocketHandler:
    """
    Handler for live scanning WebSocket connections.

    Manages the lifecycle of a scanning session:
    - Session start / stop
    - Frame decoding
    - Stable tracking number reporting
    """

    def __init__(self, websocket: WebSocket, scanner: BarcodeScanner, decoder: ImagePayloadDecoder):
        self._websocket = websocket
        self._scanner = scanner
        self._decoder = decoder

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def handle_frame(self, data: dict, frame_count: int) -> None:
        """Handle frame message from client."""
        frame = data.get("frame", "")
        if not isinstance(frame, str):
            await self.send_error("Frame must be a base64 string", "INVALID_MESSAGE")
            return

        try:
            surface = self._decoder.decode(frame)
        except AppException as e:
            logger.warning(f"Frame {frame_count} rejected: {e.message}")
            await self.send_error(e.message, e.code)
            return

        result = await run_in_threadpool(self._scanner.process_frame, surface)

        if result is not None:
            await self._websocket.send_json({
                "type": "tracking",
                "frame_id": frame_count,
                "raw_text": result.raw_text,
                "tracking": result.tracking.model_dump(mode="json"),
            })

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        self._scanner.start_live()
        await self._websocket.send_json({"type": "ready"})

        try:
            frame_count = 0

            while self._scanner.is_active:
                try:
                    data = await self._websocket.receive_json()
                except ValueError:
                    await self.send_error("Message is not valid JSON", "INVALID_MESSAGE")
                    continue

                if not isinstance(data, dict):
                    await self.send_error("Message must be a JSON object", "INVALID_MESSAGE")
                    continue

                if data.get("type") == "frame":
                    frame_count += 1
                    await self.handle_frame(data, frame_count)

                elif data.get("type") == "stop":
                    logger.info("🛑 Client requested stop")
                    break

                else:
                    await self.send_error(f"Unknown message type: {data.get('type')}", "UNKNOWN_MESSAGE")

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        finally:
            self._scanner.stop()
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    scanner: BarcodeScanner = Depends(get_scanner),
    decoder: ImagePayloadDecoder = Depends(get_image_decoder),
):
    """Live tracking-number scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, scanner, decoder)
    await handler.run()
