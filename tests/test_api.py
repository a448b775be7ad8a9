"""
==============================================================================
API Integration Tests
==============================================================================

Tests for REST API endpoints and the live scanning WebSocket.

==============================================================================
"""

import base64

from fastapi.testclient import TestClient

from trackscan.core.dependencies import get_image_decoder
from trackscan.main import app
from trackscan.utils.image_io import ImagePayloadDecoder


class CrashingDecoder(ImagePayloadDecoder):
    """Payload decoder that fails with an unexpected error."""

    def decode(self, payload: str):
        raise RuntimeError("decoder crashed")


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test health check returns status."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["native"] == "available"
        assert data["components"]["fallback"] == "available"

    def test_health_native_unavailable(self, client: TestClient, backend_script: dict):
        """Test a missing native detector is reported but not fatal."""
        backend_script["native_available"] = False
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["components"]["native"] == "unavailable"
        assert response.json()["status"] == "healthy"

    def test_readiness_probe(self, client: TestClient):
        """Test readiness probe."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_probe(self, client: TestClient):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestScanEndpoints:
    """Tests for still-image scanning."""

    def test_scan_tracking_number(self, client: TestClient, backend_script: dict, encode_png, label_frame):
        """Test a decoded tracking number is returned with its carrier."""
        backend_script["native"] = ["1Z999AA10123456784"]
        response = client.post("/api/v1/scan", json={"image": encode_png(label_frame)})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["found"] is True
        assert data["raw_text"] == "1Z999AA10123456784"
        assert data["tracking"] == {"carrier": "UPS", "number": "1Z999AA10123456784"}
        assert data["variant"] == "original"
        assert data["backend"] == "native"
        assert data["attempts"] == 1

    def test_scan_data_url(self, client: TestClient, backend_script: dict, encode_png, label_frame):
        """Test canvas data URLs are accepted."""
        backend_script["fallback"] = "TBA123456789012"
        image = "data:image/png;base64," + encode_png(label_frame)
        response = client.post("/api/v1/scan", json={"image": image})

        assert response.status_code == 200
        assert response.json()["tracking"]["carrier"] == "Amazon"
        assert response.json()["backend"] == "fallback"

    def test_scan_no_result(self, client: TestClient, encode_png, label_frame):
        """Test an undecodable image is a successful empty result."""
        response = client.post("/api/v1/scan", json={"image": encode_png(label_frame)})

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is False
        assert data["tracking"] is None
        assert data["attempts"] == 18

    def test_scan_crop(self, client: TestClient, backend_script: dict, encode_png, label_frame):
        """Test a crop rectangle is honoured."""
        backend_script["native"] = ["123456789012"]
        response = client.post("/api/v1/scan", json={
            "image": encode_png(label_frame),
            "crop": {"x": 5, "y": 15, "width": 70, "height": 30},
        })

        assert response.status_code == 200
        assert response.json()["tracking"]["carrier"] == "FedEx"

    def test_scan_crop_outside(self, client: TestClient, encode_png, label_frame):
        """Test a crop outside the image is rejected."""
        response = client.post("/api/v1/scan", json={
            "image": encode_png(label_frame),
            "crop": {"x": 500, "y": 500, "width": 10, "height": 10},
        })

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_CROP"

    def test_scan_invalid_base64(self, client: TestClient):
        """Test malformed base64 is rejected."""
        response = client.post("/api/v1/scan", json={"image": "not*base64!"})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "INVALID_IMAGE"

    def test_scan_not_an_image(self, client: TestClient):
        """Test valid base64 of non-image bytes is rejected."""
        payload = base64.b64encode(b"definitely not a picture").decode("ascii")
        response = client.post("/api/v1/scan", json={"image": payload})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_IMAGE"

    def test_scan_image_too_large(self, client: TestClient, encode_png, label_frame):
        """Test uploads above the limit are rejected."""
        app.dependency_overrides[get_image_decoder] = lambda: ImagePayloadDecoder(max_bytes=16)
        response = client.post("/api/v1/scan", json={"image": encode_png(label_frame)})

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "IMAGE_TOO_LARGE"

    def test_scan_image_too_many_pixels(self, client: TestClient, encode_png, label_frame):
        """Test a small file that expands past the pixel limit is rejected."""
        app.dependency_overrides[get_image_decoder] = lambda: ImagePayloadDecoder(
            max_bytes=1024 * 1024, max_pixels=1000
        )
        response = client.post("/api/v1/scan", json={"image": encode_png(label_frame)})

        assert response.status_code == 413
        error = response.json()["error"]
        assert error["code"] == "IMAGE_TOO_LARGE"
        assert error["details"] == {"size": 4800, "limit": 1000, "unit": "pixels"}

    def test_unexpected_error_envelope(self, client: TestClient, encode_png, label_frame):
        """Test an unanticipated failure is answered with INTERNAL_ERROR."""
        app.dependency_overrides[get_image_decoder] = lambda: CrashingDecoder(max_bytes=1024 * 1024)

        with TestClient(app, raise_server_exceptions=False) as raw_client:
            response = raw_client.post("/api/v1/scan", json={"image": encode_png(label_frame)})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"

    def test_scan_missing_image(self, client: TestClient):
        """Test a request without an image fails validation."""
        response = client.post("/api/v1/scan", json={})
        assert response.status_code == 422


class TestTrackingEndpoints:
    """Tests for text classification endpoints."""

    def test_extract(self, client: TestClient):
        """Test raw text is classified."""
        response = client.post("/api/v1/tracking/extract", json={"text": "C12345678901234"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["tracking"] == {"carrier": "OnTrac", "number": "C12345678901234"}

    def test_extract_no_match(self, client: TestClient):
        """Test unmatched text returns a null tracking number."""
        response = client.post("/api/v1/tracking/extract", json={"text": "hello"})

        assert response.status_code == 200
        assert response.json()["tracking"] is None

    def test_carriers(self, client: TestClient):
        """Test the carrier table is listed in priority order."""
        response = client.get("/api/v1/tracking/carriers")

        assert response.status_code == 200
        carriers = [row["carrier"] for row in response.json()["carriers"]]
        assert carriers == ["UPS", "FedEx", "USPS", "DHL", "Amazon", "OnTrac"]


class TestScannerWebSocket:
    """Tests for live scanning over WebSocket."""

    def test_stable_number_emitted(self, client: TestClient, backend_script: dict, encode_png, label_frame):
        """Test a tracking message follows the third matching frame."""
        backend_script["native"] = ["TBA123456789012"]
        frame = encode_png(label_frame)

        with client.websocket_connect("/ws/scan") as websocket:
            assert websocket.receive_json() == {"type": "ready"}

            for _ in range(3):
                websocket.send_json({"type": "frame", "frame": frame})

            message = websocket.receive_json()
            assert message["type"] == "tracking"
            assert message["frame_id"] == 3
            assert message["raw_text"] == "TBA123456789012"
            assert message["tracking"] == {"carrier": "Amazon", "number": "TBA123456789012"}

            websocket.send_json({"type": "stop"})

    def test_bad_frame_reports_error(self, client: TestClient):
        """Test an undecodable frame produces an error message."""
        with client.websocket_connect("/ws/scan") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "frame", "frame": "???"})

            message = websocket.receive_json()
            assert message["type"] == "error"
            assert message["code"] == "INVALID_IMAGE"

            websocket.send_json({"type": "stop"})

    def test_unknown_message(self, client: TestClient):
        """Test unknown message types are reported."""
        with client.websocket_connect("/ws/scan") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "zoom"})

            assert websocket.receive_json()["code"] == "UNKNOWN_MESSAGE"

            websocket.send_json({"type": "stop"})

    def test_non_object_message(self, client: TestClient):
        """Test a JSON array is answered with an error and the session survives."""
        with client.websocket_connect("/ws/scan") as websocket:
            websocket.receive_json()
            websocket.send_json([1, 2])

            message = websocket.receive_json()
            assert message["type"] == "error"
            assert message["code"] == "INVALID_MESSAGE"

            websocket.send_json({"type": "zoom"})
            assert websocket.receive_json()["code"] == "UNKNOWN_MESSAGE"

            websocket.send_json({"type": "stop"})

    def test_malformed_json(self, client: TestClient):
        """Test text that is not JSON is reported."""
        with client.websocket_connect("/ws/scan") as websocket:
            websocket.receive_json()
            websocket.send_text("{not json")

            assert websocket.receive_json()["code"] == "INVALID_MESSAGE"

            websocket.send_json({"type": "stop"})

    def test_non_string_frame(self, client: TestClient):
        """Test a frame field that is not a string is reported."""
        with client.websocket_connect("/ws/scan") as websocket:
            websocket.receive_json()
            websocket.send_json({"type": "frame", "frame": 42})

            assert websocket.receive_json()["code"] == "INVALID_MESSAGE"

            websocket.send_json({"type": "stop"})


def test_root(client: TestClient):
    """Test the service banner lists the live endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["live_scan"] == "/ws/scan"
