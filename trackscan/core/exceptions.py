"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# Module logger
logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.
    A decode that finds nothing is NOT an error; these codes cover only
    image-source and request problems.

    Usage:
        raise AppException("Image could not be decoded", "INVALID_IMAGE", 422)

    Error Codes:
        Image source:
            - INVALID_IMAGE (422)
            - IMAGE_TOO_LARGE (413)
            - INVALID_CROP (422)
            - CAMERA_UNAVAILABLE (503)

        General:
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "INVALID_IMAGE")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for errors that escape every endpoint.

    Logs the traceback and answers with the INTERNAL_ERROR envelope so
    clients always receive the same error shape.
    """
    logger.error(f"❌ Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    error = internal_error()
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_image(reason: str = "Image could not be decoded") -> AppException:
    """Create invalid image exception."""
    return AppException(reason, "INVALID_IMAGE", 422)


def image_too_large(size: int, limit: int, unit: str = "bytes") -> AppException:
    """Create image too large exception."""
    return AppException(
        f"Image exceeds maximum size of {limit} {unit}",
        "IMAGE_TOO_LARGE",
        413,
        {"size": size, "limit": limit, "unit": unit}
    )


def invalid_crop(reason: str) -> AppException:
    """Create invalid crop rectangle exception."""
    return AppException(
        f"Invalid crop rectangle: {reason}",
        "INVALID_CROP",
        422,
        {"reason": reason}
    )


def camera_unavailable(camera_index: int) -> AppException:
    """Create camera unavailable exception."""
    return AppException(
        f"Cannot open camera {camera_index}",
        "CAMERA_UNAVAILABLE",
        503,
        {"camera_index": camera_index}
    )


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
