"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check and backend availability
- scan: Still-image barcode scanning
- tracking: Text classification and carrier table

==============================================================================
"""

from . import health, scan, tracking

__all__ = ["health", "scan", "tracking"]
