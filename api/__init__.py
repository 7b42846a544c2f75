"""
HTTP API for the notifier.

This package provides a single FastAPI application that exposes:
- Stored notifications (list, read, mark read, delete)
- An endpoint to emit catalog events onto the bus
- The delivery sink history
"""

from api.main import app

__all__ = ["app"]
