"""
Panel API package.

Provides the FastAPI application for invitation finalization and sessions.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
