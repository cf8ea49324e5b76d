"""DM Ads Dashboard - API Module.

This module provides the FastAPI application for the
dashboard REST API.
"""

from .main import create_app

__all__ = ["create_app"]
