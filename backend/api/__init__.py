"""
VegasVault API package.

Provides the FastAPI application serving checkout and billing webhooks.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
