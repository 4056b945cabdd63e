"""
API Module

FastAPI application exposing action execution over HTTP.
"""

from .server import create_app

__all__ = ["create_app"]
