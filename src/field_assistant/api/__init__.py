"""FastAPI application for the Field Assistant chat broker."""

from .main import create_app

__all__ = ["create_app"]
