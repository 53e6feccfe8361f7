"""
Application Layer

FastAPI surface of the directory cache: page data routes and admin cache
routes. Build the app with `create_app(data_source)`.
"""

from directory_cache.application.app import create_app

__all__ = ["create_app"]
