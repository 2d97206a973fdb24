"""
Paddock Data API.

FastAPI application serving championship data from the record store.

Usage:
    uvicorn paddock_data.api.main:create_app --factory
"""

from .main import create_app

__all__ = ["create_app"]
