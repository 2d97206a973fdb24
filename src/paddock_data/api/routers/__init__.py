"""API routers module."""

from . import cache, clubs

__all__ = ["cache", "clubs"]
