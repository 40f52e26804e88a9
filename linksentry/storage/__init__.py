"""Storage modules for LinkSentry."""

from .database import Database

__all__ = ["Database"]
