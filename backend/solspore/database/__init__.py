"""
Database module initialization.
Exports database components for use throughout the application.
"""

from solspore.database.base import BaseDocument
from solspore.database.connection import Database

__all__ = [
    "BaseDocument",
    "Database",
]
