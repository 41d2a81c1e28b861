"""
Database Models
===============
SQLAlchemy ORM models for the travel spots backend.
"""

from backend.models.base import Base
from backend.models.usage import DailyCost

__all__ = [
    "Base",
    "DailyCost",
]
