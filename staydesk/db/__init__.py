"""
Database declarative base - single source of truth for all models
"""

from .base import Base, TimestampMixin

__all__ = ["Base", "TimestampMixin"]
