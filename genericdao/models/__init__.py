"""
Declarative base and mixins for entities managed through the DAOs.
"""

from .base import Base, CreatedAtMixin

__all__ = [
    "Base",
    "CreatedAtMixin",
]
