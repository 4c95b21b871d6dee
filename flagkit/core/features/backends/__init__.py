"""
Feature flag store implementations.
"""

from .database import DatabaseFeatureStore
from .memory import MemoryFeatureStore

__all__ = [
    "DatabaseFeatureStore",
    "MemoryFeatureStore",
]
