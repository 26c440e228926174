"""Catalog store abstraction layer.

Supports multiple persistence backends behind one contract:
- redis: key-value store
- sql: relational store via SQLAlchemy
- memory: in-process store for development and tests
"""

from .base import CatalogStore
from .factory import create_catalog_store
from .memory_store import InMemoryCatalogStore

__all__ = [
    "CatalogStore",
    "InMemoryCatalogStore",
    "create_catalog_store",
]
