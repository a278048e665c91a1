"""Persistence layer: the store interface and its SQLite implementation."""

from .base import CatalogStore, NewPurchaseItem
from .sqlite import SqliteStore

__all__ = ["CatalogStore", "NewPurchaseItem", "SqliteStore"]
