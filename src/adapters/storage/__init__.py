"""Storage adapters for VS-Export.

This module contains the document store adapters that implement the
DocumentStorePort interface for reading the Hearth collections.
"""

from src.adapters.storage.memory_adapter import InMemoryDocumentStore
from src.adapters.storage.mongo_adapter import MongoDocumentStore

__all__ = ["InMemoryDocumentStore", "MongoDocumentStore"]
