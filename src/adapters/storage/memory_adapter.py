"""In-Memory Document Store Adapter.

This adapter implements the DocumentStorePort contract over plain Python
collections, optionally loaded from a directory of ``<Collection>.json``
files (each holding a JSON array of documents). It serves offline exports of
database dumps and tests.

Architecture:
    - Implements DocumentStorePort and SearchIndexPort (Hexagonal Architecture)
    - Query semantics follow MongoDB for the few operators the export uses:
      inclusive string range on ``date``, ``$in`` on ``id``, dotted-path
      equality that matches any element of an array
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional

from src.adapters.storage.validation import parse_document, parse_documents
from src.domain.documents import COLLECTION_NAMES, Composition, DOCUMENT_MODELS, FhirDocument
from src.domain.ports import (
    CompositionCursor,
    DocumentStorePort,
    Result,
    SearchIndexPort,
    StoreError,
)

logger = logging.getLogger(__name__)


def field_values(document: Any, path: str) -> list[Any]:
    """All values found at a dotted path, descending into arrays."""
    values = [document]
    for key in path.split("."):
        next_values = []
        for value in values:
            items = value if isinstance(value, list) else [value]
            for item in items:
                if isinstance(item, dict) and key in item:
                    next_values.append(item[key])
        values = next_values
    flattened = []
    for value in values:
        flattened.extend(value if isinstance(value, list) else [value])
    return flattened


class InMemoryCompositionCursor(CompositionCursor):
    """Cursor over a snapshot of matching raw Compositions."""

    def __init__(self, raws: list[dict]):
        self._raws = raws
        self._position = 0

    def count(self) -> int:
        return len(self._raws)

    def __next__(self) -> Composition:
        if self._position >= len(self._raws):
            raise StopIteration
        raw = self._raws[self._position]
        self._position += 1
        return parse_document(COLLECTION_NAMES.COMPOSITION, raw)


class InMemoryDocumentStore(DocumentStorePort, SearchIndexPort):
    """Document store over in-memory collections.

    Parameters:
        collections: Collection name to list of raw documents

    Example Usage:
        ```python
        store = InMemoryDocumentStore.from_directory("dump/")
        with store:
            cursor = store.find_compositions("2022-01-01T00:00:00.000Z", "2022-01-31T23:59:59.000Z")
        ```
    """

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None):
        self._collections: dict[str, list[dict]] = {
            name: list(documents) for name, documents in (collections or {}).items()
        }
        self.search_documents: dict[str, dict] = {}
        self._closed = False

    @classmethod
    def from_directory(cls, path: str) -> 'InMemoryDocumentStore':
        """Load every known collection from ``<path>/<Collection>.json``.

        Raises:
            StoreError: If the directory is missing or a file is not a JSON array
        """
        directory = Path(path)
        if not directory.is_dir():
            raise StoreError(f"Database directory does not exist: {directory}", operation="connect")

        collections: dict[str, list[dict]] = {}
        for name in DOCUMENT_MODELS:
            file_path = directory / f"{name}.json"
            if not file_path.exists():
                continue
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    documents = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StoreError(f"Failed to load {file_path}: {e}", operation="connect") from e
            if not isinstance(documents, list):
                raise StoreError(f"{file_path} must contain a JSON array", operation="connect")
            collections[name] = documents
            logger.debug(f"Loaded {len(documents)} {name} document(s) from {file_path}")

        logger.info(f"Loaded in-memory store from {directory} ({len(collections)} collection(s))")
        return cls(collections)

    def add(self, collection: str, *documents: dict) -> None:
        self._collections.setdefault(collection, []).extend(documents)

    def _documents(self, collection: str) -> list[dict]:
        if self._closed:
            raise StoreError("Store is closed", operation="find", details={"collection": collection})
        return self._collections.get(collection, [])

    def find_compositions(self, start: str, end: str) -> CompositionCursor:
        matches = [
            raw for raw in self._documents(COLLECTION_NAMES.COMPOSITION)
            if isinstance(raw.get("date"), str) and start <= raw["date"] <= end
        ]
        return InMemoryCompositionCursor(matches)

    def find_by_ids(self, collection: str, ids: list[str], skip_invalid: bool = False) -> list[FhirDocument]:
        documents = self._documents(collection)
        if ids:
            wanted = set(ids)
            documents = [raw for raw in documents if raw.get("id") in wanted]
        return parse_documents(collection, documents, skip_invalid=skip_invalid)

    def find_by_field(self, collection: str, field: str, value: str) -> list[FhirDocument]:
        matches = [raw for raw in self._documents(collection) if value in field_values(raw, field)]
        return parse_documents(collection, matches)

    def upsert_search_document(self, composition_id: str, body: dict) -> Result[str]:
        document = self.search_documents.setdefault(composition_id, {"compositionId": composition_id})
        document.update(copy.deepcopy(body))
        return Result.success_result(composition_id)

    def close(self) -> None:
        self._closed = True
