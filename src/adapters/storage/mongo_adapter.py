"""MongoDB Document Store Adapter.

This adapter implements the DocumentStorePort contract over the FHIR-shaped
collections of a Hearth MongoDB database, plus the SearchIndexPort used to
write assignment updates.

Security Impact:
    - The connection string is never logged
    - The export path only issues reads

Architecture:
    - Implements DocumentStorePort and SearchIndexPort (Hexagonal Architecture)
    - Documents are validated into domain models before they leave the adapter
    - Every query runs under a bounded RetryPolicy for transient network errors
    - Root records are streamed through a server-side cursor
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import AutoReconnect, NetworkTimeout, PyMongoError

from src.adapters.storage.validation import parse_document, parse_documents
from src.domain.documents import COLLECTION_NAMES, Composition, FhirDocument
from src.domain.guardrails import RetryConfig, RetryExhaustedError, RetryPolicy
from src.domain.ports import (
    CompositionCursor,
    DocumentStorePort,
    Result,
    SearchIndexPort,
    StoreError,
)
from src.infrastructure.config_manager import DatabaseConfig

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_DATABASE = "hearth-dev"
DEFAULT_SEARCH_COLLECTION = "SearchDocument"
COMPOSITION_PROJECTION = {"id": 1, "title": 1, "section": 1, "date": 1, "_id": 0}
TRANSIENT_ERRORS = (AutoReconnect, NetworkTimeout)


class MongoCompositionCursor(CompositionCursor):
    """Forward-only cursor over the Compositions of one date window."""

    def __init__(self, collection: Collection, query: dict, run: Callable[[str, Callable[[], Any]], Any]):
        self._collection = collection
        self._query = query
        self._run = run
        self._cursor = None

    def count(self) -> int:
        return self._run(
            "count Composition",
            lambda: self._collection.count_documents(self._query)
        )

    def __next__(self) -> Composition:
        if self._cursor is None:
            self._cursor = self._run(
                "find Composition",
                lambda: self._collection.find(self._query, COMPOSITION_PROJECTION)
            )
        try:
            raw = next(self._cursor)
        except PyMongoError as e:
            raise StoreError(
                f"Composition cursor failed: {e}",
                operation="cursor",
                details={"query": self._query}
            ) from e
        return parse_document(COLLECTION_NAMES.COMPOSITION, raw)

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class MongoDocumentStore(DocumentStorePort, SearchIndexPort):
    """MongoDB implementation of the document store.

    Parameters:
        db_config: Store configuration (connection string, retries)
        client: Existing MongoClient (created from db_config if None)
        retry_policy: Retry policy (built from db_config if None)
        search_collection: Collection receiving search-document upserts

    Example Usage:
        ```python
        store = MongoDocumentStore(db_config=get_database_config())
        store.connect()
        with store:
            cursor = store.find_compositions(window.start_timestamp, window.end_timestamp)
        ```
    """

    def __init__(
        self,
        db_config: Optional[DatabaseConfig] = None,
        client: Optional[MongoClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        search_collection: str = DEFAULT_SEARCH_COLLECTION
    ):
        self.db_config = db_config or DatabaseConfig(db_type="mongodb")
        if self.db_config.db_type != "mongodb":
            raise StoreError(
                f"DatabaseConfig type '{self.db_config.db_type}' does not match MongoDB adapter",
                operation="__init__"
            )
        self.retry_policy = retry_policy or RetryPolicy(
            RetryConfig(
                max_attempts=self.db_config.max_retries,
                backoff_factor=self.db_config.retry_backoff
            ),
            retry_on=TRANSIENT_ERRORS
        )
        self.search_collection = search_collection
        self._client: Optional[MongoClient] = client
        self._db: Optional[Database] = None

    def connect(self) -> None:
        """Open the client and verify the server is reachable.

        Raises:
            StoreError: If the server cannot be reached
        """
        try:
            if self._client is None:
                self._client = MongoClient(
                    self.db_config.get_connection_string(),
                    serverSelectionTimeoutMS=self.db_config.server_selection_timeout_ms
                )
            self._client.admin.command("ping")
        except PyMongoError as e:
            raise StoreError(f"Failed to connect to MongoDB: {e}", operation="connect") from e

        self._db = self._client[self.db_config.database or DEFAULT_DATABASE]
        logger.info(f"Connected to MongoDB database '{self._db.name}'")

    @property
    def db(self) -> Database:
        if self._db is None:
            self.connect()
        return self._db

    def _run(self, operation: str, func: Callable[[], T]) -> T:
        try:
            return self.retry_policy.call(operation, func)
        except RetryExhaustedError as e:
            raise StoreError(str(e), operation=operation) from e
        except PyMongoError as e:
            raise StoreError(f"{operation} failed: {e}", operation=operation) from e

    def find_compositions(self, start: str, end: str) -> CompositionCursor:
        query = {"date": {"$gte": start, "$lte": end}}
        return MongoCompositionCursor(self.db[COLLECTION_NAMES.COMPOSITION], query, self._run)

    def find_by_ids(self, collection: str, ids: list[str], skip_invalid: bool = False) -> list[FhirDocument]:
        query = {"id": {"$in": list(ids)}} if ids else {}
        raws = self._run(f"find {collection}", lambda: list(self.db[collection].find(query)))
        return parse_documents(collection, raws, skip_invalid=skip_invalid)

    def find_by_field(self, collection: str, field: str, value: str) -> list[FhirDocument]:
        raws = self._run(f"find {collection}", lambda: list(self.db[collection].find({field: value})))
        return parse_documents(collection, raws)

    def upsert_search_document(self, composition_id: str, body: dict) -> Result[str]:
        try:
            self.db[self.search_collection].update_one(
                {"compositionId": composition_id},
                {"$set": body},
                upsert=True
            )
        except PyMongoError as e:
            logger.error(f"Failed to update search document {composition_id}: {e}")
            return Result.failure_result(
                StoreError(str(e), operation="upsert"),
                error_details={"composition_id": composition_id}
            )
        return Result.success_result(composition_id)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB connection closed")
