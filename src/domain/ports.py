"""Domain Ports - Abstract Contracts for the Vital Statistics Export.

This module defines the Port interfaces (abstract contracts) that Adapters must implement.
Following Hexagonal Architecture, the Domain Core defines what it needs, not how it's provided.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (MongoDB, in-memory, ...) implement these ports
    - Domain Core is isolated from document store specifics
    - Iterator pattern enables memory-efficient streaming of root records
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterator, Optional, TypeVar, Union
from dataclasses import dataclass

from src.domain.documents import Composition, FhirDocument

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error information (only present if success=False)
        error_type: Type of error (ResolutionError, StoreError, etc.)
        error_details: Additional error context (composition_id, window, etc.)

    Example:
        ```python
        result = Result.success_result(report)
        if result.is_success():
            save(result.value)

        result = Result.failure_result(
            StoreError("connection reset"),
            error_details={"composition_id": "c-1"}
        )
        if result.is_failure():
            log_error(result.error, result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (e.g., "ResolutionError", "StoreError")
            error_details: Additional context (composition_id, window, etc.)

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class ExportError(Exception):
    """Base exception for all export-related errors."""
    pass


class InvalidDateRangeError(ExportError):
    """Raised when the requested export range cannot be parsed or is inverted.

    This is a fatal startup error: no window is processed.

    Attributes:
        start: Raw start value as supplied
        end: Raw end value as supplied
    """

    def __init__(self, message: str, start: Optional[str] = None, end: Optional[str] = None):
        super().__init__(message)
        self.start = start
        self.end = end


class StoreError(ExportError):
    """Raised when the document store cannot be reached or a query fails.

    Attributes:
        operation: The store operation that failed (connect, find, count, etc.)
        details: Additional error context (collection, filter, etc.)
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.operation = operation
        self.details = details or {}


class DocumentValidationError(ExportError):
    """Raised when a stored document does not match its expected shape.

    Attributes:
        collection: Collection the document was read from
        document_id: Identifier of the offending document (if known)
        details: Validation messages
    """

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        document_id: Optional[str] = None,
        details: Optional[Any] = None
    ):
        super().__init__(message)
        self.collection = collection
        self.document_id = document_id
        self.details = details


class ResolutionError(ExportError):
    """Raised when an expected cross-document reference cannot be followed.

    Attributes:
        reference: The reference that could not be resolved
    """

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


class SeedError(ExportError):
    """Raised when user seed metadata cannot be fetched, validated or replayed."""
    pass


# ============================================================================
# Document Store Ports
# ============================================================================

class CompositionCursor(ABC):
    """Forward-only, lazily advancing sequence of Composition documents.

    The cursor yields validated Composition models one at a time. The total
    count is available without materializing the result set.
    """

    @abstractmethod
    def count(self) -> int:
        """Return the number of matching documents."""
        pass

    def __iter__(self) -> Iterator[Composition]:
        return self

    @abstractmethod
    def __next__(self) -> Composition:
        """Advance to the next matching document in store order.

        A malformed document raises for that document only; the following
        call advances past it.

        Raises:
            StopIteration: When the cursor is exhausted
            StoreError: If the cursor cannot advance
            DocumentValidationError: If the next root document is malformed
        """
        pass

    def close(self) -> None:
        """Release server-side cursor resources (optional)."""
        return None


class DocumentStorePort(ABC):
    """Abstract contract for the read-only document store.

    Key Principles:
        - Read-only: the export pipeline never writes to the store
        - Streaming: root records are returned through a forward-only cursor
        - Validated: documents are converted to typed models at this boundary

    Example Usage:
        ```python
        with create_document_store() as store:
            cursor = store.find_compositions(window.start_timestamp, window.end_timestamp)
            locations = store.find_by_ids(COLLECTION_NAMES.LOCATION, [])
            for composition in cursor:
                ...
        ```
    """

    @abstractmethod
    def find_compositions(self, start: str, end: str) -> CompositionCursor:
        """Open a cursor over Composition documents with ``date`` in ``[start, end]``.

        Parameters:
            start: Inclusive lower bound (ISO-8601 timestamp string)
            end: Inclusive upper bound (ISO-8601 timestamp string)

        Returns:
            CompositionCursor over the matching documents
        """
        pass

    @abstractmethod
    def find_by_ids(
        self,
        collection: str,
        ids: list[str],
        skip_invalid: bool = False
    ) -> list[FhirDocument]:
        """Batch-find documents of a collection by their ``id`` field.

        An empty id list returns the whole collection. This fallback is
        meant for small, reusable lookup sets (Location).

        Parameters:
            collection: Collection name (see ``COLLECTION_NAMES``)
            ids: Document identifiers
            skip_invalid: Log and drop malformed documents instead of raising

        Returns:
            list of validated documents
        """
        pass

    @abstractmethod
    def find_by_field(self, collection: str, field: str, value: str) -> list[FhirDocument]:
        """Find documents whose (dotted) field equals ``value`` exactly.

        Parameters:
            collection: Collection name
            field: Dotted field path (e.g. ``context.reference``)
            value: Exact value to match

        Returns:
            list of validated documents in store order
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the store connection."""
        pass

    def __enter__(self) -> 'DocumentStorePort':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SearchIndexPort(ABC):
    """Abstract contract for writing derived search-index documents."""

    @abstractmethod
    def upsert_search_document(self, composition_id: str, body: dict) -> Result[str]:
        """Create or update the search document keyed by ``composition_id``.

        Parameters:
            composition_id: Identifier of the root Composition
            body: Fields to set on the search document

        Returns:
            Result[str]: The composition id on success
        """
        pass


# ============================================================================
# User Service Ports
# ============================================================================

class UserDirectoryPort(ABC):
    """Abstract contract for looking up registered users."""

    @abstractmethod
    def get_user(self, user_id: str, authorization: Optional[str] = None) -> Optional[dict]:
        """Fetch a user record by id.

        Parameters:
            user_id: Practitioner/user identifier
            authorization: Authorization header forwarded to the service

        Returns:
            The user record (with a ``name`` list), or None if unknown
        """
        pass


class UserGatewayPort(ABC):
    """Abstract contract for the services involved in seeding users.

    Raises:
        SeedError: From any operation when the remote service fails
    """

    @abstractmethod
    def fetch_user_seeds(self) -> list[dict]:
        """Fetch the raw user seed metadata."""
        pass

    @abstractmethod
    def user_exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def office_id_for(self, identifier: str) -> Optional[str]:
        """Resolve an office identifier to a Location id (None if unknown)."""
        pass

    @abstractmethod
    def create_user(self, user_input: dict) -> str:
        """Create the user and return its username."""
        pass


# ============================================================================
# Output Ports
# ============================================================================

class RowSinkPort(ABC):
    """Abstract contract for an append-only tabular writer of one event type."""

    @abstractmethod
    def append(self, row: dict) -> None:
        """Append one row keyed by column key.

        Raises:
            OSError: If the row cannot be written
        """
        pass

    @abstractmethod
    def close(self) -> None:
        pass
