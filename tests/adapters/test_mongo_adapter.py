"""Test suite for the MongoDB adapter using a mocked client.

No MongoDB server is needed: the client, database and collections are mocks,
and retry delays go through a mocked sleep.
"""

from unittest.mock import MagicMock, Mock

import pytest
from pydantic import SecretStr
from pymongo.errors import AutoReconnect, OperationFailure, ServerSelectionTimeoutError

from src.adapters.storage.mongo_adapter import COMPOSITION_PROJECTION, MongoDocumentStore
from src.domain.documents import COLLECTION_NAMES
from src.domain.guardrails import RetryConfig, RetryPolicy
from src.domain.ports import DocumentValidationError, StoreError
from src.infrastructure.config_manager import DatabaseConfig


class FakeCursor:
    """Iterator standing in for a pymongo cursor."""

    def __init__(self, documents, fail_after=None):
        self._documents = list(documents)
        self._fail_after = fail_after
        self._position = 0
        self.closed = False

    def __next__(self):
        if self._fail_after is not None and self._position >= self._fail_after:
            raise AutoReconnect("connection reset")
        if self._position >= len(self._documents):
            raise StopIteration
        document = self._documents[self._position]
        self._position += 1
        return document

    def close(self):
        self.closed = True


@pytest.fixture
def mongo():
    client = MagicMock()
    database = MagicMock()
    collection = MagicMock()
    client.__getitem__.return_value = database
    database.__getitem__.return_value = collection
    return {"client": client, "db": database, "collection": collection}


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def store(mongo, sleep):
    config = DatabaseConfig(db_type="mongodb", connection_string=SecretStr("mongodb://db:27017/hearth-zm"))
    policy = RetryPolicy(RetryConfig(max_attempts=3, backoff_factor=0.1), retry_on=(AutoReconnect,), sleep=sleep)
    return MongoDocumentStore(db_config=config, client=mongo["client"], retry_policy=policy)


class TestConnect:
    """Test suite for connection handling."""

    def test_connect_pings_and_selects_database(self, store, mongo):
        store.connect()

        mongo["client"].admin.command.assert_called_once_with("ping")
        mongo["client"].__getitem__.assert_called_with("hearth-zm")

    def test_unreachable_server_raises_store_error(self, store, mongo):
        mongo["client"].admin.command.side_effect = ServerSelectionTimeoutError("no servers")

        with pytest.raises(StoreError) as exc_info:
            store.connect()

        assert exc_info.value.operation == "connect"

    def test_rejects_memory_config(self):
        with pytest.raises(StoreError):
            MongoDocumentStore(db_config=DatabaseConfig(db_type="memory"))

    def test_close_closes_client(self, store, mongo):
        store.connect()
        store.close()

        mongo["client"].close.assert_called_once()


class TestQueries:
    """Test suite for the read queries."""

    def test_find_compositions_uses_inclusive_date_range(self, store, mongo):
        collection = mongo["collection"]
        collection.count_documents.return_value = 1
        collection.find.return_value = FakeCursor([{"id": "c-1", "title": "Birth Declaration"}])

        cursor = store.find_compositions("2022-01-01T00:00:00.000Z", "2022-01-31T23:59:59.999Z")

        assert cursor.count() == 1
        assert [c.id for c in cursor] == ["c-1"]
        query = {"date": {"$gte": "2022-01-01T00:00:00.000Z", "$lte": "2022-01-31T23:59:59.999Z"}}
        collection.count_documents.assert_called_once_with(query)
        collection.find.assert_called_once_with(query, COMPOSITION_PROJECTION)
        mongo["db"].__getitem__.assert_any_call(COLLECTION_NAMES.COMPOSITION)

    def test_cursor_failure_mid_stream_raises_store_error(self, store, mongo):
        mongo["collection"].find.return_value = FakeCursor([{"id": "c-1"}, {"id": "c-2"}], fail_after=1)
        cursor = store.find_compositions("a", "z")

        assert next(cursor).id == "c-1"
        with pytest.raises(StoreError) as exc_info:
            next(cursor)
        assert exc_info.value.operation == "cursor"

    def test_malformed_root_document(self, store, mongo):
        mongo["collection"].find.return_value = FakeCursor([{"title": "no id"}, {"id": "c-2"}])
        cursor = store.find_compositions("a", "z")

        with pytest.raises(DocumentValidationError):
            next(cursor)
        assert next(cursor).id == "c-2"

    def test_cursor_close_releases_server_cursor(self, store, mongo):
        fake = FakeCursor([{"id": "c-1"}])
        mongo["collection"].find.return_value = fake
        cursor = store.find_compositions("a", "z")
        next(cursor)

        cursor.close()

        assert fake.closed

    def test_find_by_ids_uses_in_operator(self, store, mongo):
        mongo["collection"].find.return_value = [{"id": "p-1", "gender": "male"}]

        patients = store.find_by_ids(COLLECTION_NAMES.PATIENT, ["p-1", "p-2"])

        assert patients[0].gender == "male"
        mongo["collection"].find.assert_called_once_with({"id": {"$in": ["p-1", "p-2"]}})

    def test_find_by_ids_without_ids_reads_whole_collection(self, store, mongo):
        mongo["collection"].find.return_value = []

        store.find_by_ids(COLLECTION_NAMES.LOCATION, [])

        mongo["collection"].find.assert_called_once_with({})

    def test_find_by_field(self, store, mongo):
        mongo["collection"].find.return_value = [{"id": "t-1", "focus": {"reference": "Composition/c-1"}}]

        tasks = store.find_by_field(COLLECTION_NAMES.TASK, "focus.reference", "Composition/c-1")

        assert tasks[0].id == "t-1"
        mongo["collection"].find.assert_called_once_with({"focus.reference": "Composition/c-1"})


class TestRetries:
    """Test suite for transient error handling."""

    def test_transient_error_is_retried(self, store, mongo, sleep):
        mongo["collection"].find.side_effect = [AutoReconnect("reset"), [{"id": "p-1"}]]

        patients = store.find_by_ids(COLLECTION_NAMES.PATIENT, ["p-1"])

        assert [p.id for p in patients] == ["p-1"]
        sleep.assert_called_once_with(0.1)

    def test_exhausted_retries_raise_store_error(self, store, mongo, sleep):
        mongo["collection"].find.side_effect = AutoReconnect("reset")

        with pytest.raises(StoreError):
            store.find_by_ids(COLLECTION_NAMES.PATIENT, ["p-1"])

        assert mongo["collection"].find.call_count == 3

    def test_other_driver_errors_are_not_retried(self, store, mongo, sleep):
        mongo["collection"].find.side_effect = OperationFailure("unauthorized")

        with pytest.raises(StoreError):
            store.find_by_field(COLLECTION_NAMES.TASK, "focus.reference", "Composition/c-1")

        assert mongo["collection"].find.call_count == 1
        sleep.assert_not_called()


class TestUpsertSearchDocument:
    def test_upserts_by_composition_id(self, store, mongo):
        result = store.upsert_search_document("c-1", {"assignment": None})

        assert result.is_success()
        mongo["collection"].update_one.assert_called_once_with(
            {"compositionId": "c-1"}, {"$set": {"assignment": None}}, upsert=True
        )

    def test_driver_error_becomes_failure_result(self, store, mongo):
        mongo["collection"].update_one.side_effect = OperationFailure("write failed")

        result = store.upsert_search_document("c-1", {"assignment": None})

        assert result.is_failure()
        assert result.error_type == "StoreError"
        assert result.error_details == {"composition_id": "c-1"}
