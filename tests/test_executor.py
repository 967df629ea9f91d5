"""
Tests for the MongoDB executor. pymongo's MongoClient is replaced with a
MagicMock; no server is needed.
"""
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from bson import Binary, Decimal128, ObjectId, Regex, Timestamp
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

import DB.executor as executor
from API.config import settings
from DB.executor import (
    DBExecutionError,
    RESULT_CAP,
    db_healthcheck,
    fetch_sample,
    get_database,
    run_filter_query,
    run_pipeline,
    to_bson_query,
)
from DB.format_mongo_error import format_mongo_error
from store.models import MQLGenerationResponse


@pytest.fixture
def mongo(monkeypatch, reset_mongo_handle):
    monkeypatch.setattr(settings, "MONGODB_URI", "mongodb://localhost:27017")
    monkeypatch.setattr(settings, "MONGODB_DATABASE", "talent")
    monkeypatch.setattr(settings, "MONGODB_COLLECTION", "candidates")

    with patch("DB.executor.MongoClient") as client_cls:
        client = client_cls.return_value
        database = MagicMock()
        collection = MagicMock()
        client.__getitem__.return_value = database
        database.__getitem__.return_value = collection
        yield client_cls, database, collection


class TestConnection:

    def test_missing_uri(self, monkeypatch, reset_mongo_handle):
        monkeypatch.setattr(settings, "MONGODB_URI", None)
        with pytest.raises(DBExecutionError, match="MongoDB URI not configured"):
            get_database()

    def test_handle_is_created_once(self, mongo):
        client_cls, database, _ = mongo

        first = get_database()
        second = get_database()

        assert first is second is database
        client_cls.assert_called_once_with(
            "mongodb://localhost:27017",
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
        )
        client_cls.return_value.__getitem__.assert_called_once_with("talent")

    def test_close_client_resets_handle(self, mongo):
        client_cls, _, _ = mongo
        get_database()

        executor.close_client()

        client_cls.return_value.close.assert_called_once()
        assert executor._database is None


class TestFilterQuery:

    def test_find_is_capped(self, mongo):
        _, database, collection = mongo
        cursor = collection.find.return_value
        cursor.limit.return_value = [{"_id": ObjectId(), "n": i} for i in range(35)]

        results = run_filter_query({"yearsOfExperience": {"$gt": 30}}, limit=500)

        assert len(results) == RESULT_CAP
        cursor.limit.assert_called_once_with(RESULT_CAP)
        database.__getitem__.assert_called_with("candidates")
        args, kwargs = collection.find.call_args
        assert args[0] == {"yearsOfExperience": {"$gt": 30}}
        assert kwargs["max_time_ms"] == settings.MONGODB_QUERY_TIMEOUT_MS

    def test_results_are_json_safe(self, mongo):
        _, _, collection = mongo
        oid = ObjectId()
        collection.find.return_value.limit.return_value = [{
            "_id": oid,
            "salary": Decimal128("120000.50"),
            "refs": [{"_id": oid}],
        }]

        results = run_filter_query({})

        assert results == [{"_id": str(oid), "salary": "120000.50", "refs": [{"_id": str(oid)}]}]

    def test_other_bson_types_are_json_safe(self, mongo):
        _, _, collection = mongo
        collection.find.return_value.limit.return_value = [{
            "pattern": Regex("^ada", "i"),
            "ts": Timestamp(1700000000, 1),
            "blob": Binary(b"\xff\xfe\x00"),
            "joined": datetime(2026, 1, 1),
        }]

        results = run_filter_query({})

        doc = results[0]
        assert doc["pattern"] == {"$regularExpression": {"pattern": "^ada", "options": "i"}}
        assert doc["ts"] == {"$timestamp": {"t": 1700000000, "i": 1}}
        assert "$binary" in doc["blob"]
        assert doc["joined"] == datetime(2026, 1, 1)
        MQLGenerationResponse(success=True, results=results).model_dump(mode="json")

    def test_extended_json_is_decoded(self, mongo):
        _, _, collection = mongo
        collection.find.return_value.limit.return_value = []
        oid = "64b7f0c2a1b2c3d4e5f60718"

        run_filter_query({
            "_id": {"$oid": oid},
            "lastUpdated": {"$gte": {"$date": "2026-01-01T00:00:00Z"}},
        })

        sent = collection.find.call_args.args[0]
        assert sent["_id"] == ObjectId(oid)
        assert isinstance(sent["lastUpdated"]["$gte"], datetime)
        assert sent["lastUpdated"]["$gte"].year == 2026

    def test_invalid_extended_json(self, mongo):
        with pytest.raises(DBExecutionError, match="invalid extended JSON"):
            run_filter_query({"_id": {"$oid": "not-an-object-id"}})

    def test_store_errors_are_wrapped(self, mongo):
        _, _, collection = mongo
        collection.find.side_effect = OperationFailure(
            "unknown operator: $foo",
            code=2,
            details={"errmsg": "unknown operator: $foo", "codeName": "BadValue"},
        )

        with pytest.raises(DBExecutionError, match="BadValue") as exc:
            run_filter_query({"a": {"$foo": 1}})
        assert isinstance(exc.value.__cause__, OperationFailure)


class TestPipeline:

    def test_trailing_limit_is_appended(self, mongo):
        _, _, collection = mongo
        collection.aggregate.return_value = [{"_id": "pending", "count": 2}]
        stages = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}, {"$limit": 100}]

        results = run_pipeline(stages)

        sent, kwargs = collection.aggregate.call_args
        assert sent[0] == stages + [{"$limit": RESULT_CAP}]
        assert kwargs["maxTimeMS"] == settings.MONGODB_QUERY_TIMEOUT_MS
        assert results == [{"_id": "pending", "count": 2}]

    def test_pipeline_results_are_capped(self, mongo):
        _, _, collection = mongo
        collection.aggregate.return_value = [{"n": i} for i in range(50)]

        assert len(run_pipeline([{"$match": {}}], limit=5)) == 5

    def test_input_stages_are_not_mutated(self, mongo):
        _, _, collection = mongo
        collection.aggregate.return_value = []
        stages = [{"$match": {}}]

        run_pipeline(stages)

        assert stages == [{"$match": {}}]


def test_fetch_sample_defaults_to_five(mongo):
    _, _, collection = mongo
    collection.find.return_value.limit.return_value = [{"_id": 1}]

    assert fetch_sample() == [{"_id": 1}]
    collection.find.assert_called_once_with({})
    collection.find.return_value.limit.assert_called_once_with(5)


def test_healthcheck_never_raises(monkeypatch, reset_mongo_handle):
    monkeypatch.setattr(settings, "MONGODB_URI", None)
    result = db_healthcheck()
    assert result["ok"] is False
    assert "not configured" in result["error"]


def test_healthcheck_reports_version(mongo):
    _, database, _ = mongo
    database.client.server_info.return_value = {"version": "7.0.4"}

    assert db_healthcheck() == {"ok": True, "server_version": "7.0.4"}
    database.client.admin.command.assert_called_once_with("ping")


def test_format_mongo_error():
    failure = OperationFailure("boom", code=11000, details={"errmsg": "duplicate key", "codeName": "DuplicateKey"})
    assert format_mongo_error(failure) == "code: 11000 | codeName: DuplicateKey | message: duplicate key"
    assert format_mongo_error(ServerSelectionTimeoutError("no servers")) == "ServerSelectionTimeoutError: no servers"
    assert format_mongo_error(ValueError("plain")) == "plain"
