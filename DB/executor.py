import json
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bson import Decimal128, ObjectId, json_util
from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from API.config import settings
from DB.format_mongo_error import format_mongo_error

logger = logging.getLogger("mql_generator")

# hard cap on documents returned by any executed query
RESULT_CAP = 20
SAMPLE_LIMIT = 5


class DBExecutionError(RuntimeError):
    pass


_client: Optional[MongoClient] = None
_database: Optional[Database] = None
_init_lock = threading.Lock()


def get_database() -> Database:
    """
    Process-wide handle, created on first use. Later calls return the same
    handle; concurrent first calls create only one client.
    """
    global _client, _database
    if _database is not None:
        return _database

    with _init_lock:
        if _database is None:
            if not settings.MONGODB_URI:
                raise DBExecutionError("MongoDB URI not configured")
            _client = MongoClient(
                settings.MONGODB_URI,
                serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            )
            _database = _client[settings.MONGODB_DATABASE]
            logger.info("mongodb_connected", extra={
                "database": settings.MONGODB_DATABASE,
                "collection": settings.MONGODB_COLLECTION,
            })
    return _database


def close_client() -> None:
    global _client, _database
    with _init_lock:
        if _client is not None:
            _client.close()
        _client = None
        _database = None


def _collection() -> Collection:
    return get_database()[settings.MONGODB_COLLECTION]


def _cap(limit: int) -> int:
    return min(max(1, int(limit)), RESULT_CAP)


_PLAIN = (str, int, float, bool, type(None), datetime)


def _jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return str(value.to_decimal())
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, _PLAIN):
        return value
    # remaining BSON types (Regex, Timestamp, Binary) become relaxed Extended JSON
    return json.loads(json_util.dumps(value))


def to_bson_query(query: Any) -> Any:
    """Decode Extended JSON ({"$date": ...}, {"$oid": ...}) into BSON types."""
    try:
        return json_util.loads(json.dumps(query))
    except (BSONError, TypeError, ValueError) as e:
        raise DBExecutionError(f"Query contains invalid extended JSON: {e}") from e


def _run(operation: str, fn) -> List[Dict[str, Any]]:
    try:
        docs = fn()
    except PyMongoError as e:
        logger.warning("mongodb_query_failed", extra={
            "operation": operation,
            "error": format_mongo_error(e),
        })
        raise DBExecutionError(format_mongo_error(e)) from e
    return [_jsonable(doc) for doc in docs]


def fetch_sample(limit: int = SAMPLE_LIMIT) -> List[Dict[str, Any]]:
    limit = _cap(limit)
    return _run("sample", lambda: list(_collection().find({}).limit(limit)))


def run_filter_query(filter_doc: Dict[str, Any], limit: int = RESULT_CAP) -> List[Dict[str, Any]]:
    limit = _cap(limit)
    bson_filter = to_bson_query(filter_doc)

    def _find():
        cursor = _collection().find(
            bson_filter,
            max_time_ms=settings.MONGODB_QUERY_TIMEOUT_MS,
        ).limit(limit)
        return list(cursor)[:limit]

    return _run("find", _find)


def run_pipeline(stages: Sequence[Dict[str, Any]], limit: int = RESULT_CAP) -> List[Dict[str, Any]]:
    limit = _cap(limit)
    # trailing $limit is appended whatever the pipeline already asks for
    pipeline = list(to_bson_query(list(stages))) + [{"$limit": limit}]

    def _aggregate():
        cursor = _collection().aggregate(
            pipeline,
            maxTimeMS=settings.MONGODB_QUERY_TIMEOUT_MS,
        )
        return list(cursor)[:limit]

    return _run("aggregate", _aggregate)


def db_healthcheck() -> dict:
    """
    Safe healthcheck: ping + server version.
    """
    try:
        database = get_database()
        database.client.admin.command("ping")
        version = database.client.server_info().get("version")
        return {"ok": True, "server_version": version}
    except Exception as e:
        return {"ok": False, "error": str(e)}
