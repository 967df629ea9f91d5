"""
Classifies a parsed query artifact and routes it to the store.

- list            -> aggregation pipeline; must be non-empty, every stage a dict,
                     and no write stages ($out / $merge)
- dict            -> find filter, accepted as-is (field names are not enforced)
- anything else   -> rejected
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from catalog.normalizer import declared_fields
from DB.executor import RESULT_CAP, run_filter_query, run_pipeline

logger = logging.getLogger("mql_generator")

WRITE_STAGES = frozenset({"$out", "$merge"})


class QueryKind(str, Enum):
    FILTER = "find"
    PIPELINE = "aggregate"


class QueryValidationError(ValueError):
    def __init__(self, message: str, kind: str = "unknown"):
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class ValidatedQuery:
    kind: QueryKind
    query: Any


def validate_query(artifact: Any) -> ValidatedQuery:
    if isinstance(artifact, list):
        if not artifact:
            raise QueryValidationError("Empty aggregation pipeline", kind="aggregate")
        if any(not isinstance(stage, dict) for stage in artifact):
            raise QueryValidationError("Invalid pipeline stages found", kind="aggregate")
        writes = sorted({op for stage in artifact for op in stage if op in WRITE_STAGES})
        if writes:
            raise QueryValidationError(
                f"Refused: write stages are not allowed ({', '.join(writes)})",
                kind="aggregate",
            )
        return ValidatedQuery(QueryKind.PIPELINE, artifact)

    if isinstance(artifact, dict):
        return ValidatedQuery(QueryKind.FILTER, artifact)

    raise QueryValidationError("Query must be an object (find) or array (aggregate)")


def classify_query(artifact: Any) -> str:
    """One of "find", "aggregate" or "rejected"."""
    try:
        return validate_query(artifact).kind.value
    except QueryValidationError:
        return "rejected"


def unknown_filter_fields(validated: ValidatedQuery, schema_text: Optional[str]) -> List[str]:
    """
    Top-level filter keys the schema does not declare. Only checked for find
    filters against JSON schemas; operator keys ($or, $and, ...) are skipped.
    """
    known = declared_fields(schema_text)
    if validated.kind is not QueryKind.FILTER or not known:
        return []
    return [
        key for key in validated.query
        if not key.startswith("$") and key not in known
    ]


def dispatch(validated: ValidatedQuery, limit: int = RESULT_CAP) -> List[Dict[str, Any]]:
    if validated.kind is QueryKind.PIPELINE:
        results = run_pipeline(validated.query, limit=limit)
    else:
        results = run_filter_query(validated.query, limit=limit)

    logger.info("mql_executed", extra={
        "kind": validated.kind.value,
        "returned": len(results),
    })
    return results
