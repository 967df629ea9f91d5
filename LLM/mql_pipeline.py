from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Union

from fastapi.concurrency import run_in_threadpool

from API.config import settings
from catalog.normalizer import normalize_schema
from catalog.templates import TemplateNotFoundError, get_template
from DB.executor import RESULT_CAP, DBExecutionError
from DB.query_validator import (
    QueryValidationError,
    ValidatedQuery,
    dispatch,
    unknown_filter_fields,
    validate_query,
)
from LLM.backend import TextBackend, invoke_text
from LLM.mql_generate import generate_mql
from LLM.query_analyze import analyze_query
from LLM.response_parser import MQLParseError, parse_mql_response
from observability.metrics import TRANSLATIONS_TOTAL
from store.models import SchemaField
from store.request_ctx import current_request_id

logger = logging.getLogger("mql_generator")

Mode = Literal["demo", "custom"]
QueryExecutor = Callable[[ValidatedQuery], List[Dict[str, Any]]]


class PreconditionError(ValueError):
    pass


@dataclass
class TranslationOutcome:
    success: bool
    enhanced_query: Optional[str] = None
    mql_query: Optional[str] = None
    query: Any = None
    query_kind: Optional[str] = None
    # None means the query was not executed
    results: Optional[List[Dict[str, Any]]] = None
    schema_text: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


def resolve_schema(
    mode: Mode,
    schema: Union[str, Sequence[SchemaField], None],
) -> str:
    if mode == "demo":
        return get_template(settings.DEMO_TEMPLATE_NAME).schema

    schema_text = normalize_schema(list(schema) if isinstance(schema, (list, tuple)) else schema)
    if not schema_text:
        raise PreconditionError("Schema is required for custom queries")
    return schema_text


def _finish(mode: Mode, outcome: TranslationOutcome) -> TranslationOutcome:
    TRANSLATIONS_TOTAL.labels(mode=mode, outcome=outcome.error_kind or "ok").inc()
    if outcome.success:
        logger.info("translation_ok", extra={
            "request_id": current_request_id.get(),
            "mode": mode,
            "query_kind": outcome.query_kind,
            "executed": outcome.results is not None,
        })
    else:
        logger.warning("translation_failed", extra={
            "request_id": current_request_id.get(),
            "mode": mode,
            "error_kind": outcome.error_kind,
            "error": outcome.error,
        })
    return outcome


async def translate(
    query_text: str,
    schema: Union[str, Sequence[SchemaField], None] = None,
    *,
    mode: Mode = "custom",
    invoke: TextBackend = invoke_text,
    executor: QueryExecutor = dispatch,
    now: Optional[datetime] = None,
) -> TranslationOutcome:
    """
    Text + schema -> analysis -> raw query text -> parsed artifact ->
    validated query -> (demo mode only) results.

    Never raises: each failure is returned as an outcome with error_kind set to
    precondition, configuration, backend, parse, validation or execution.
    Execution failures keep the generated query in the outcome.
    """
    now = now or datetime.now(timezone.utc)

    if not (query_text or "").strip():
        return _finish(mode, TranslationOutcome(
            success=False, error="Query is required", error_kind="precondition",
        ))

    try:
        schema_text = resolve_schema(mode, schema)
    except PreconditionError as e:
        return _finish(mode, TranslationOutcome(
            success=False, error=str(e), error_kind="precondition",
        ))
    except TemplateNotFoundError as e:
        return _finish(mode, TranslationOutcome(
            success=False, error=str(e), error_kind="configuration",
        ))

    try:
        enhanced_query = await analyze_query(query_text, schema_text, now, invoke)
    except Exception:
        logger.exception("analysis_stage_failed", extra={"request_id": current_request_id.get()})
        return _finish(mode, TranslationOutcome(
            success=False,
            schema_text=schema_text,
            error="Failed to generate query analysis",
            error_kind="backend",
        ))

    try:
        raw = await generate_mql(enhanced_query, schema_text, now, invoke)
    except Exception:
        logger.exception("compilation_stage_failed", extra={"request_id": current_request_id.get()})
        return _finish(mode, TranslationOutcome(
            success=False,
            enhanced_query=enhanced_query,
            schema_text=schema_text,
            error="Failed to generate MongoDB query",
            error_kind="backend",
        ))

    try:
        artifact = parse_mql_response(raw)
    except MQLParseError as e:
        return _finish(mode, TranslationOutcome(
            success=False,
            enhanced_query=enhanced_query,
            schema_text=schema_text,
            error=str(e),
            error_kind="parse",
        ))

    mql_query = json.dumps(artifact, indent=2, ensure_ascii=False)

    try:
        validated = validate_query(artifact)
    except QueryValidationError as e:
        return _finish(mode, TranslationOutcome(
            success=False,
            enhanced_query=enhanced_query,
            mql_query=mql_query,
            query=artifact,
            schema_text=schema_text,
            error=str(e),
            error_kind="validation",
        ))

    unknown = unknown_filter_fields(validated, schema_text)
    if unknown:
        logger.warning("mql_unknown_fields", extra={
            "request_id": current_request_id.get(),
            "fields": unknown,
        })

    outcome = TranslationOutcome(
        success=True,
        enhanced_query=enhanced_query,
        mql_query=mql_query,
        query=validated.query,
        query_kind=validated.kind.value,
        schema_text=schema_text,
    )

    if mode != "demo":
        return _finish(mode, outcome)

    try:
        results = await run_in_threadpool(executor, validated)
        outcome.results = list(results)[:RESULT_CAP]
    except DBExecutionError as e:
        logger.warning("query_execution_failed", extra={
            "request_id": current_request_id.get(),
            "error": str(e),
        })
        outcome.success = False
        outcome.error = "Failed to execute query on database"
        outcome.error_kind = "execution"
    except Exception:
        logger.exception("query_execution_failed", extra={"request_id": current_request_id.get()})
        outcome.success = False
        outcome.error = "Failed to execute query on database"
        outcome.error_kind = "execution"

    return _finish(mode, outcome)
