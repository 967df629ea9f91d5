"""
Turns raw compilation-stage text into parsed JSON.

1. strip a leading/trailing code fence (with optional language tag) and parse;
2. otherwise take the first top-level balanced {...} / [...] region of the
   unstripped text, skipping delimiters inside JSON string literals;
3. otherwise raise MQLParseError. Nothing is retried.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Tuple

from observability.metrics import SANITIZER_FALLBACK_TOTAL
from store.request_ctx import current_request_id

logger = logging.getLogger("mql_generator")

_FENCE_OPEN = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```$")
_CLOSERS = {"{": "}", "[": "]"}


class MQLParseError(ValueError):
    pass


def strip_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index of the delimiter closing text[start], or None if it never balances."""
    expected = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            expected.append(_CLOSERS[ch])
        elif ch in "}]":
            if not expected or ch != expected.pop():
                return None
            if not expected:
                return i
    return None


def _first_region(text: str) -> Optional[Tuple[int, int]]:
    """Span of the first top-level {...} / [...] region, or None if it never closes."""
    for start, ch in enumerate(text):
        if ch in _CLOSERS:
            end = _balanced_end(text, start)
            return None if end is None else (start, end)
    return None


def _load_structured(candidate: str) -> Optional[Any]:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return None
    return value if isinstance(value, (dict, list)) else None


def extract_json(text: str) -> Any:
    """
    Fallback: the first top-level object/array region embedded in surrounding
    prose. Regions nested inside it are never tried on their own, so a
    malformed outer query cannot degrade into one of its fragments.
    """
    region = _first_region(text)
    if region is None:
        raise MQLParseError("No balanced JSON object or array found in LLM response")

    start, end = region
    value = _load_structured(text[start:end + 1])
    if value is None:
        raise MQLParseError("First JSON region in LLM response does not parse")
    return value


def parse_mql_response(raw: str) -> Any:
    cleaned = strip_fences(raw)
    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError) as primary_error:
        logger.warning("mql_primary_parse_failed", extra={
            "request_id": current_request_id.get(),
            "error": str(primary_error),
            "raw": raw,
        })

    try:
        value = extract_json(raw or "")
    except MQLParseError as e:
        SANITIZER_FALLBACK_TOTAL.labels(result="failed").inc()
        logger.error("mql_fallback_parse_failed", extra={
            "request_id": current_request_id.get(),
            "error": str(e),
            "raw": raw,
        })
        raise MQLParseError("Could not generate valid JSON from LLM response") from e

    SANITIZER_FALLBACK_TOTAL.labels(result="recovered").inc()
    logger.info("mql_sanitized", extra={
        "request_id": current_request_id.get(),
        "path": "fallback",
    })
    return value
