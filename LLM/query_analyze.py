from datetime import datetime
from typing import Optional

from LLM.backend import ANALYSIS_BACKEND, TextBackend, invoke_text
from prompts.query_analyzer import QUERY_ANALYZER_PROMPT, DEFAULT_ANALYSIS_SCHEMA


def format_current_date(now: datetime) -> str:
    readable = now.strftime("%a %b %d %Y %H:%M:%S")
    if now.tzinfo is not None:
        readable += f" {now.tzname()}"
    return f"{readable} (ISO 8601: {now.isoformat()})"


def build_analysis_prompt(query_text: str, schema_text: Optional[str], now: datetime) -> str:
    return QUERY_ANALYZER_PROMPT.format(
        current_date=format_current_date(now),
        schema=schema_text or DEFAULT_ANALYSIS_SCHEMA,
        query=query_text.strip(),
    )


async def analyze_query(
    query_text: str,
    schema_text: Optional[str],
    now: datetime,
    invoke: TextBackend = invoke_text,
) -> str:
    """
    Breaks the user's request down into prose requirements (operation kind,
    filters, types, sort/limit, array/date/text handling).

    query_text must be non-empty; the caller checks this. The returned text is
    opaque and goes verbatim into the compilation stage. Backend failures
    propagate as BackendCallError, nothing is retried.
    """
    prompt = build_analysis_prompt(query_text, schema_text, now)
    return await invoke(prompt, ANALYSIS_BACKEND)
