from datetime import datetime
from typing import Optional

from DB.executor import RESULT_CAP
from LLM.backend import COMPILATION_BACKEND, TextBackend, invoke_text
from LLM.query_analyze import format_current_date
from prompts.mql_generator import MQL_GENERATOR_PROMPT, DEFAULT_COMPILATION_SCHEMA


def build_mql_prompt(analysis: str, schema_text: Optional[str], now: datetime) -> str:
    return MQL_GENERATOR_PROMPT.format(
        schema=schema_text or DEFAULT_COMPILATION_SCHEMA,
        current_date=format_current_date(now),
        analysis=analysis,
        result_cap=RESULT_CAP,
    )


async def generate_mql(
    analysis: str,
    schema_text: Optional[str],
    now: datetime,
    invoke: TextBackend = invoke_text,
) -> str:
    """Returns the raw backend text; parsing is left to LLM.response_parser."""
    prompt = build_mql_prompt(analysis, schema_text, now)
    return await invoke(prompt, COMPILATION_BACKEND)
