"""
The one text-generation capability used by both translation stages.

Stages differ only by the BackendConfig they pass: analysis runs with a
higher temperature for exploratory reasoning, compilation runs near-greedy
because exact JSON syntax matters more than phrasing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from langchain_core.messages import HumanMessage

from API.config import settings
from LLM.make_llm import make_llm
from observability.metrics import LLM_LATENCY, LLM_ERRORS_TOTAL
from store.request_ctx import current_request_id

logger = logging.getLogger("mql_generator")


class BackendCallError(RuntimeError):
    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


@dataclass(frozen=True)
class BackendConfig:
    stage: str
    model: str
    temperature: float


ANALYSIS_BACKEND = BackendConfig(
    stage="analysis",
    model=settings.ANALYSIS_MODEL,
    temperature=settings.ANALYSIS_TEMPERATURE,
)

COMPILATION_BACKEND = BackendConfig(
    stage="compilation",
    model=settings.COMPILATION_MODEL,
    temperature=settings.COMPILATION_TEMPERATURE,
)

TextBackend = Callable[[str, BackendConfig], Awaitable[str]]


def _message_text(content: Any) -> str:
    # some providers return a list of content blocks instead of a string
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return "" if content is None else str(content)


async def invoke_text(prompt: str, config: BackendConfig) -> str:
    llm_start = time.perf_counter()
    try:
        llm = make_llm(config.model, config.temperature)
        res = await llm.ainvoke([HumanMessage(content=prompt)])
        text = _message_text(getattr(res, "content", res)).strip()
    except Exception as e:
        LLM_ERRORS_TOTAL.labels(model=config.model, stage=config.stage, error_type=type(e).__name__).inc()
        logger.exception("llm_call_failed", extra={
            "request_id": current_request_id.get(),
            "stage": config.stage,
            "model": config.model,
        })
        raise BackendCallError(config.stage, f"{config.stage} backend call failed: {e}") from e
    finally:
        llm_elapsed = time.perf_counter() - llm_start
        LLM_LATENCY.labels(model=config.model, stage=config.stage).observe(llm_elapsed)

        logger.info("llm_call", extra={
            "request_id": current_request_id.get(),
            "stage": config.stage,
            "model": config.model,
            "temperature": config.temperature,
            "llm_latency_s": round(llm_elapsed, 4),
        })

    return text
