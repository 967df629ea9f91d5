import logging
from typing import Any, Callable, Dict, List

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from catalog.normalizer import render_field_tree
from catalog.templates import SCHEMA_TEMPLATES
from DB.executor import SAMPLE_LIMIT, db_healthcheck, fetch_sample
from DB.query_validator import dispatch
from LLM.backend import TextBackend, invoke_text
from LLM.mql_pipeline import QueryExecutor, TranslationOutcome, translate
from store.models import (
    CustomMQLRequest,
    DemoMQLRequest,
    MQLGenerationResponse,
    NormalizeSchemaRequest,
    SampleDataResponse,
    SchemaTemplateOut,
)

mql_router = APIRouter()
logger = logging.getLogger("mql_generator")

SampleFetcher = Callable[[int], List[Dict[str, Any]]]


def get_text_backend() -> TextBackend:
    return invoke_text


def get_query_executor() -> QueryExecutor:
    return dispatch


def get_sample_fetcher() -> SampleFetcher:
    return fetch_sample


def _to_response(outcome: TranslationOutcome) -> JSONResponse:
    body = MQLGenerationResponse(
        success=outcome.success,
        enhanced_query=outcome.enhanced_query,
        mql_query=outcome.mql_query,
        results=outcome.results,
        schema_text=outcome.schema_text,
        error=outcome.error,
        error_kind=outcome.error_kind,
    )
    if outcome.success:
        status_code = 200
    elif outcome.error_kind == "precondition":
        status_code = 400
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@mql_router.post("/generate-demo-mql", response_model=MQLGenerationResponse)
async def generate_demo_mql(
    req: DemoMQLRequest,
    invoke: TextBackend = Depends(get_text_backend),
    executor: QueryExecutor = Depends(get_query_executor),
):
    outcome = await translate(req.query, mode="demo", invoke=invoke, executor=executor)
    return _to_response(outcome)


@mql_router.post("/generate-custom-mql", response_model=MQLGenerationResponse)
async def generate_custom_mql(
    req: CustomMQLRequest,
    invoke: TextBackend = Depends(get_text_backend),
):
    schema = req.schema_text if (req.schema_text or "").strip() else req.fields
    outcome = await translate(req.query, schema, mode="custom", invoke=invoke)
    return _to_response(outcome)


async def _sample_data(fetcher: SampleFetcher) -> JSONResponse:
    try:
        data = await run_in_threadpool(fetcher, SAMPLE_LIMIT)
    except Exception:
        logger.exception("sample_data_failed")
        body = SampleDataResponse(success=False, error="Failed to fetch sample data")
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))
    return JSONResponse(content=SampleDataResponse(success=True, data=data).model_dump(mode="json"))


@mql_router.get("/generate-demo-mql", response_model=SampleDataResponse)
async def demo_sample_data(fetcher: SampleFetcher = Depends(get_sample_fetcher)):
    return await _sample_data(fetcher)


@mql_router.get("/sample-data", response_model=SampleDataResponse)
async def sample_data(fetcher: SampleFetcher = Depends(get_sample_fetcher)):
    return await _sample_data(fetcher)


@mql_router.get("/schema-templates", response_model=List[SchemaTemplateOut])
def schema_templates():
    return [
        SchemaTemplateOut(
            name=t.name,
            description=t.description,
            schema_text=t.schema,
            sample_query=t.sample_query,
        )
        for t in SCHEMA_TEMPLATES
    ]


@mql_router.post("/schema/normalize")
def normalize(req: NormalizeSchemaRequest):
    return {"schema": render_field_tree(req.fields)}


@mql_router.get("/health")
async def health():
    return await run_in_threadpool(db_healthcheck)
