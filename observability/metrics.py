from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST, CollectorRegistry
from fastapi import APIRouter
from fastapi.responses import Response

REGISTRY = CollectorRegistry(auto_describe=True)

REQUESTS_TOTAL = Counter(
    "mql_requests_total",
    "Total number of HTTP requests",
    ["endpoint", "method", "status"],
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "mql_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint", "method"],
    registry=REGISTRY,
)

LLM_LATENCY = Histogram(
    "mql_llm_latency_seconds",
    "Text backend invocation latency in seconds",
    ["model", "stage"],
    registry=REGISTRY,
)

LLM_ERRORS_TOTAL = Counter(
    "mql_llm_errors_total",
    "Total text backend errors",
    ["model", "stage", "error_type"],
    registry=REGISTRY,
)

TRANSLATIONS_TOTAL = Counter(
    "mql_translations_total",
    "Translation requests by mode and outcome",
    ["mode", "outcome"],
    registry=REGISTRY,
)

SANITIZER_FALLBACK_TOTAL = Counter(
    "mql_sanitizer_fallback_total",
    "Backend responses that needed fallback JSON extraction",
    ["result"],
    registry=REGISTRY,
)

INFLIGHT = Gauge(
    "mql_inflight_requests",
    "Number of in-flight requests",
    registry=REGISTRY,
)

metrics_router = APIRouter()


@metrics_router.get("/metrics")
def metrics():
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
