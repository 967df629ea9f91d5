import logging
import time
import uuid

from fastapi import Request

from observability.logger import LOGGER_NAME
from observability.metrics import INFLIGHT, REQUESTS_TOTAL, REQUEST_LATENCY
from store.request_ctx import current_request_id


async def metrics_and_logging_middleware(request: Request, call_next):
    start = time.perf_counter()
    INFLIGHT.inc()

    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = current_request_id.set(request_id)

    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        current_request_id.reset(token)
        INFLIGHT.dec()
        elapsed = time.perf_counter() - start

        endpoint = request.url.path
        method = request.method

        REQUESTS_TOTAL.labels(endpoint=endpoint, method=method, status=str(status_code)).inc()
        REQUEST_LATENCY.labels(endpoint=endpoint, method=method).observe(elapsed)
        log = logging.getLogger(LOGGER_NAME)
        log.info("request",
                 extra={
                        "request_id": request_id,
                        "method": method,
                        "path": endpoint,
                        "status": status_code,
                        "latency_s": round(elapsed, 4),
                    })
