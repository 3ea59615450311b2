"""
Structured request logging with trace correlation
"""
import time
import uuid
from fastapi import Request
from opentelemetry import trace
import structlog

logger = structlog.get_logger(__name__)


async def logging_middleware(request: Request, call_next):
    """Log all HTTP requests with a request id and the current trace id"""
    start_time = time.time()
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id

    span = trace.get_current_span()
    trace_id = ""
    if span and span.get_span_context().is_valid:
        trace_id = format(span.get_span_context().trace_id, '032x')

    structlog.contextvars.bind_contextvars(request_id=request_id, trace_id=trace_id)
    try:
        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else "",
            client_ip=request.client.host if request.client else None,
            acting_user=request.headers.get("x-user-id", ""),
        )

        response = await call_next(request)

        latency = time.time() - start_time
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            latency_seconds=round(latency, 3),
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        structlog.contextvars.unbind_contextvars("request_id", "trace_id")
