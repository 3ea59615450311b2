"""
Prometheus metrics for the Volunteer Hub service
"""
import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

logger = structlog.get_logger(__name__)

# HTTP metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Domain metrics
donations_total = Counter(
    'donations_total',
    'Number of donations recorded',
    ['anonymous']
)

donation_amount_total = Counter(
    'donation_amount_total',
    'Sum of donated amounts'
)

status_transitions_total = Counter(
    'status_transitions_total',
    'State machine transitions applied',
    ['entity', 'from_status', 'to_status']
)

domain_errors_total = Counter(
    'domain_errors_total',
    'Operations rejected with a domain error',
    ['error']
)


def record_transition(entity: str, from_status, to_status) -> None:
    status_transitions_total.labels(
        entity=entity,
        from_status=getattr(from_status, "value", from_status),
        to_status=getattr(to_status, "value", to_status),
    ).inc()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests"""

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time

        # Use the route template when available to keep label cardinality low
        endpoint = request.url.path
        route = request.scope.get('route')
        if route is not None and hasattr(route, 'path'):
            endpoint = route.path

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=str(response.status_code)
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        return response


async def metrics_endpoint(request: Request):
    """Endpoint to expose Prometheus metrics"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
