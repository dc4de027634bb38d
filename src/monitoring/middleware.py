"""
Request logging and metrics middleware.

Logs one line per request (METHOD path -> status (ms)) outside the test
environment and records the HTTP counters and latency histogram.
"""
import re
import time
import logging
from fastapi import Request

from config import settings
from .prometheus import (
    http_requests_total,
    http_request_duration,
    errors_total,
)

logger = logging.getLogger(__name__)

_UUID_RE = re.compile(
    r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
)


async def metrics_middleware(request: Request, call_next):
    """
    Collect HTTP metrics for all requests.

    Tracks:
    - Request counts by method, endpoint, status code
    - Request duration by method, endpoint
    - 4xx/5xx responses and unhandled exceptions
    """
    start_time = time.perf_counter()
    normalized_path = normalize_endpoint(request.url.path)

    try:
        response = await call_next(request)
    except Exception as e:
        _record_error(exception=e)
        raise

    duration = time.perf_counter() - start_time

    http_requests_total.labels(
        method=request.method,
        endpoint=normalized_path,
        status=response.status_code
    ).inc()

    http_request_duration.labels(
        method=request.method,
        endpoint=normalized_path
    ).observe(duration)

    if response.status_code >= 400:
        _record_error(status_code=response.status_code)

    if not settings.is_test:
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({duration * 1000:.1f}ms)"
        )

    return response


def _record_error(exception: Exception = None, status_code: int = None):
    error_type = "http_error"
    severity = "unknown"

    if exception:
        error_type = type(exception).__name__
        severity = "critical"
    elif status_code:
        if 400 <= status_code < 500:
            error_type = "http_4xx"
            severity = "warning"
        elif 500 <= status_code < 600:
            error_type = "http_5xx"
            severity = "critical"

    errors_total.labels(type=error_type, severity=severity).inc()


def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint paths to reduce cardinality.

    Examples:
    - /api/projects/6f1c...-...-b2 -> /api/projects/{id}
    - /api/projects/{uuid}/tasks/{uuid} -> /api/projects/{id}/tasks/{id}
    """
    normalized = []
    for part in path.split('/'):
        if _UUID_RE.match(part) or (part.isdigit() and len(part) > 3):
            normalized.append('{id}')
        else:
            normalized.append(part)

    return '/'.join(normalized)
