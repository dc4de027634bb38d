"""
Monitoring module: Prometheus metrics and the request metrics middleware.
"""
from .prometheus import (
    http_requests_total,
    http_request_duration,
    activity_events_total,
    auth_attempts_total,
    db_pool_connections,
    errors_total,
    rate_limit_violations_total,
    update_db_pool_metrics,
)

from .middleware import metrics_middleware, normalize_endpoint

__all__ = [
    'http_requests_total',
    'http_request_duration',
    'activity_events_total',
    'auth_attempts_total',
    'db_pool_connections',
    'errors_total',
    'rate_limit_violations_total',
    'update_db_pool_metrics',
    'metrics_middleware',
    'normalize_endpoint',
]
