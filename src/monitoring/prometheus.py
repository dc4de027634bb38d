"""
Prometheus metrics for monitoring.

Exposed on GET /metrics by src/main.py.
"""
from prometheus_client import Counter, Histogram, Gauge, Info
import logging

from config import settings

logger = logging.getLogger(__name__)

# HTTP Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration',
    ['method', 'endpoint']
)

# Domain Metrics
activity_events_total = Counter(
    'activity_events_total',
    'Activity events recorded',
    ['action']
)

auth_attempts_total = Counter(
    'auth_attempts_total',
    'Register and login attempts',
    ['operation', 'outcome']  # register/login, success/failure
)

# Database Metrics
db_pool_connections = Gauge(
    'db_pool_connections',
    'Database pool connections',
    ['state']  # checked_in, checked_out, overflow
)

# Error Metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['type', 'severity']
)

# Rate Limiting Metrics
rate_limit_violations_total = Counter(
    'rate_limit_violations_total',
    'Total rate limit violations by endpoint',
    ['endpoint']
)

# System Info
app_info = Info('app', 'Application information')
app_info.info({
    'name': 'project-management-api',
    'version': settings.app_version,
})


def update_db_pool_metrics(pool_status: dict):
    """Update pool gauges from Database.get_pool_status() output."""
    for state in ('checked_in', 'checked_out', 'overflow'):
        if state in pool_status:
            db_pool_connections.labels(state=state).set(pool_status[state])
