"""
Slowapi-based rate limiting.

Every route gets the default limit RATE_LIMIT_MAX per RATE_LIMIT_WINDOW_MS,
keyed by client IP. Counters live in Redis when REDIS_URL is set (shared
between workers), in process memory otherwise. Disabled in the test
environment.
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def default_limit(config: Settings) -> str:
    """Limit string understood by `limits`, e.g. "100 per 900 seconds"."""
    window_seconds = max(1, config.rate_limit_window_ms // 1000)
    return f"{config.rate_limit_max} per {window_seconds} seconds"


def create_limiter(config: Settings = None) -> Limiter:
    """
    Create and configure the slowapi Limiter.

    Args:
        config: Settings to read limits and storage from (defaults to the
            process settings)
    """
    config = config or default_settings

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[default_limit(config)],
        storage_uri=config.redis_url or "memory://",
        headers_enabled=True,
        enabled=not config.is_test,
    )

    if config.is_test:
        logger.info("Rate limiting disabled in test environment")
    elif config.redis_url:
        logger.info("Rate limiting configured with Redis backend")
    else:
        logger.warning("Rate limiting using in-memory storage (not distributed)")

    return limiter


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the standard error body, with the limiter's Retry-After headers."""
    from ..monitoring import rate_limit_violations_total
    from ..monitoring.middleware import normalize_endpoint

    rate_limit_violations_total.labels(endpoint=normalize_endpoint(request.url.path)).inc()
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}")

    # slowapi's own handler adds the X-RateLimit-* and Retry-After headers
    limited = _rate_limit_exceeded_handler(request, exc)
    headers = {
        name: value
        for name, value in limited.headers.items()
        if name.lower() not in ("content-length", "content-type")
    }
    return JSONResponse(
        status_code=429,
        content={"status": "fail", "message": RATE_LIMIT_MESSAGE},
        headers=headers,
    )


def setup_rate_limiting(app, config: Settings = None) -> Limiter:
    """
    Attach the limiter, its 429 handler and the middleware enforcing
    the default limits.
    """
    limiter = create_limiter(config)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(f"Slowapi rate limiting enabled: {default_limit(config or default_settings)}")
    return limiter
