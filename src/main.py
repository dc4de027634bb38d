"""
Project Management API - Main Application Entry Point

FastAPI application serving the /api REST surface, health checks and
Prometheus metrics.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from config import settings
from .database import init_database, close_database, get_database
from .middleware.slowapi_limiter import setup_rate_limiting
from .monitoring import metrics_middleware, update_db_pool_metrics
from .utils.datetime_utils import utc_now
from .web.errors import register_exception_handlers
from .web.routes import router as api_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown."""
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    if await init_database():
        logger.info("Database initialized")
    else:
        logger.warning("Database not configured or failed to initialize")

    yield

    logger.info("Shutting down...")
    try:
        await close_database()
    except Exception as e:
        logger.warning(f"Failed to close database during shutdown: {e}")

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Projects, Kanban boards, activity feed and reports",
    version=settings.app_version,
    lifespan=lifespan,
    openapi_url="/api/openapi.json",
    docs_url="/api-docs",
    redoc_url=None,
)

# Rate limiting (disabled in the test environment)
limiter = setup_rate_limiting(app, settings)

# Request logging and metrics
app.middleware("http")(metrics_middleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/api/health", tags=["Health"])
@limiter.exempt
async def health_check(request: Request):
    """Liveness check."""
    return {
        "status": "success",
        "message": "Server is running",
        "timestamp": utc_now().isoformat(timespec="milliseconds") + "Z",
        "environment": settings.environment,
    }


@app.get("/api/health/db", tags=["Health"])
@limiter.exempt
async def db_health(request: Request):
    """Database connectivity and connection pool status."""
    health = await get_database().health_check()
    update_db_pool_metrics(health.get("pool", {}))

    if health.get("status") != "healthy":
        return JSONResponse(status_code=503, content={"status": "error", "data": health})
    return {"status": "success", "data": health}


@app.get("/metrics", include_in_schema=False)
@limiter.exempt
async def metrics(request: Request):
    """Prometheus exposition."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
