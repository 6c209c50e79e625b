"""
RAILCURVE - MAIN API SERVER
===========================

FastAPI application serving the curve engine to a renderer.

Features:
- Track editing (drag, insert, remove control points)
- Per-frame placement of a train and its cars
- Rails, ties and arc-length table for drawing
- Health checks
- Graceful shutdown

Usage:
    uvicorn railcurve.app.main:app --reload --port 8000
    python -m railcurve
"""
from __future__ import annotations

import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from railcurve import __version__
from railcurve.app.api import frames, tracks
from railcurve.app.models import HealthResponse, StatsResponse, ErrorResponse
from railcurve.config import get_config
from railcurve.core.curve import CurveError, SplineEvaluator, ArcLengthTable
from railcurve.logging_config import setup_logging
from railcurve.services import get_driver, close_driver
from railcurve.store import get_store, close_store


logger = logging.getLogger("railcurve.app")


# ============================================================================
# APPLICATION LIFECYCLE
# ============================================================================

# Global startup time for uptime tracking
_startup_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.

    Startup:
    - Load configuration
    - Initialize track store
    - Initialize frame driver

    Shutdown:
    - Drop tracks and cached curve data
    """
    global _startup_time

    config = get_config()
    setup_logging(config.server.log_level, config.server.log_file)

    logger.info("=" * 60)
    logger.info(" RAILCURVE - STARTING")
    logger.info("=" * 60)

    _startup_time = time.time()

    logger.info("[Startup] Initializing track store...")
    store = await get_store(config.track.default_points)
    stats = await store.get_stats()
    logger.info("[Startup] Track store ready: %d tracks", stats['tracks'])

    logger.info("[Startup] Initializing frame driver...")
    get_driver(
        sample_step=config.track.sample_step,
        boundary_epsilon=config.placement.boundary_epsilon,
        tangent_epsilon=config.placement.tangent_epsilon
    )
    logger.info(
        "[Startup] Frame driver ready: step=%.3f, mode=%s",
        config.track.sample_step, config.placement.mode.value
    )

    logger.info(" RAILCURVE - READY (docs at /docs)")

    yield  # Application runs here

    logger.info("[Shutdown] Closing track store...")
    await close_store()

    logger.info("[Shutdown] Closing frame driver...")
    close_driver()

    logger.info("[Shutdown] Cleanup complete")


# ============================================================================
# APPLICATION SETUP
# ============================================================================

app = FastAPI(
    title="Railcurve API",
    description="Closed Catmull-Rom tracks with arc-length parameterized motion",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS Middleware (allow web clients)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# MIDDLEWARE (Request Logging)
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all HTTP requests with timing.

    Format: [METHOD] /path - 200 (12.3ms)
    """
    start_time = time.time()

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    logger.info("[%s] %s - %d (%.1fms)",
                request.method, request.url.path, response.status_code, duration_ms)

    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(CurveError)
async def curve_error_handler(request: Request, exc: CurveError):
    """Curve errors come from bad control points: 422 with the error code."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=exc.code,
            message=str(exc)
        ).model_dump()
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    """Handle 404 Not Found."""
    detail = getattr(exc, "detail", None)
    if not detail or detail == "Not Found":
        detail = f"Endpoint {request.url.path} not found"

    return JSONResponse(
        status_code=404,
        content=ErrorResponse(
            error="not_found",
            message=detail
        ).model_dump()
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    """Handle 500 Internal Server Error."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred",
            details={"exception": str(exc)}
        ).model_dump()
    )


# ============================================================================
# ROUTERS
# ============================================================================

app.include_router(tracks.router)
app.include_router(frames.router)


@app.get("/api", tags=["system"])
async def api_root():
    """
    Root endpoint with API information.

    Returns:
        {
            "service": "Railcurve API",
            "version": "1.0.0",
            "docs": "/docs"
        }
    """
    return {
        "service": "Railcurve API",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "tracks": "/tracks",
            "frame": "/tracks/{track_id}/frame",
            "geometry": "/tracks/{track_id}/geometry",
            "table": "/tracks/{track_id}/table",
            "health": "/health"
        }
    }


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """
    Health check.

    Checks:
    - Track store reachable
    - Curve engine evaluates the default track

    Example:
        GET /health

    Returns:
        {
            "status": "healthy",
            "store": {"ready": true, "tracks": 2},
            "engine": {"ready": true, "default_length": 1534.2},
            "version": "1.0.0",
            "uptime_seconds": 3600.5
        }
    """
    config = get_config()

    try:
        store = await get_store(config.track.default_points)
        store_stats = await store.get_stats()
        store_health = {"ready": True, "tracks": store_stats["tracks"]}
    except Exception as e:
        store_health = {"ready": False, "error": str(e)}

    try:
        evaluator = SplineEvaluator(config.track.default_points)
        table = ArcLengthTable.build(evaluator, config.track.sample_step)
        engine_health = {"ready": True, "default_length": table.total_length}
    except CurveError as e:
        engine_health = {"ready": False, "error": e.code}

    if store_health["ready"] and engine_health["ready"]:
        status = "healthy"
    elif store_health["ready"] or engine_health["ready"]:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        store=store_health,
        engine=engine_health,
        version=__version__,
        uptime_seconds=time.time() - _startup_time if _startup_time else 0.0
    )


@app.get("/stats", response_model=StatsResponse, tags=["system"])
async def system_stats():
    """
    System statistics and performance metrics.

    Example:
        GET /stats

    Returns:
        {
            "store": {"tracks": 2, "control_points": 9, "revisions": 14},
            "frames": {"frames": 1523, "skipped_frames": 0, "table_builds": 14, ...},
            "performance": {"uptime_seconds": 3600.5}
        }
    """
    config = get_config()
    store = await get_store(config.track.default_points)
    driver = get_driver(
        sample_step=config.track.sample_step,
        boundary_epsilon=config.placement.boundary_epsilon,
        tangent_epsilon=config.placement.tangent_epsilon
    )

    return StatsResponse(
        store=await store.get_stats(),
        frames=driver.get_stats(),
        performance={
            "uptime_seconds": time.time() - _startup_time if _startup_time else 0.0
        }
    )


# ============================================================================
# MAIN (for direct execution)
# ============================================================================

def run() -> None:
    """Serve the API with uvicorn using the [server] config section."""
    import uvicorn

    server = get_config().server
    uvicorn.run(
        "railcurve.app.main:app",
        host=server.host,
        port=server.port,
        reload=server.reload,
        log_level=server.log_level
    )


if __name__ == "__main__":
    run()
