from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog
import time
import uvicorn

from volunteerhub import __version__
from volunteerhub.core.config import get_settings
from volunteerhub.core.errors import DomainError
from volunteerhub.core.logging import setup_logging
from volunteerhub.database.database import engine, init_db, close_db
from volunteerhub.api.projects import router as projects_router
from volunteerhub.api.tasks import router as tasks_router
from volunteerhub.api.applications import router as applications_router
from volunteerhub.api.donations import router as donations_router
from volunteerhub.api.reports import router as reports_router
from volunteerhub.api.users import router as users_router
from volunteerhub.middleware.tracing import init_tracing
from volunteerhub.middleware.metrics import MetricsMiddleware, metrics_endpoint, domain_errors_total
from volunteerhub.middleware.logging import logging_middleware

setup_logging()

logger = structlog.get_logger(__name__)
settings = get_settings()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Volunteer Hub API for projects, tasks, applications and donations",
    version=__version__,
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize tracing (must be done before startup events)
init_tracing(app, engine)

# Add metrics middleware
app.add_middleware(MetricsMiddleware)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Logging middleware with trace correlation"""
    return await logging_middleware(request, call_next)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Render domain errors as {"error", "message"} with their HTTP status"""
    domain_errors_total.labels(error=exc.code).inc()
    logger.info(
        "Request rejected",
        error=exc.code,
        message=exc.message,
        method=request.method,
        path=request.url.path
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        method=request.method,
        url=str(request.url)
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred"
        }
    )


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    logger.info(
        "Starting Volunteer Hub",
        service_name=settings.service_name,
        degraded_mode=settings.degraded_mode
    )

    try:
        init_db()
        logger.info("Application startup completed successfully")
    except Exception as e:
        logger.error("Failed to initialize application", error=str(e))
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown"""
    logger.info("Shutting down Volunteer Hub")
    close_db()


# Health check endpoints
@app.get("/health")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "timestamp": time.time()
    }


@app.get("/metrics")
async def metrics(request: Request):
    """Prometheus metrics endpoint"""
    return await metrics_endpoint(request)


@app.get("/health/ready")
def readiness_check():
    """Readiness check against the configured store"""
    health_status = {
        "status": "ready",
        "service": settings.service_name,
        "timestamp": time.time(),
        "database": "disconnected",
        "degraded_mode": settings.degraded_mode
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as db_e:
        logger.warning("Database health check failed", error=str(db_e))
        health_status["database"] = f"error: {str(db_e)}"
        health_status["status"] = "not ready"
        return JSONResponse(status_code=503, content=health_status)

    return health_status


# Include routers
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(applications_router)
app.include_router(donations_router)
app.include_router(reports_router)
app.include_router(users_router)


if __name__ == "__main__":
    uvicorn.run(
        "volunteerhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug"
    )
