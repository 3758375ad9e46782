"""
Rental Repairs API - Main Application
Tenant maintenance requests, worker scheduling and availability
"""
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.orm import Session
import logging
from datetime import datetime, timezone
import traceback

from rental_repairs.api.routes import tenant_requests_router, workers_router
from rental_repairs.core.config import log_level, settings
from rental_repairs.core.exceptions import (
    ConcurrencyConflictError,
    DomainError,
    DuplicateWorkerError,
    InvalidTransitionError,
    NotFoundError,
)
from rental_repairs.database import close_db_connection, get_db, init_db, test_connection


# Configure logging
logging.basicConfig(
    level=log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.PROJECT_DESCRIPTION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


# ==================== MIDDLEWARE ====================


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)


# ==================== ROUTERS ====================


app.include_router(tenant_requests_router, prefix="/api/tenant-requests", tags=["Tenant Requests"])
app.include_router(workers_router, prefix="/api/workers", tags=["Workers"])


# ==================== ERROR HANDLERS ====================


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    """Lifecycle rule violated; not retryable"""
    logger.warning(f"[TRANSITION] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"success": False, **exc.to_dict()},
    )


@app.exception_handler(DuplicateWorkerError)
async def duplicate_worker_handler(request: Request, exc: DuplicateWorkerError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"success": False, **exc.to_dict()},
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Malformed request or assignment data"""
    logger.warning(f"[VALIDATION] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, **exc.to_dict()},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "detail": str(exc)},
    )


@app.exception_handler(ConcurrencyConflictError)
async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflictError):
    logger.warning(f"[CONFLICT] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"success": False, "code": "concurrency_conflict", "detail": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed response"""
    logger.warning(f"Validation error on {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "detail": "Validation error",
            "errors": jsonable_errors(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold exception instances that JSON cannot encode
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

    # Don't expose internal errors in production
    error_message = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "detail": error_message,
            "timestamp": _timestamp()
        }
    )


# ==================== HEALTH & STATUS ENDPOINTS ====================


@app.get("/", tags=["System"])
async def root():
    """Root endpoint - API information"""
    return {
        "success": True,
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": "/api/docs",
        "status": "operational",
    }


@app.get("/health", tags=["System"])
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint for monitoring"""
    try:
        db.execute(text("SELECT 1"))
        return {
            "success": True,
            "status": "healthy",
            "database": "connected",
            "timestamp": _timestamp(),
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "status": "unhealthy",
                "error": str(e),
                "timestamp": _timestamp()
            }
        )


# ==================== STARTUP & SHUTDOWN ====================


@app.on_event("startup")
async def startup_event():
    """Run on application startup"""
    logger.info("="*70)
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info("="*70)

    if settings.TESTING:
        logger.info("[STARTUP] Testing mode - skipping database initialization")
        return

    logger.info("Testing database connection...")
    if test_connection():
        logger.info("Initializing database tables...")
        init_db()
    else:
        logger.warning("[WARN] Database connection failed - continuing in degraded mode")

    logger.info("[OK] Application startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown"""
    logger.info("Shutting down application...")
    close_db_connection()
    logger.info("Application shutdown complete")


# ==================== REQUEST LOGGING ====================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests"""
    # Skip logging for health checks
    if request.url.path in ["/health"]:
        return await call_next(request)

    start_time = datetime.now(timezone.utc)
    client = request.client.host if request.client else "-"
    logger.info(f">> {request.method} {request.url.path} - {client}")

    response = await call_next(request)
    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(f"<< {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response
