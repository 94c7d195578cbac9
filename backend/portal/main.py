"""
Madrassati Portal - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps domain errors to HTTP responses
5. Registers all API route handlers

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (access broker, store, roster import)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import os
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from portal.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from portal.errors import PortalError, StoreFailure
from portal.routes import auth, students, admin, records, roster
from portal.database import DATABASE_URL, create_tables, ensure_default_school

# Import all models so they are registered with Base.metadata
import portal.models  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")
db_logger = get_logger("db")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite: creating tables directly")
    create_tables()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_default_school()
    logger.info("Madrassati portal ready")
    yield


# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="Madrassati Portal",
    description=(
        "School portal backend: binds student codes to a single device and "
        "gates grade visibility behind admin-approved access requests."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a unique UUID per incoming request, stores it in a
# context variable for every log entry, returns it in the
# X-Request-ID header and logs request latency.
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", "")
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


# ──────────────────────────────────────────────────────────────
# Error handlers
#
# Domain errors keep the {success: false, message} body the
# mobile client reads. Store failures are logged and answered
# with a generic 500; nothing is retried.
# ──────────────────────────────────────────────────────────────
@app.exception_handler(StoreFailure)
async def store_failure_handler(request: Request, exc: StoreFailure):
    log_with_context(db_logger, "ERROR",
        f"Store failure on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    log_with_context(db_logger, "ERROR",
        f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(auth.router, tags=["Login"])
app.include_router(students.router, tags=["Students"])
app.include_router(admin.router, tags=["Admin"])
app.include_router(records.router, tags=["Records"])
app.include_router(roster.router, tags=["Roster"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "madrassati-portal", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Madrassati Portal",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "login": "POST /api/login",
            "student_view": "GET /api/my-grades/{student_id}",
            "students": "GET /api/students",
            "requests": "GET /api/admin/requests",
            "approve": "POST /api/admin/approve",
            "reject": "POST /api/admin/reject",
            "reset": "POST /api/admin/reset",
            "roster_upload": "POST /upload",
            "grades": "POST /api/grades",
            "absences": "POST /api/absences",
            "notifications": "POST /api/notifications"
        }
    }
