"""
Job Board - Main Application

FastAPI backend with:
- MongoDB for all durable data
- External ML service for resume parsing and job matching
- Email (console or SMTP) for OTPs, resets, interviews and invites
- JWT authentication

Run: uvicorn jobboard.main:app --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobboard import __version__
from jobboard.api import api_router
from jobboard.core.config import get_settings
from jobboard.core.errors import AppError, InternalError
from jobboard.core.log_config import setup_logging
from jobboard.db.mongodb import init_mongo_indexes, test_mongo_connection
from jobboard.schemas.schemas import ErrorResponse

settings = get_settings()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Job Board",
    description="""
    Job board backend for students, recruiters and admins.

    ## Features
    - **Authentication**: OTP-verified registration, JWT sessions, password reset
    - **Jobs**: Recruiters post and manage jobs; search with filters
    - **Applications**: Apply with a resume snapshot, fit score, status workflow, interviews
    - **Resumes**: Upload, ML parsing, job recommendations
    - **Recruiter insights**: Analytics, skill gap, applicants
    - **Admin**: User/job oversight, invites, audit log, analytics
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes; every error body is {"detail", "code"}
app.include_router(
    api_router,
    prefix="/api",
    responses={status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 409, 500, 502)}
)


# ============================================================
# ERROR HANDLERS
# ============================================================

def _error_response(exc: AppError) -> JSONResponse:
    body = ErrorResponse(detail=exc.message, code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    body = ErrorResponse(detail="; ".join(problems), code="validation_error")
    return JSONResponse(status_code=400, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(InternalError())


# Startup event
@app.on_event("startup")
async def startup_event():
    """Configure logging, create MongoDB indexes and the upload directory."""
    setup_logging(settings.log_level)
    os.makedirs(settings.upload_dir, exist_ok=True)
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "version": __version__,
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
    }
