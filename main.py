"""
Classroom API

Main FastAPI application for the classroom management system: teachers
create classes and assignments, students enroll and submit work, teachers
grade submissions, and discussion threads attach to submissions.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, setup_logging
from database import init_db, get_db_context
from services import ClassroomError, ensure_admin
from api import (
    auth_router,
    profile_router,
    users_router,
    classes_router,
    assignments_router,
    submissions_router,
)

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


# --------------- Lifespan ---------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler – initialise DB and seed the bootstrap admin on startup."""
    logger.info("Initializing database...")
    init_db()
    if settings.admin_email and settings.admin_password:
        with get_db_context() as db:
            ensure_admin(db, settings.admin_email, settings.admin_password, settings.admin_name)
    logger.info("Database initialized.")
    yield


# --------------- FastAPI app ---------------

app = FastAPI(
    title="Classroom API",
    description="""
API for running classes, assignments, submissions and grading.

### Roles
- **Students**: join classes by code, submit work, read their own submissions
- **Teachers**: create classes and assignments, grade submissions in their classes
- **Admins**: manage users and roles, and pass every ownership check

### Authorization
- Every request resolves the acting user from the bearer token first
- A role gate then admits or rejects the role
- Ownership and membership checks run against freshly loaded records
- 401 means log in again, 403 means no access, 404 means it does not exist
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClassroomError)
async def classroom_exception_handler(request: Request, exc: ClassroomError):
    """Render domain errors with their own status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": type(exc).__name__}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc) if settings.debug else "Internal server error", "type": type(exc).__name__}
    )


# Include routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(users_router)
app.include_router(classes_router)
app.include_router(assignments_router)
app.include_router(submissions_router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - API health check."""
    return {
        "status": "online",
        "service": "Classroom API",
        "version": "1.0.0"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
