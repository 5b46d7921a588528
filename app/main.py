"""
Student Placement Portal - Main Application

FastAPI backend with:
- Passwordless login with emailed one-time codes
- Server-side sessions behind an HttpOnly cookie
- Job postings by admins, applications by students
- In-memory or PostgreSQL storage, chosen at startup

Run: uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import api_router
from app.core.config import Settings, get_settings
from app.core.exceptions import PortalError
from app.core.logging_config import setup_logging
from app.db import build_storage
from app.db.storage import Storage
from app.services.email_service import EmailService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage: Storage = app.state.storage
    await storage.init()
    logger.info("Storage backend '%s' ready", storage.name)
    yield
    await storage.close()


async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        loc = err["loc"]
        field = str(loc[-1]) if len(loc) > 1 else "body"
        errors[field] = err["msg"]

    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": errors}
    )


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    email_service: Optional[EmailService] = None
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Student Placement Portal",
        description="""
        Students browse job postings and apply; admins post jobs and
        accept or decline applications. Both log in with emailed OTP codes.
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Collaborators picked once per process
    app.state.settings = settings
    app.state.storage = storage or build_storage(settings)
    app.state.email_service = email_service or EmailService(settings)

    # Session cookie needs credentials; set explicit origins in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Detailed health check."""
        backend: Storage = request.app.state.storage
        return {
            "status": "healthy",
            "storage": backend.name,
            "storage_connected": await backend.ping()
        }

    return app


app = create_app()
