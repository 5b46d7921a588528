"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.job_routes import router as job_router
from app.api.routes.application_routes import router as application_router
from app.schemas.schemas import ErrorResponse, ValidationErrorResponse

# Bodies produced by the handlers in app.main
error_responses = {
    400: {"model": ValidationErrorResponse, "description": "Invalid request or conflicting state"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Unauthorized"},
    404: {"model": ErrorResponse, "description": "Not found"},
    500: {"model": ErrorResponse, "description": "Storage or upstream failure"},
}

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router, responses=error_responses)
api_router.include_router(job_router, responses=error_responses)
api_router.include_router(application_router, responses=error_responses)
