"""
Device Check API - Main Application.

FastAPI application exposing the device check endpoint and the payment
notification webhook, with CORS enabled for browser clients.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.dependencies import get_settings
from api.models import HealthResponse
from domain.check_result import ErrorKind

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("api.main")

# Create FastAPI application
app = FastAPI(
    title="Device Check API",
    description="Payment-gated, cached access to the device verification API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render malformed request bodies in the same {"error": ...} shape as business errors."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions with generic error response."""
    logger.exception("Unhandled exception on %s", request.url.path)
    return JSONResponse(
        status_code=ErrorKind.INTERNAL_ERROR.status_code,
        content={"error": "Internal server error"},
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "device-check-api"
    }


# Import and include routers
from api.routers import device_checks, payment_hooks

app.include_router(device_checks.router, tags=["Device Checks"])
app.include_router(payment_hooks.router, tags=["Payments"])
