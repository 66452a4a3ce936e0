"""
Email IR API Application

Main FastAPI application entry point.
"""

# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from email_ir.api.dependencies import init_pipeline
from email_ir.api.routes import get_api_router
from email_ir.config import get_settings
from email_ir.utils.security import SecurityHeadersMiddleware, sanitize_error_message
from email_ir.utils.validation import format_errors

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.app_name} API...")

    logger.info("=== Configuration ===")
    logger.info(f"  OpenAI: {'✓' if settings.openai_api_key else '✗'}")
    logger.info(f"  Anthropic: {'✓' if settings.anthropic_api_key else '✗'}")
    logger.info(f"  Provider: {settings.ai_provider}, fallback: {settings.ai_fallback_enabled}")
    logger.info(f"  Source API: {settings.default_api_base_url}")
    logger.info(f"  Storage: {settings.storage_type}")

    pipeline = init_pipeline(settings)
    client = pipeline.triage_classifier.inference
    if client.is_configured():
        logger.info(f"Inference client initialized with providers: {client.get_configured_providers()}")
    else:
        logger.warning("Inference client initialized but NO PROVIDERS CONFIGURED")
        logger.warning(f"  - OPENAI_API_KEY set: {bool(settings.openai_api_key)}")
        logger.warning(f"  - ANTHROPIC_API_KEY set: {bool(settings.anthropic_api_key)}")

    logger.info(f"{settings.app_name} API started successfully")

    yield

    # Shutdown
    logger.info(f"{settings.app_name} API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Email IR API",
    description="Email incident-response analysis pipeline",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(SecurityHeadersMiddleware)

# Include API routes
app.include_router(get_api_router())


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": "Email IR API",
        "description": "Email incident-response analysis pipeline",
        "version": settings.app_version,
        "docs": "/docs",
    }


# Root-level health check (for Docker/K8s)
@app.get("/health")
async def health():
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "email-ir-api",
        "version": settings.app_version,
    }


# Error handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed ingress before any stage runs."""
    details = format_errors(exc)
    logger.info(f"Rejected request to {request.url.path}: {len(details)} validation error(s)")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request",
            "details": details,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": sanitize_error_message(exc) if settings.debug else "An error occurred",
        },
    )


def run():
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "email_ir.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
