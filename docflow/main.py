"""
FastAPI application entry point for the docflow backend.

This module creates the FastAPI app instance, registers the error handlers
and includes all routers. Run it with `uvicorn docflow.main:app`.

Logging is configured once here; every module uses logging.getLogger(__name__).

PRIVACY RULES for all log calls:
- NEVER log base64 payloads, decoded document bytes or text extracted from PDFs
- NEVER log model responses in full, API keys or storage credentials
- Log sizes, resolved MIME types, filenames, branch decisions and error codes
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from docflow import __version__
from docflow.config import settings
from docflow.errors import DocflowError
from docflow.routes.documents import router as documents_router
from docflow.routes.health import router as health_router
from docflow.routes.invoices import router as invoices_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: Uses CORS_ALLOWED_ORIGINS (empty means none)
    - any other environment: Allows all origins for local dev

    Returns:
        List of allowed origin URLs, or ["*"] outside production.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed."
            )
        return list(origins)

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


# Create FastAPI app
app = FastAPI(
    title="Docflow API",
    description="Document intake service: image/PDF analysis and prefactura generation",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.exception_handler(DocflowError)
async def docflow_exception_handler(request: Request, exc: DocflowError):
    """Render domain errors as {"ok": false, "error", "code"} with their status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: [{exc.code}] {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Log schema validation errors for debugging.

    The request body is not logged: it may carry a whole document in base64.
    """
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "ok": False,
            "error": "Cuerpo de la petición inválido",
            "code": "request_validation_error",
            "details": jsonable_encoder(exc.errors()),
        }
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": "Error interno del servidor", "code": "internal_error"},
    )


# Configure CORS with environment-based origins
cors_origins = _get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(documents_router)
app.include_router(invoices_router)

logger.info("FastAPI app initialized successfully")
