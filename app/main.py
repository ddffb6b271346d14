"""
Main FastAPI application for the PaperFix backend.
Handles CORS, request logging middleware, lifespan events, error mapping and
router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import close_db, init_db
from app.routers import documents, export, generation, health, templates, users
from app.services.exceptions import (
    ExportError,
    GenerationError,
    PaperFixError,
    TemplateNotFoundError,
    ValidationError,
    WorkflowStateError,
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise DB tables and verify the connection.  Returns True on success."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


def _check_providers() -> None:
    """Warn about missing provider keys.  Only presence is checked, never the value."""
    if settings.GEMINI_API_KEY:
        logger.info("✓ LLM provider key configured (model: %s)", settings.GEMINI_MODEL)
    else:
        logger.warning("⚠ GEMINI_API_KEY not set; generation and editing will fail")

    if settings.RESEND_API_KEY:
        logger.info("✓ Email provider key configured (from: %s)", settings.RESEND_FROM_EMAIL)
    else:
        logger.warning("⚠ RESEND_API_KEY not set; emailing documents will fail")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting PaperFix backend …")
    logger.info("=" * 60)

    # Database is required; raises on failure
    await _check_database()

    # Provider keys are optional; missing ones only log warnings
    _check_providers()

    logger.info("=" * 60)
    logger.info("  PaperFix backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down PaperFix backend …")
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="PaperFix API",
    description=(
        "**PaperFix** — AI-assisted generation of legal and business documents.\n\n"
        "Pick a template, answer its questionnaire, get a complete document, "
        "refine it with natural-language instructions, then save, download "
        "or email it.\n\n"
        "Key endpoints:\n"
        "- `GET  /api/templates` — template catalog\n"
        "- `POST /api/generate` — generate a document (SSE with `Accept: text/event-stream`)\n"
        "- `POST /api/edit` — apply an edit instruction\n"
        "- `POST /api/documents/drafts` — create or refresh a draft\n"
        "- `POST /api/download` — PDF export\n"
        "- `POST /api/email` — email the PDF\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

def _status_for(exc: PaperFixError, path: str) -> int:
    if isinstance(exc, TemplateNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, WorkflowStateError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, GenerationError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, ExportError):
        # Rendering is local; only the email provider is upstream
        return status.HTTP_502_BAD_GATEWAY if path.endswith("/email") else status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(PaperFixError)
async def paperfix_exception_handler(request: Request, exc: PaperFixError):
    """Map service errors to HTTP statuses with a structured JSON body."""
    status_code = _status_for(exc, request.url.path)
    log = logger.warning if status_code < 500 else logger.error
    log("%s on %s %s: %s", exc.__class__.__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,      prefix="/api/health",    tags=["Health"])
app.include_router(templates.router,   prefix="/api/templates", tags=["Templates"])
app.include_router(generation.router,  prefix="/api",           tags=["Generation"])
app.include_router(export.router,      prefix="/api",           tags=["Export"])
app.include_router(documents.router,   prefix="/api/documents", tags=["Documents"])
app.include_router(users.router,       prefix="/api/users",     tags=["Users"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "PaperFix API",
        "version": "0.1.0",
        "description": "AI Document Generation Backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "templates": "/api/templates",
            "generate": "/api/generate",
            "edit": "/api/edit",
            "generate_document": "/api/generate-document",
            "update_document": "/api/update-document",
            "documents": "/api/documents",
            "download": "/api/download",
            "email": "/api/email",
            "users": "/api/users/me",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
