"""
Imprint API - Main FastAPI Application Entry Point

Aesthetic discovery backend for design studios.
Combines all routers and middleware into a single FastAPI application.

Run with:
    uvicorn imprint.api.main:app --host 0.0.0.0 --port 8000
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from imprint.api.routes_discovery import router as discovery_router
from imprint.api.routes_studio import router as studio_router
from imprint.config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Imprint API",
    description="Aesthetic discovery sessions for interior design studios",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for MVP -- restrict in production)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions and return structured JSON error responses."""
    error_type = type(exc).__name__

    error_messages = {
        "ValueError": "Invalid request. Please check the submitted data.",
        "FileNotFoundError": "File not found.",
        "KeyError": "Requested item not found.",
        "LookupError": "Requested item not found.",
        "ConnectionError": "Could not reach a backing service.",
        "TimeoutError": "The request took too long.",
    }

    message = error_messages.get(error_type, "An unexpected error occurred.")

    logger.error("%s: %s | Path: %s", error_type, exc, request.url.path, exc_info=exc)

    status_code = 500
    if isinstance(exc, ValueError):
        status_code = 400
    elif isinstance(exc, (FileNotFoundError, LookupError)):
        status_code = 404

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": message,
            "detail": str(exc) if status_code < 500 else None,
        },
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(discovery_router)
app.include_router(studio_router)


# ---------------------------------------------------------------------------
# Root & health-check endpoints
# ---------------------------------------------------------------------------
@app.get("/")
async def root():
    """Root endpoint returning basic API information."""
    return {
        "name": "Imprint API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


# ---------------------------------------------------------------------------
# Convenience: run directly with `python -m imprint.api.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("imprint.api.main:app", host="0.0.0.0", port=8000, reload=True)
