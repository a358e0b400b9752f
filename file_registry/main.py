"""
Main application entry point for the file registry API.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.errors import (
    DomainNotFoundError,
    FileNotFoundError,
    FileRegistryError,
    InvalidPathError,
    StorageError,
)
from .core.lifespan import lifespan

from .api.routers import files
from .api.routers import attachments

logger = logging.getLogger(__name__)


# Create the main app instance
app = FastAPI(
    title="File Registry API",
    description="Domain-scoped file storage, attachment and download service",
    version="1.0.0",
    lifespan=lifespan  # Use the lifespan context manager
)


@app.exception_handler(DomainNotFoundError)
@app.exception_handler(InvalidPathError)
@app.exception_handler(FileNotFoundError)
async def not_found_handler(_request: Request, exc: FileRegistryError):
    """Unknown domains, unusable paths and missing files are all reported as 404."""
    logger.info("Not found: %s", exc.message)
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(StorageError)
async def storage_error_handler(_request: Request, exc: StorageError):
    logger.error("Storage failure: %s", exc.message, exc_info=exc.original_error)
    return JSONResponse(status_code=500, content={"detail": "Storage failure"})


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"ok": True}


# Include routers
app.include_router(files.router)
app.include_router(attachments.router)
