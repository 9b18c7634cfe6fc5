"""
FastAPI Backend for the Haunted Places directory.

Admin surface for triggering ingestion scans and reviewing duplicates.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import places, scans
from pipeline.config import get_settings
from pipeline.database import create_all_tables

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Haunted Places API...")
    if get_settings().api.create_tables:
        logger.info("[STARTUP] Creating database tables")
        create_all_tables()

    yield
    # Shutdown
    logger.info("Shutting down...")


settings = get_settings()

app = FastAPI(
    title="Haunted Places API",
    description="Ingestion scans and duplicate review for the haunted places directory",
    version=VERSION,
    debug=settings.api.debug,
    lifespan=lifespan,
)

# CORS - allow the admin frontend to connect (configured via API_CORS_ORIGINS env var)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# Include routers
app.include_router(scans.router, prefix="/api/scans", tags=["scans"])
app.include_router(places.router, prefix="/api/places", tags=["places"])


@app.get("/")
@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": VERSION,
        "commit": os.environ.get("BUILD_HASH", "unknown"),
        "service": "Haunted Places API",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.api.host, port=settings.api.port, reload=settings.api.reload)
