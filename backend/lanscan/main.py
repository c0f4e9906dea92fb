from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from .core.config import settings
from .core.logging import setup_logging
from .api.routes import router as api_router
from .scanner import ArpScanner, VersionError

setup_logging("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Global scanner instance
scanner = ArpScanner(
    binary=settings.ARP_SCAN_BINARY,
    watchdog_buffer=settings.SCAN_WATCHDOG_BUFFER,
    kill_grace=settings.SCAN_KILL_GRACE,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)

    if await ArpScanner.check_availability(scanner.binary):
        try:
            logger.info("Using %s", await ArpScanner.get_version(scanner.binary))
        except VersionError as e:
            logger.warning("%s", e)
    else:
        logger.warning("%s not found on PATH, scans will fail until it is installed", scanner.binary)

    yield

    logger.info("Shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="ARP-based LAN host discovery",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, prefix="/api", tags=["API"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "scan_in_progress": scanner.is_running
    }
