"""
Streaming API - Upload to HLS adaptive-bitrate service
Main FastAPI Application Entry Point
"""

import logging
from pathlib import Path
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .utils.logger import setup_logger
from .utils.exceptions import NotFoundError, StreamingError
from .routers import video_router
from .services.encode_supervisor import get_encode_supervisor
from .services.workspace import get_workspace_manager


# Set up logging
logger = setup_logger(level=getattr(logging, get_settings().log_level.upper(), logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings = get_settings()
    workspaces = get_workspace_manager()
    supervisor = get_encode_supervisor()

    # Create required directories
    workspaces.input_root.mkdir(parents=True, exist_ok=True)
    workspaces.output_root.mkdir(parents=True, exist_ok=True)

    if settings.workspace_retention_hours:
        workspaces.purge_stale(settings.workspace_retention_hours)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} v{settings.app_version}")
    logger.info("=" * 60)
    logger.info(f"Input directory: {workspaces.input_root}")
    logger.info(f"Output directory: {workspaces.output_root}")
    logger.info(f"Free disk space: {workspaces.disk_free_gb():.1f}GB")
    logger.info(f"Max upload size: {settings.max_upload_size_mb}MB")

    if supervisor.check_available():
        logger.info(f"[OK] FFmpeg available: {settings.ffmpeg_path}")
    else:
        logger.warning(f"[!] FFmpeg not runnable at '{settings.ffmpeg_path}' (uploads will fail)")

    if settings.encode_timeout_seconds:
        logger.info(f"[OK] Encode timeout: {settings.encode_timeout_seconds}s")
    else:
        logger.warning("[!] Encode timeout disabled")

    if settings.workspace_retention_hours:
        logger.info(f"[OK] Workspace retention: {settings.workspace_retention_hours}h")
    else:
        logger.info("[-] Workspace retention disabled (job directories are never purged)")

    logger.info("=" * 60)
    logger.info("Server started successfully!")
    logger.info("API Docs: http://localhost:8000/docs")
    logger.info("=" * 60)

    yield

    # Cleanup on shutdown
    cancelled = supervisor.cancel_all()
    if cancelled:
        logger.warning(f"Cancelled {cancelled} running encodes")
    logger.info(f"Shutting down {settings.app_name}...")


# Create FastAPI app
app = FastAPI(
    title="Streaming API",
    description="Upload a video and stream it back as adaptive-bitrate HLS",
    version=get_settings().app_version,
    lifespan=lifespan
)

# CORS middleware
settings = get_settings()
cors_origins = settings.cors_allowed_origins or ["http://localhost:8000", "http://127.0.0.1:8000"]
cors_allow_credentials = "*" not in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Global Exception Handlers
# ============================================================================

@app.exception_handler(StreamingError)
async def streaming_exception_handler(request: Request, exc: StreamingError):
    """Handle all pipeline exceptions"""
    if isinstance(exc, NotFoundError):
        logger.info(f"Not found: {request.url.path}")
    else:
        logger.error(f"StreamingError [{exc.code}]: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unmatched routes answer with the same body as a missing artifact"""
    if exc.status_code == 404:
        logger.info(f"Not found: {request.url.path}")
        return JSONResponse(status_code=404, content=NotFoundError().to_dict())
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(ValueError)
async def validation_exception_handler(request: Request, exc: ValueError):
    """Handle validation errors"""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": str(exc),
            "recoverable": True,
            "recovery_hint": "Check your input parameters and try again."
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions"""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again.",
            "recoverable": True,
            "recovery_hint": "If this persists, check the server logs for details."
        }
    )


# Include routers
app.include_router(video_router)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "active_encodes": get_encode_supervisor().active_jobs,
        "disk_free_gb": round(get_workspace_manager().disk_free_gb(), 1),
    }


# Player UI; mounted last so it never shadows the API routes
frontend_path = Path(settings.static_dir)
if frontend_path.is_dir():
    app.mount("/", StaticFiles(directory=str(frontend_path), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "streaming_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
