from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import create_router
from app.api.v1.models import HealthResponse
from app.core.config import settings
from app.core.container import ServiceContainer, build_container
from app.core.logging import setup_logging
from app.core.middleware import setup_error_handlers

# Setup logging
logger = setup_logging(
    level=settings.LOG_LEVEL,
    log_file=Path("logs/app.log") if settings.LOG_TO_FILE else None
)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        container: pre-wired services; built from settings at startup when omitted
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION
    )
    app.state.container = container

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    # Enable GZip compression for responses
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    # Setup error handlers
    setup_error_handlers(app)

    # Health check endpoint
    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def health(request: Request):
        db_ok = request.app.state.container.db_manager.ping()
        body = {
            "status": "ok" if db_ok else "error",
            "db": db_ok,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return JSONResponse(body, status_code=200 if db_ok else 500)

    @app.on_event("startup")
    def startup():
        """
        Startup tasks
        """
        if app.state.container is None:
            app.state.container = build_container()
        try:
            app.state.container.ensure_indexes()
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error(f"Failed to create indexes: {str(e)}")

    @app.on_event("shutdown")
    def shutdown():
        if app.state.container is not None:
            app.state.container.close()

    # Mount API routes
    app.include_router(create_router())

    return app


# Create app instance
app = create_app()
