"""
Movie Match - FastAPI Application

Main entry point for the API server.
Environment-agnostic: configuration reads from settings (.env file).
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from movie_match import __version__
from movie_match import errors
from movie_match.settings import get_settings
from api.dependencies import lifespan_handler
from api.routers import rooms, catalog, health

# Get settings
cfg = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, cfg.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Engine error -> HTTP status
ERROR_STATUS = {
    errors.InvalidCodeFormat: 400,
    errors.RoomNotFound: 404,
    errors.UnknownParticipant: 409,
    errors.UnknownMovie: 409,
    errors.EmptyCatalog: 422,
    errors.CatalogUnavailable: 502,
    errors.CodeSpaceExhausted: 503,
}


async def movie_match_error_handler(request: Request, exc: errors.MovieMatchError) -> JSONResponse:
    status_code = next(
        (code for exc_type, code in ERROR_STATUS.items() if isinstance(exc, exc_type)),
        500,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app() -> FastAPI:
    """
    Application factory for creating FastAPI app.

    Configuration is loaded from settings (reads from .env file).

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Movie Match API",
        description="Shared movie rooms: join by invite code, swipe, and match when everyone approves",
        version=__version__,
        lifespan=lifespan_handler  # Handles startup/shutdown
    )

    # CORS configuration from settings
    logger.info(f"Configuring CORS with origins: {cfg.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(errors.MovieMatchError, movie_match_error_handler)

    # Mount routers
    app.include_router(rooms.router, prefix="/api/v1", tags=["rooms"])
    app.include_router(catalog.router, prefix="/api/v1", tags=["catalog"])
    app.include_router(health.router, prefix="/api/v1/health", tags=["health"])

    logger.info(f"FastAPI application created (env={cfg.env})")

    return app


# Create app instance
app = create_app()


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "name": "Movie Match API",
        "version": __version__,
        "environment": cfg.env,
        "status": "running",
        "docs": "/docs",
        "health": "/api/v1/health/ready"
    }


def run() -> None:
    import uvicorn

    logger.info(f"Starting API server on {cfg.api_host}:{cfg.api_port}")
    logger.info(f"Environment: {cfg.env}")

    uvicorn.run(
        "api.main:app",
        host=cfg.api_host,
        port=cfg.api_port,
        reload=cfg.api_reload,
        workers=cfg.api_workers if not cfg.api_reload else 1,  # Workers only work without reload
        log_level=cfg.log_level.lower()
    )


if __name__ == "__main__":
    run()
