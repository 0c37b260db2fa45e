"""
API Dependencies - Singleton state management and FastAPI dependency injection

Holds the single authoritative RoomStore / SessionCoordinator for the process
and runs the periodic expiry sweep while the app is up.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import HTTPException

from movie_match.catalog.base import MovieCatalog
from movie_match.catalog.factory import build_catalog
from movie_match.session.coordinator import SessionCoordinator
from movie_match.settings import Settings, get_settings
from movie_match.store.directory import InMemoryRoomDirectory, JsonFileRoomDirectory, RoomDirectory
from movie_match.store.room_store import RoomStore

logger = logging.getLogger(__name__)


class AppState:
    """
    Global application state - holds the catalog, room store and coordinator.

    Singleton pattern: one instance shared across all requests, so every
    client of a room talks to the same Room object.
    """

    def __init__(self):
        self.catalog: Optional[MovieCatalog] = None
        self.store: Optional[RoomStore] = None
        self.coordinator: Optional[SessionCoordinator] = None

        self._initialized = False
        self._initialization_lock = asyncio.Lock()

    def build(self, cfg: Settings, catalog: Optional[MovieCatalog] = None) -> None:
        """Wire catalog -> store -> coordinator from settings (sync, cheap)"""
        self.catalog = catalog or build_catalog(cfg)
        directory: RoomDirectory = (
            JsonFileRoomDirectory(cfg.directory_path) if cfg.directory_path else InMemoryRoomDirectory()
        )
        self.store = RoomStore(
            catalog=self.catalog,
            directory=directory,
            retention=timedelta(hours=cfg.room_retention_hours),
            code_max_attempts=cfg.code_max_attempts,
        )
        self.coordinator = SessionCoordinator(self.store)
        self._initialized = True

    async def initialize(self) -> None:
        # Prevent duplicate initialization
        async with self._initialization_lock:
            if self._initialized:
                logger.debug("AppState already initialized")
                return

            logger.info("Initializing AppState...")
            try:
                self.build(get_settings())
                logger.info("AppState initialization complete!")
            except Exception as e:
                logger.error(f"Failed to initialize AppState: {e}", exc_info=True)
                raise

    def is_ready(self) -> bool:
        """Check if app is ready to serve requests"""
        return self._initialized and self.coordinator is not None

    def get_status(self) -> dict:
        """Get current initialization status"""
        return {
            "initialized": self._initialized,
            "ready": self.is_ready(),
            "catalog_backend": type(self.catalog).__name__ if self.catalog is not None else None,
            "active_rooms": len(self.store) if self.store is not None else 0,
        }

    def reset(self) -> None:
        """Drop all rooms and wiring (useful for development/testing)"""
        self.catalog = None
        self.store = None
        self.coordinator = None
        self._initialized = False


# Global singleton instance
app_state = AppState()


async def run_expiry_sweeps(state: AppState, interval_seconds: float) -> None:
    """Background task removing expired rooms every `interval_seconds`"""
    while True:
        await asyncio.sleep(interval_seconds)
        if not state.is_ready():
            continue
        try:
            removed = await asyncio.to_thread(state.coordinator.sweep_expired)
            if removed:
                logger.info(f"Expiry sweep removed rooms: {removed}")
        except Exception as e:
            logger.error(f"Expiry sweep failed: {e}", exc_info=True)


def get_app_state() -> AppState:
    """FastAPI dependency to access app state."""
    return app_state


def get_coordinator() -> SessionCoordinator:
    """
    FastAPI dependency to access the session coordinator.

    Usage in routers:
        @router.post("/example")
        def example(coordinator: SessionCoordinator = Depends(get_coordinator)):
            ...
    """
    if not app_state.is_ready():
        raise HTTPException(status_code=503, detail="Service not ready")
    return app_state.coordinator


def get_catalog() -> MovieCatalog:
    if not app_state.is_ready():
        raise HTTPException(status_code=503, detail="Service not ready")
    return app_state.catalog


@asynccontextmanager
async def lifespan_handler(app):
    """
    FastAPI lifespan context manager for startup/shutdown.

    Usage in main.py:
        app = FastAPI(lifespan=lifespan_handler)
    """
    logger.info("FastAPI starting up...")
    cfg = get_settings()
    await app_state.initialize()
    sweep_task = asyncio.create_task(
        run_expiry_sweeps(app_state, cfg.expiry_sweep_interval_seconds)
    )

    yield  # App is now running

    logger.info("FastAPI shutting down...")
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    logger.info("Shutdown complete")
