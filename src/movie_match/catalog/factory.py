"""Build the configured MovieCatalog backend."""

import logging
from typing import Optional

from movie_match.catalog.base import MovieCatalog
from movie_match.catalog.local import LocalFileCatalog
from movie_match.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_catalog(cfg: Optional[Settings] = None) -> MovieCatalog:
    cfg = cfg or get_settings()
    if cfg.catalog_backend == "streaming":
        # Imported lazily so the local backend never needs API credentials
        from movie_match.adapters.streaming.streaming import StreamingCatalog

        logger.info("Using Streaming Availability API catalog")
        return StreamingCatalog(shuffle=cfg.shuffle_candidates, seed=cfg.random_seed)

    logger.info(f"Using local catalog at {cfg.catalog_path}")
    return LocalFileCatalog(cfg.catalog_path, shuffle=cfg.shuffle_candidates, seed=cfg.random_seed)
