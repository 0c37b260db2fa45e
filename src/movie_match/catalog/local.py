"""
Local File Catalog - File-based movie catalog

Loads the catalog from a JSON (list of movie objects) or parquet file once,
caches the DataFrame, and filters it with pandas masks.
"""

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from movie_match.catalog.base import MovieCatalog
from movie_match.io import readers
from movie_match.models import Movie, MovieFilters

logger = logging.getLogger(__name__)

CATALOG_COLUMNS: tuple[str, ...] = (
    "id", "title", "year", "poster", "overview",
    "genres", "runtime", "rating", "streaming_offers",
)


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, float) and pd.isna(value):
        return []
    return list(value)


class LocalFileCatalog(MovieCatalog):
    """Catalog implementation using local file storage"""

    def __init__(self, path: Path, shuffle: bool = True, seed: Optional[int] = None):
        super().__init__(shuffle=shuffle, seed=seed)
        self.path = Path(path)
        self._catalog_cache: Optional[pd.DataFrame] = None
        logger.info(f"LocalFileCatalog initialized with {self.path}")

    def get_catalog(self) -> pd.DataFrame:
        """Load the catalog DataFrame, indexed by movie id"""
        if self._catalog_cache is not None:
            logger.debug("Returning cached catalog")
            return self._catalog_cache

        if not self.path.exists():
            raise FileNotFoundError(
                f"Catalog file not found: {self.path}. "
                "Point APP_CATALOG_PATH at a JSON or parquet movie catalog."
            )

        logger.info(f"Loading catalog from {self.path}")
        df = readers.read_records(self.path)
        if "streamingInfo" in df.columns:
            # legacy key for offers, possibly mixed with the current one
            if "streaming_offers" in df.columns:
                df["streaming_offers"] = df["streaming_offers"].where(
                    df["streaming_offers"].notna(), df["streamingInfo"]
                )
                df = df.drop(columns=["streamingInfo"])
            else:
                df = df.rename(columns={"streamingInfo": "streaming_offers"})

        missing = [c for c in ("id", "title") if c not in df.columns]
        if missing:
            raise KeyError(f"Missing expected catalog columns: {missing}")
        for col in CATALOG_COLUMNS:
            if col not in df.columns:
                df[col] = None

        df["id"] = df["id"].astype(str)
        df["rating"] = pd.to_numeric(df["rating"], errors="coerce").fillna(0.0)
        df["runtime"] = pd.to_numeric(df["runtime"], errors="coerce").fillna(0).astype(int)
        df["year"] = pd.to_numeric(df["year"], errors="coerce").fillna(0).astype(int)
        df[["poster", "overview"]] = df[["poster", "overview"]].fillna("")
        df["genres"] = df["genres"].apply(_as_list)
        df["streaming_offers"] = df["streaming_offers"].apply(_as_list)

        self._catalog_cache = df.set_index("id", drop=False)
        logger.info(f"Loaded {len(self._catalog_cache)} catalog items")
        return self._catalog_cache

    def fetch(self, filters: MovieFilters) -> List[Movie]:
        df = self.get_catalog()

        mask = pd.Series(True, index=df.index)
        if filters.genres:
            mask &= df["genres"].apply(lambda gs: any(g in filters.genres for g in gs))
        mask &= df["rating"] >= filters.min_rating
        if filters.max_runtime is not None:
            mask &= df["runtime"] <= filters.max_runtime
        if filters.services:
            mask &= df["streaming_offers"].apply(
                lambda offers: any(o.get("service") in filters.services for o in offers)
            )

        selected = df[mask]
        logger.debug(f"{len(selected)}/{len(df)} catalog items match {filters}")
        movies = [Movie.from_record(row) for row in selected.to_dict(orient="records")]
        return self._ordered(movies)

    def get_movie(self, movie_id: str) -> Optional[Movie]:
        df = self.get_catalog()
        if movie_id not in df.index:
            return None
        return Movie.from_record(df.loc[movie_id].to_dict())

    def clear_cache(self) -> None:
        """Clear the cached catalog (useful after the file changes)"""
        logger.info("Clearing catalog cache")
        self._catalog_cache = None
