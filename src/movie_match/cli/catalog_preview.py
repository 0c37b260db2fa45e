"""
CLI for previewing the candidate movies a set of room filters would produce.
"""

import argparse
import logging
import sys

from movie_match import logging_setup
from movie_match.catalog.factory import build_catalog
from movie_match.errors import CatalogUnavailable
from movie_match.models import MovieFilters
from movie_match.settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Preview the candidate movies for room filters")
    p.add_argument("--genre", action="append", default=[], help="Requested genre (repeatable)")
    p.add_argument("--service", action="append", default=[], help="Requested streaming service (repeatable)")
    p.add_argument("--min-rating", type=float, default=0.0, help="Minimum rating 0-10 (default: 0)")
    p.add_argument("--max-runtime", type=int, default=None, help="Maximum runtime in minutes")
    p.add_argument("--region", default="US", help="Region code (default: US)")
    p.add_argument("--log_level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return p


def main(argv=None) -> int:
    a = build_parser().parse_args(argv)

    logging_setup.setup_logging(a.log_level)

    filters = MovieFilters(
        genres=frozenset(a.genre),
        services=frozenset(a.service),
        min_rating=a.min_rating,
        max_runtime=a.max_runtime,
        region=a.region,
    )
    catalog = build_catalog(get_settings())

    try:
        movies = catalog.fetch(filters)
    except CatalogUnavailable as e:
        logger.error(f"Catalog unavailable: {e}")
        return 2

    if not movies:
        print("No movies match these filters. A room created with them would fail.")
        return 1

    print(f"{len(movies)} candidate movies:")
    for movie in sorted(movies, key=lambda m: m.rating, reverse=True):
        services = ", ".join(sorted(movie.services)) or "-"
        print(f"  [{movie.id}] {movie.title} ({movie.year})  rating {movie.rating:.1f}  {movie.runtime} min  on {services}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
